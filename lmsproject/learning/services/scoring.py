"""
Scoring engine - grades a submitted answers map against an assessment's
questions.

Each question type has exactly one grader in GRADERS. A grader returns True
when the submission earns the question's full points; there is no partial
credit. Missing or malformed answers grade as wrong and still count toward
max_score.
"""
from decimal import Decimal, InvalidOperation
import logging

from django.core.exceptions import ImproperlyConfigured

from courses.models import Question

logger = logging.getLogger(__name__)


def _as_number(value):
    """Decimal for numeric-looking input, None for anything else (bools included)"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        text = str(value)
    elif isinstance(value, str):
        text = value.strip()
    else:
        return None
    try:
        number = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def grade_single(question, submitted):
    number = _as_number(submitted)
    if number is None or question.correct_option_index is None:
        return False
    return number == question.correct_option_index


def grade_multiple(question, submitted):
    if not isinstance(submitted, (list, tuple)) or not question.correct_option_indexes:
        return False
    numbers = [_as_number(value) for value in submitted]
    if any(number is None for number in numbers):
        return False
    expected = sorted(Decimal(index) for index in question.correct_option_indexes)
    return sorted(numbers) == expected


def grade_numerical(question, submitted):
    if question.correct_text in (None, ''):
        return False
    if isinstance(submitted, bool) or not isinstance(submitted, (str, int, float, Decimal)):
        return False
    given = str(submitted).strip()
    expected = question.correct_text.strip()
    if given == expected:
        return True
    given_number = _as_number(given)
    expected_number = _as_number(expected)
    if given_number is None or expected_number is None:
        return False
    return given_number == expected_number


def _pairing(submitted):
    """Map of trimmed left -> trimmed right, or None when the shape is wrong"""
    if isinstance(submitted, dict):
        items = submitted.items()
    elif isinstance(submitted, (list, tuple)):
        items = []
        for pair in submitted:
            if not isinstance(pair, dict) or 'left' not in pair or 'right' not in pair:
                return None
            items.append((pair['left'], pair['right']))
    else:
        return None

    pairing = {}
    for left, right in items:
        if left is None or right is None:
            return None
        left, right = str(left).strip(), str(right).strip()
        if left in pairing:
            return None
        pairing[left] = right
    return pairing


def grade_match(question, submitted):
    if not question.pairs:
        return False
    given = _pairing(submitted)
    if given is None:
        return False
    return given == _pairing(question.pairs)


def grade_subjective(question, submitted):
    # Needs manual review; never auto-scored
    return False


GRADERS = {
    Question.Type.SINGLE: grade_single,
    Question.Type.MULTIPLE: grade_multiple,
    Question.Type.NUMERICAL: grade_numerical,
    Question.Type.MATCH: grade_match,
    Question.Type.SUBJECTIVE: grade_subjective,
}

_ungraded = set(Question.Type.values) - set(GRADERS)
if _ungraded:
    raise ImproperlyConfigured(f'No grader for question types: {", ".join(sorted(_ungraded))}')


def grade_question(question, submitted):
    """Points earned on one question"""
    grader = GRADERS[question.type]
    return question.points if grader(question, submitted) else 0


def score_attempt(assessment, answers):
    """
    Score ``answers`` (question id -> submitted value) against every question
    of ``assessment``. Returns ``(score, max_score)``.
    """
    answers = answers or {}
    score = 0
    max_score = 0
    for question in assessment.questions.all():
        max_score += question.points
        score += grade_question(question, answers.get(str(question.id)))
    return score, max_score
