"""
Management command to check stored questions against the answer-key rules.
Usage: python manage.py verify_question_bank [--assessment <id>]
"""
from django.core.management.base import BaseCommand, CommandError

from courses.exceptions import ValidationFailed
from courses.models import Question
from courses.services.question_bank import normalize_question

# The one answer-key field each type is allowed to populate
KEY_FIELD_BY_TYPE = {
    Question.Type.SINGLE: {'correct_option_index'},
    Question.Type.MULTIPLE: {'correct_option_indexes'},
    Question.Type.NUMERICAL: {'correct_text'},
    Question.Type.MATCH: {'pairs'},
    Question.Type.SUBJECTIVE: {'sample_answer'},
}


def question_problems(question):
    """List of human-readable problems with one stored question"""
    problems = []
    allowed = KEY_FIELD_BY_TYPE.get(question.type)
    if allowed is None:
        return [f'unknown type "{question.type}"']

    extra = set(question.populated_key_fields()) - allowed
    if extra:
        problems.append(f'unexpected answer-key fields: {", ".join(sorted(extra))}')

    payload = {
        'prompt': question.prompt,
        'type': question.type,
        'points': question.points,
        'order': question.order,
        'options': question.options,
        'correct_option_index': question.correct_option_index,
        'correct_option_indexes': question.correct_option_indexes,
        'correct_text': question.correct_text,
        'pairs': question.pairs,
        'sample_answer': question.sample_answer,
    }
    try:
        normalize_question(payload, question.order - 1)
    except ValidationFailed as exc:
        problems.append(exc.message)
    return problems


class Command(BaseCommand):
    help = 'Report questions whose stored answer key breaks the per-type rules'

    def add_arguments(self, parser):
        parser.add_argument('--assessment', help='Only check this assessment id')

    def handle(self, *args, **options):
        questions = Question.objects.select_related('assessment').order_by('assessment_id', 'order')
        if options['assessment']:
            questions = questions.filter(assessment_id=options['assessment'])

        checked = 0
        broken = 0
        for question in questions.iterator():
            checked += 1
            problems = question_problems(question)
            if not problems:
                continue
            broken += 1
            self.stdout.write(self.style.ERROR(
                f'{question.assessment.title} / question {question.order} ({question.id}):'
            ))
            for problem in problems:
                self.stdout.write(f'    - {problem}')

        if broken:
            raise CommandError(f'{broken} of {checked} questions have problems')
        self.stdout.write(self.style.SUCCESS(f'All {checked} questions are well formed'))
