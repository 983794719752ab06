"""
Attempt recording and attempt status for a student on one assessment
"""
import logging

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Max

from accounts.permissions import can_act_for_student, can_attempt, can_view_chapter, can_view_course
from courses.exceptions import (
    AttemptLimitExceeded,
    Forbidden,
    TransactionFailure,
    ValidationFailed,
)
from courses.models import Assessment
from courses.services.lookups import get_or_not_found
from learning.models import AssessmentAttempt
from learning.services.scoring import score_attempt

logger = logging.getLogger(__name__)


def _load_assessment(assessment_id):
    queryset = Assessment.objects.select_related('course', 'chapter').prefetch_related('questions')
    return get_or_not_found(queryset, assessment_id, 'Assessment')


def _check_access(assessment, student_id, principal):
    if principal is None:
        return
    if not can_act_for_student(principal, student_id):
        raise Forbidden('Cannot act for another student')
    if not can_attempt(principal, assessment):
        raise Forbidden('Assessment is not published')
    if not can_view_course(principal, assessment.course):
        raise Forbidden('Course is not published')
    if assessment.chapter is not None and not can_view_chapter(principal, assessment.chapter):
        raise Forbidden('Chapter is not published')


def _attempts_of(assessment, student_id):
    return AssessmentAttempt.objects.filter(assessment=assessment, student_id=str(student_id))


def _insert_attempt(assessment, student_id, answers, score, max_score):
    """
    Count prior attempts and insert the next one in one transaction. Two
    concurrent submissions pick the same attempt_number; the loser hits the
    unique constraint and is retried against the new count.
    """
    retries = max(0, int(getattr(settings, 'ATTEMPT_INSERT_RETRIES', 3)))

    for try_number in range(retries + 1):
        try:
            with transaction.atomic():
                prior = _attempts_of(assessment, student_id)
                used = prior.count()
                if used >= assessment.max_attempts:
                    raise AttemptLimitExceeded(used, assessment.max_attempts)
                last_number = prior.aggregate(last=Max('attempt_number'))['last'] or 0
                attempt = AssessmentAttempt.objects.create(
                    assessment=assessment,
                    student_id=str(student_id),
                    attempt_number=last_number + 1,
                    score=score,
                    max_score=max_score,
                    answers=answers,
                )
            return attempt, used + 1
        except IntegrityError as exc:
            if try_number >= retries:
                logger.exception(f'Attempt insert for {student_id} on {assessment.id} kept conflicting')
                raise TransactionFailure('Could not record attempt, please retry') from exc
            logger.warning(
                f'Attempt number conflict for {student_id} on {assessment.id}, '
                f'retrying ({try_number + 1}/{retries})'
            )
        except DatabaseError as exc:
            logger.exception(f'Attempt insert for {student_id} on {assessment.id} failed')
            raise TransactionFailure('Could not record attempt, nothing was saved') from exc


def record_attempt(assessment_id, student_id, answers, principal=None):
    """
    Score and store one submission.

    Returns ``{"attempt": AssessmentAttempt, "attempts_remaining": int}``.
    Raises NotFound, Forbidden, ValidationFailed or AttemptLimitExceeded;
    on rejection nothing is stored.
    """
    assessment = _load_assessment(assessment_id)
    if not student_id:
        raise ValidationFailed('student_id is required', field='student_id')
    _check_access(assessment, student_id, principal)

    if not isinstance(answers, dict):
        raise ValidationFailed('answers must be an object keyed by question id', field='answers')

    score, max_score = score_attempt(assessment, answers)

    try:
        attempt, used = _insert_attempt(assessment, student_id, answers, score, max_score)
    except AttemptLimitExceeded as exc:
        logger.warning(
            f'Rejected attempt by {student_id} on {assessment.id}: '
            f'{exc.attempts_used}/{exc.attempts_allowed} attempts used'
        )
        raise

    logger.info(
        f'Recorded attempt #{attempt.attempt_number} by {student_id} on {assessment.id}: '
        f'{score}/{max_score}'
    )
    return {
        'attempt': attempt,
        'attempts_remaining': max(0, assessment.max_attempts - used),
    }


def latest_attempt(assessment, student_id):
    return _attempts_of(assessment, student_id).order_by('-submitted_at', '-attempt_number').first()


def attempt_status(assessment_id, student_id, principal=None):
    """Attempts used, allowed and remaining, and the latest attempt if any"""
    assessment = _load_assessment(assessment_id)
    if not student_id:
        raise ValidationFailed('student_id is required', field='student_id')
    if principal is not None and not can_act_for_student(principal, student_id):
        raise Forbidden('Cannot act for another student')

    used = _attempts_of(assessment, student_id).count()
    remaining = max(0, assessment.max_attempts - used)
    visible = principal is None or (
        can_attempt(principal, assessment)
        and can_view_course(principal, assessment.course)
        and (assessment.chapter is None or can_view_chapter(principal, assessment.chapter))
    )
    return {
        'assessment': assessment,
        'attempts_used': used,
        'attempts_allowed': assessment.max_attempts,
        'attempts_remaining': remaining,
        'can_attempt': visible and remaining > 0,
        'latest_attempt': latest_attempt(assessment, student_id),
    }
