"""
Course Progress Service - per-chapter completion, time tracking and the
course progress summary shown on a student's dashboard
"""
from decimal import ROUND_HALF_UP, Decimal
import logging

from django.db.models import F, Sum
from django.utils import timezone

from accounts.permissions import can_act_for_student
from courses.exceptions import Forbidden, ValidationFailed
from courses.models import Assessment, Chapter
from courses.services.lookups import get_chapter, get_course
from courses.services.transactions import atomic_write
from learning.models import AssessmentAttempt, ChapterProgress

logger = logging.getLogger(__name__)


class CourseProgressService:
    """Service for chapter progress writes and course progress aggregation"""

    @staticmethod
    def check_student(principal, student_id):
        if not student_id:
            raise ValidationFailed('student_id is required', field='student_id')
        if principal is not None and not can_act_for_student(principal, student_id):
            raise Forbidden('Cannot act for another student')

    @staticmethod
    def average_percent(attempts):
        """
        Mean percentage over the latest attempt of each assessment, rounded
        half-up. ``attempts`` must be ordered newest first per assessment.
        """
        seen = set()
        total = Decimal(0)
        taken = 0
        for attempt in attempts:
            if attempt.assessment_id in seen:
                continue
            seen.add(attempt.assessment_id)
            if attempt.max_score > 0:
                total += Decimal(attempt.score) * 100 / Decimal(attempt.max_score)
                taken += 1
        if not taken:
            return 0, 0
        average = (total / taken).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return int(average), taken

    @staticmethod
    def summarize_course_progress(course_id, student_id, principal=None):
        """
        Read-only projection of a student's progress through one course.

        Modules are chapters without an assessment. Test scores use the
        latest attempt per assessment; never-attempted assessments are left
        out of the average.
        """
        CourseProgressService.check_student(principal, student_id)
        course = get_course(course_id)
        student_id = str(student_id)

        chapters = Chapter.objects.filter(course=course)
        text_chapters = chapters.filter(assessment__isnull=True)
        completed = ChapterProgress.objects.filter(
            chapter__course=course, student_id=student_id, is_completed=True
        )

        attempts = (
            AssessmentAttempt.objects
            .filter(
                assessment__in=Assessment.objects.filter(course=course),
                student_id=student_id,
                status=AssessmentAttempt.Status.SUBMITTED,
            )
            .only('assessment', 'score', 'max_score', 'submitted_at', 'attempt_number')
            .order_by('assessment_id', '-submitted_at', '-attempt_number')
        )
        average, taken = CourseProgressService.average_percent(attempts)

        total_time = ChapterProgress.objects.filter(
            chapter__course=course, student_id=student_id
        ).aggregate(total=Sum('time_spent'))['total'] or 0

        return {
            'chapters': {'done': completed.count(), 'total': chapters.count()},
            'modules': {
                'done': completed.filter(chapter__assessment__isnull=True).count(),
                'total': text_chapters.count(),
            },
            'tests': {'average_percent': average, 'taken': taken},
            'total_time_spent': total_time,
        }

    @staticmethod
    def mark_chapter_complete(chapter_id, student_id, principal=None):
        """
        Set the chapter complete for the student. Calling it again is a
        no-op; the first completed_at is kept.
        """
        CourseProgressService.check_student(principal, student_id)
        student_id = str(student_id)

        with atomic_write('mark chapter complete'):
            chapter = get_chapter(chapter_id)
            progress, _ = ChapterProgress.objects.get_or_create(
                chapter=chapter, student_id=student_id
            )
            updated = ChapterProgress.objects.filter(pk=progress.pk, is_completed=False).update(
                is_completed=True, completed_at=timezone.now(), updated_at=timezone.now()
            )
            progress.refresh_from_db()

        if updated:
            logger.info(f'Chapter {chapter.id} completed by {student_id}')
        return progress

    @staticmethod
    def record_time_spent(chapter_id, student_id, seconds, principal=None):
        """Add ``seconds`` to the student's time on the chapter"""
        CourseProgressService.check_student(principal, student_id)
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
            raise ValidationFailed('seconds must be a non-negative integer', field='seconds')
        student_id = str(student_id)

        with atomic_write('record time spent'):
            chapter = get_chapter(chapter_id)
            progress, _ = ChapterProgress.objects.get_or_create(chapter=chapter, student_id=student_id)
            ChapterProgress.objects.filter(pk=progress.pk).update(
                time_spent=F('time_spent') + seconds, updated_at=timezone.now()
            )
            progress.refresh_from_db()

        logger.debug(f'Added {seconds}s on chapter {chapter.id} for {student_id} (total {progress.time_spent}s)')
        return progress

    @staticmethod
    def completed_chapter_ids(course_id, student_id, principal=None):
        CourseProgressService.check_student(principal, student_id)
        course = get_course(course_id)
        return [
            str(chapter_id) for chapter_id in ChapterProgress.objects.filter(
                chapter__course=course, student_id=str(student_id), is_completed=True
            ).values_list('chapter_id', flat=True)
        ]


summarize_course_progress = CourseProgressService.summarize_course_progress
mark_chapter_complete = CourseProgressService.mark_chapter_complete
record_time_spent = CourseProgressService.record_time_spent
completed_chapter_ids = CourseProgressService.completed_chapter_ids
