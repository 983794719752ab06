"""
Content tree authoring - courses and their ordered chapters, including the
one-shot builder that creates a course with its chapters and chapter quizzes.
"""
import logging
import math

from django.db.models import Max, Q
from django.utils.text import slugify

from accounts.permissions import can_view_chapter, can_view_course, can_view_unpublished
from courses.exceptions import Forbidden, ValidationFailed
from courses.models import Assessment, Chapter, Course, Question
from courses.services import lookups
from courses.services.question_bank import validate_questions
from courses.services.transactions import atomic_write

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = Chapter._meta.get_field('slug').max_length
CHAPTER_TITLE_MAX_LENGTH = Chapter._meta.get_field('title').max_length
# PositiveIntegerField upper bound
TIME_LIMIT_MAX_SECONDS = 2147483647
LESSON_TEXT = 'text'
LESSON_TEST = 'test'


class CourseBuilderService:
    """Course and chapter writes, each inside a single transaction"""

    # ============ Slugs ============

    @staticmethod
    def slug_base(text):
        base = slugify(str(text or ''))[:SLUG_MAX_LENGTH].strip('-_')
        return base or 'chapter'

    @staticmethod
    def unique_chapter_slug(course, base, exclude_chapter=None):
        """
        Slugify ``base`` and append -1, -2, ... until no other chapter of
        ``course`` uses it. Slugs only collide within a course.
        """
        base_slug = CourseBuilderService.slug_base(base)
        taken = Chapter.objects.filter(course=course)
        if exclude_chapter is not None:
            taken = taken.exclude(pk=exclude_chapter.pk)
        # Suffixed candidates may cut into the base, so match on a shorter prefix
        prefix = base_slug[:SLUG_MAX_LENGTH - 12]
        taken = set(taken.filter(slug__startswith=prefix).values_list('slug', flat=True))
        if base_slug not in taken:
            return base_slug

        attempt = 1
        while True:
            suffix = f'-{attempt}'
            candidate = f'{base_slug[:SLUG_MAX_LENGTH - len(suffix)]}{suffix}'
            if candidate not in taken:
                return candidate
            attempt += 1

    # ============ Courses ============

    @staticmethod
    def _course_status(value):
        if value is None:
            return Course.Status.DRAFT
        if not isinstance(value, str) or value.strip().lower() not in Course.Status.values:
            raise ValidationFailed('status must be draft or published', field='status')
        return value.strip().lower()

    @staticmethod
    def create_course(principal_id, data):
        if not isinstance(data, dict):
            raise ValidationFailed('course must be an object', field='course')
        title = data.get('title')
        if not isinstance(title, str) or not title.strip():
            raise ValidationFailed('course.title required', field='title')

        course = Course.objects.create(
            title=title.strip(),
            status=CourseBuilderService._course_status(data.get('status')),
            created_by=str(principal_id),
        )
        logger.info(f'Created course {course.id} ({course.status}) for {principal_id}')
        return course

    @staticmethod
    def update_course(course_id, patch):
        """Partial update of title and status; publishing is a status change"""
        if not isinstance(patch, dict):
            raise ValidationFailed('Request body must be an object')

        with atomic_write('update course'):
            course = lookups.get_course(course_id)
            if 'title' in patch:
                title = patch['title']
                if not isinstance(title, str) or not title.strip():
                    raise ValidationFailed('title cannot be blank', field='title')
                course.title = title.strip()
            if 'status' in patch:
                course.status = CourseBuilderService._course_status(patch['status'])
            course.save()

        logger.info(f'Updated course {course.id} (status={course.status})')
        return course

    @staticmethod
    def get_course(course_id, principal=None):
        course = lookups.get_course(course_id)
        if principal is not None and not can_view_course(principal, course):
            raise Forbidden('Course is not published')
        return course

    @staticmethod
    def list_courses(principal=None):
        queryset = Course.objects.all()
        if principal is None or can_view_unpublished(principal):
            return queryset
        return queryset.filter(Q(status=Course.Status.PUBLISHED) | Q(created_by=str(principal.id)))

    # ============ Chapters ============

    @staticmethod
    def _chapter_order(value, label='order'):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationFailed(f'{label} must be a positive integer', field=label)
        return value

    @staticmethod
    def _flag(data, key, camel_key, default):
        value = data.get(key, data.get(camel_key, default))
        if not isinstance(value, bool):
            raise ValidationFailed(f'{key} must be a boolean', field=key)
        return value

    @staticmethod
    def create_chapter(course_id, data):
        if not isinstance(data, dict):
            raise ValidationFailed('Request body must be an object')
        title = data.get('title')
        if not isinstance(title, str) or not title.strip():
            raise ValidationFailed('title is required', field='title')

        with atomic_write('create chapter'):
            course = lookups.get_course(course_id)
            if data.get('order') is not None:
                order = CourseBuilderService._chapter_order(data['order'])
            else:
                highest = course.chapters.aggregate(highest=Max('order'))['highest']
                order = (highest or 0) + 1
            chapter = Chapter.objects.create(
                course=course,
                title=title.strip(),
                slug=CourseBuilderService.unique_chapter_slug(course, data.get('slug') or title),
                description=data.get('description'),
                content=data.get('content'),
                order=order,
                is_preview=CourseBuilderService._flag(data, 'is_preview', 'isPreview', False),
                is_published=CourseBuilderService._flag(data, 'is_published', 'isPublished', True),
            )

        logger.info(f'Created chapter {chapter.id} (order {chapter.order}) in course {course.id}')
        return chapter

    @staticmethod
    def update_chapter(chapter_id, patch):
        if not isinstance(patch, dict):
            raise ValidationFailed('Request body must be an object')

        with atomic_write('update chapter'):
            chapter = lookups.get_chapter(chapter_id)
            if 'title' in patch:
                title = patch['title']
                if not isinstance(title, str) or not title.strip():
                    raise ValidationFailed('title cannot be blank', field='title')
                chapter.title = title.strip()
            if patch.get('slug'):
                chapter.slug = CourseBuilderService.unique_chapter_slug(
                    chapter.course, patch['slug'], exclude_chapter=chapter
                )
            for field in ('description', 'content'):
                if field in patch:
                    setattr(chapter, field, patch[field])
            if 'order' in patch:
                chapter.order = CourseBuilderService._chapter_order(patch['order'])
            for field, camel in (('is_preview', 'isPreview'), ('is_published', 'isPublished')):
                if field in patch or camel in patch:
                    setattr(chapter, field, CourseBuilderService._flag(patch, field, camel, None))
            chapter.save()

        logger.info(f'Updated chapter {chapter.id}')
        return chapter

    @staticmethod
    def delete_chapter(chapter_id):
        """Remove progress rows, then the chapter's assessment, then the chapter"""
        from learning.models import AssessmentAttempt, ChapterProgress

        with atomic_write('delete chapter'):
            chapter = lookups.get_chapter(chapter_id)
            progress_removed, _ = ChapterProgress.objects.filter(chapter=chapter).delete()
            assessments = Assessment.objects.filter(chapter=chapter)
            Question.objects.filter(assessment__in=assessments).delete()
            AssessmentAttempt.objects.filter(assessment__in=assessments).delete()
            assessments.delete()
            chapter.delete()

        logger.info(f'Deleted chapter {chapter_id} ({progress_removed} progress rows)')

    @staticmethod
    def get_chapter(chapter_id, principal=None):
        chapter = lookups.get_chapter(chapter_id)
        if principal is not None:
            if not can_view_course(principal, chapter.course):
                raise Forbidden('Course is not published')
            if not can_view_chapter(principal, chapter):
                raise Forbidden('Chapter is not published')
        return chapter

    @staticmethod
    def list_chapters(course_id, principal=None):
        """Chapters of a course ordered by ``order``"""
        course = lookups.get_course(course_id)
        queryset = Chapter.objects.filter(course=course).order_by('order', 'created_at')
        if principal is None:
            return list(queryset)
        if not can_view_course(principal, course):
            raise Forbidden('Course is not published')
        if not CourseBuilderService._sees_drafts(principal, course):
            queryset = queryset.filter(is_published=True)
        return list(queryset)

    @staticmethod
    def _sees_drafts(principal, course):
        return can_view_unpublished(principal) or str(course.created_by) == str(principal.id)

    # ============ Full course builder ============

    @staticmethod
    def lesson_questions(raw_questions):
        """
        Flatten lesson question payloads. Single and multiple questions may
        carry ``options: [{text, correct}]``; the correct flags become the
        answer key.
        """
        if not isinstance(raw_questions, list):
            return raw_questions
        flattened = []
        for raw in raw_questions:
            if not isinstance(raw, dict):
                flattened.append(raw)
                continue
            question = dict(raw)
            qtype = str(question.get('type') or '').strip().lower()
            options = question.get('options')
            if (
                qtype in (Question.Type.SINGLE, Question.Type.MULTIPLE)
                and isinstance(options, list)
                and options
                and all(isinstance(option, dict) for option in options)
            ):
                question['options'] = [str(option.get('text') or '') for option in options]
                correct = [position for position, option in enumerate(options) if option.get('correct')]
                if qtype == Question.Type.SINGLE:
                    question.setdefault('correct_option_index', correct[0] if correct else None)
                else:
                    question.setdefault('correct_option_indexes', correct)
            flattened.append(question)
        return flattened

    @staticmethod
    def _time_limit(minutes, label):
        if minutes in (None, ''):
            return None
        try:
            minutes = float(minutes)
        except (TypeError, ValueError):
            raise ValidationFailed(f'{label}.quizDurationMinutes must be a number')
        if not math.isfinite(minutes):
            raise ValidationFailed(f'{label}.quizDurationMinutes must be a finite number')
        if minutes <= 0:
            return None
        seconds = int(round(minutes * 60))
        if seconds > TIME_LIMIT_MAX_SECONDS:
            raise ValidationFailed(
                f'{label}.quizDurationMinutes must be at most {TIME_LIMIT_MAX_SECONDS // 60}'
            )
        return seconds

    @staticmethod
    def build_course(principal_id, course, lessons):
        """
        Create a course with its chapters in one transaction.

        ``lessons`` is a list of ``{"type": "text", "title", "content"}`` or
        ``{"type": "test", "quizTitle", "quizDurationMinutes", "questions"}``
        items. Every test lesson becomes a chapter with a published quiz.
        """
        if lessons is None:
            lessons = []
        if not isinstance(lessons, list):
            raise ValidationFailed('lessons must be an array', field='lessons')

        # Validate everything before the first insert
        plans = []
        for idx, lesson in enumerate(lessons):
            label = f'lessons[{idx}]'
            if not isinstance(lesson, dict):
                raise ValidationFailed(f'{label} must be an object', field=label)
            is_quiz = str(lesson.get('type') or LESSON_TEXT) == LESSON_TEST
            if is_quiz:
                quiz_title = str(lesson.get('quizTitle') or lesson.get('quiz_title') or '').strip()
                title = quiz_title or f'Quiz {idx + 1}'
                minutes = lesson.get('quizDurationMinutes', lesson.get('quiz_duration_minutes'))
                try:
                    questions = validate_questions(
                        CourseBuilderService.lesson_questions(lesson.get('questions'))
                    )
                except ValidationFailed as exc:
                    raise ValidationFailed(f'{label}.{exc.message}', field=label)
                plans.append({
                    'title': title[:CHAPTER_TITLE_MAX_LENGTH],
                    'description': quiz_title or None,
                    'content': None,
                    'quiz_title': quiz_title or f'Quiz for {title}',
                    'time_limit_seconds': CourseBuilderService._time_limit(minutes, label),
                    'questions': questions,
                })
            else:
                content = lesson.get('content') or None
                plans.append({
                    'title': (str(lesson.get('title') or '').strip() or f'Chapter {idx + 1}')[:CHAPTER_TITLE_MAX_LENGTH],
                    'description': content[:180] if content else None,
                    'content': content,
                    'questions': None,
                })

        with atomic_write('build course'):
            course_row = CourseBuilderService.create_course(principal_id, course)
            quiz_count = 0
            for idx, plan in enumerate(plans):
                chapter = Chapter.objects.create(
                    course=course_row,
                    title=plan['title'],
                    slug=CourseBuilderService.unique_chapter_slug(course_row, f'{idx + 1}-{plan["title"]}'),
                    description=plan['description'],
                    content=plan['content'],
                    order=idx + 1,
                    is_preview=False,
                    is_published=True,
                )
                if plan['questions'] is None:
                    continue
                assessment = Assessment.objects.create(
                    title=plan['quiz_title'],
                    type=Assessment.Type.QUIZ,
                    scope=Assessment.Scope.CHAPTER,
                    course=course_row,
                    chapter=chapter,
                    time_limit_seconds=plan['time_limit_seconds'],
                    max_attempts=1,
                    is_published=True,
                    order=1,
                )
                Question.objects.bulk_create(
                    [Question(assessment=assessment, **data) for data in plan['questions']]
                )
                quiz_count += 1

        logger.info(
            f'Built course {course_row.id}: {len(plans)} chapters, {quiz_count} quizzes'
        )
        return course_row


unique_chapter_slug = CourseBuilderService.unique_chapter_slug
build_course = CourseBuilderService.build_course
