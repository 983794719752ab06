"""
Question bank authoring - create, replace, update and delete assessments
and their questions.

Every write validates its whole input before touching the database and runs
inside a single transaction, so a batch is either fully applied or not at
all.
"""
import logging

from django.db.models import Q

from accounts.permissions import can_view_chapter, can_view_course, can_view_unpublished
from courses.exceptions import Forbidden, NotFound, ValidationFailed
from courses.models import Assessment, Question
from courses.services.lookups import get_assessment as lookup_assessment
from courses.services.lookups import get_chapter, get_course, get_or_not_found
from courses.services.transactions import atomic_write

logger = logging.getLogger(__name__)

QUESTION_TYPES = tuple(Question.Type.values)
ASSESSMENT_TYPES = tuple(Assessment.Type.values)

# Clients may send camelCase keys; both spellings are accepted.
KEY_ALIASES = {
    'correct_option_index': ('correct_option_index', 'correctOptionIndex'),
    'correct_option_indexes': ('correct_option_indexes', 'correctOptionIndexes'),
    'correct_text': ('correct_text', 'correctText'),
    'sample_answer': ('sample_answer', 'sampleAnswer'),
    'time_limit_seconds': ('time_limit_seconds', 'timeLimitSeconds', 'time_limit'),
    'max_attempts': ('max_attempts', 'maxAttempts'),
    'is_published': ('is_published', 'isPublished'),
    'course_id': ('course_id', 'courseId', 'course'),
    'chapter_id': ('chapter_id', 'chapterId', 'chapter'),
}

_MISSING = object()


def _pick(data, key, default=None):
    for alias in KEY_ALIASES.get(key, (key,)):
        if alias in data:
            return data[alias]
    return default


def _has(data, key):
    return _pick(data, key, _MISSING) is not _MISSING


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _positive_int(value, label, allow_none=False):
    if value is None and allow_none:
        return None
    if not _is_int(value) or value < 1:
        raise ValidationFailed(f'{label} must be a positive integer', field=label)
    return value


# ============ Question validation ============

def _validate_options(options, label):
    if not isinstance(options, list) or not options:
        raise ValidationFailed(f'{label}.options must be a non-empty array', field=f'{label}.options')
    cleaned = []
    for opt_idx, option in enumerate(options):
        if option is None or isinstance(option, (dict, list)):
            raise ValidationFailed(f'{label}.options[{opt_idx}] must be text', field=f'{label}.options')
        cleaned.append(str(option))
    return cleaned


def _validate_index(value, options, label, field):
    if not _is_int(value):
        raise ValidationFailed(f'{label}.{field} must be an integer', field=f'{label}.{field}')
    if not 0 <= value < len(options):
        raise ValidationFailed(f'{label}.{field} is out of range', field=f'{label}.{field}')
    return value


def _pair_side(value):
    # 0 and False are real labels, only a missing side is empty
    return '' if value is None else str(value).strip()


def _validate_pairs(pairs, label):
    if not isinstance(pairs, list) or not pairs:
        raise ValidationFailed(f'{label}.pairs must be a non-empty array', field=f'{label}.pairs')
    cleaned = []
    lefts = set()
    for pair_idx, pair in enumerate(pairs):
        if not isinstance(pair, dict):
            raise ValidationFailed(f'{label}.pairs[{pair_idx}] must be an object', field=f'{label}.pairs')
        left = _pair_side(pair.get('left'))
        right = _pair_side(pair.get('right'))
        if not left or not right:
            raise ValidationFailed(
                f'{label}.pairs[{pair_idx}] needs both left and right', field=f'{label}.pairs'
            )
        if left in lefts:
            raise ValidationFailed(f'{label}.pairs has duplicate left "{left}"', field=f'{label}.pairs')
        lefts.add(left)
        cleaned.append({'left': left, 'right': right})
    return cleaned


def normalize_question(raw, idx):
    """
    Validate one question payload and return the field values to store.
    ``idx`` is the 0-based position, used for messages and default order.
    """
    label = f'questions[{idx}]'
    if not isinstance(raw, dict):
        raise ValidationFailed(f'{label} must be an object', field=label)

    prompt = raw.get('prompt', raw.get('text'))
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationFailed(f'{label}.prompt (or text) is required', field=f'{label}.prompt')

    qtype = raw.get('type')
    if not isinstance(qtype, str) or qtype.strip().lower() not in QUESTION_TYPES:
        raise ValidationFailed(
            f'{label}.type must be one of {", ".join(QUESTION_TYPES)}', field=f'{label}.type'
        )
    qtype = qtype.strip().lower()

    options = raw.get('options')
    if options is not None and not isinstance(options, list):
        raise ValidationFailed(f'{label}.options must be an array', field=f'{label}.options')

    correct_index = _pick(raw, 'correct_option_index')
    if correct_index is not None and not _is_int(correct_index):
        raise ValidationFailed(
            f'{label}.correct_option_index must be an integer', field=f'{label}.correct_option_index'
        )

    data = {
        'prompt': prompt.strip(),
        'type': qtype,
        'points': _positive_int(raw.get('points', 1), f'{label}.points'),
        'order': _positive_int(raw.get('order', idx + 1), f'{label}.order'),
        'options': [],
        'correct_option_index': None,
        'correct_option_indexes': [],
        'correct_text': None,
        'pairs': [],
        'sample_answer': None,
    }

    if qtype == Question.Type.SINGLE:
        data['options'] = _validate_options(options, label)
        if correct_index is None:
            raise ValidationFailed(
                f'{label}.correct_option_index is required', field=f'{label}.correct_option_index'
            )
        data['correct_option_index'] = _validate_index(
            correct_index, data['options'], label, 'correct_option_index'
        )

    elif qtype == Question.Type.MULTIPLE:
        data['options'] = _validate_options(options, label)
        indexes = _pick(raw, 'correct_option_indexes')
        if not isinstance(indexes, list) or not indexes:
            raise ValidationFailed(
                f'{label}.correct_option_indexes must be a non-empty array',
                field=f'{label}.correct_option_indexes',
            )
        checked = [
            _validate_index(value, data['options'], label, 'correct_option_indexes')
            for value in indexes
        ]
        if len(set(checked)) != len(checked):
            raise ValidationFailed(
                f'{label}.correct_option_indexes has duplicates', field=f'{label}.correct_option_indexes'
            )
        data['correct_option_indexes'] = sorted(checked)

    elif qtype == Question.Type.NUMERICAL:
        correct_text = _pick(raw, 'correct_text')
        if _is_int(correct_text) or isinstance(correct_text, float):
            correct_text = str(correct_text)
        if not isinstance(correct_text, str) or not correct_text.strip():
            raise ValidationFailed(f'{label}.correct_text is required', field=f'{label}.correct_text')
        data['correct_text'] = correct_text.strip()

    elif qtype == Question.Type.MATCH:
        data['pairs'] = _validate_pairs(raw.get('pairs'), label)

    elif qtype == Question.Type.SUBJECTIVE:
        sample = _pick(raw, 'sample_answer')
        if sample is not None and not isinstance(sample, str):
            raise ValidationFailed(f'{label}.sample_answer must be text', field=f'{label}.sample_answer')
        data['sample_answer'] = sample.strip() if sample and sample.strip() else None

    return data


def validate_questions(questions):
    """Validate a whole question list; the first bad item aborts the batch"""
    if not isinstance(questions, list) or not questions:
        raise ValidationFailed('questions array is required', field='questions')
    return [normalize_question(raw, idx) for idx, raw in enumerate(questions)]


def _create_questions(assessment, cleaned):
    Question.objects.bulk_create([Question(assessment=assessment, **data) for data in cleaned])


# ============ Assessment binding ============

def _resolve_type(value):
    if not isinstance(value, str) or value.strip().lower() not in ASSESSMENT_TYPES:
        raise ValidationFailed('type must be quiz or final', field='type')
    return value.strip().lower()


def _resolve_chapter(course, chapter_id, assessment=None):
    """A quiz needs a chapter of the same course that has no other assessment"""
    if not chapter_id:
        raise ValidationFailed('chapter_id is required for quiz assessments', field='chapter_id')
    try:
        chapter = get_chapter(chapter_id)
    except NotFound:
        raise ValidationFailed('Invalid chapter_id for this course', field='chapter_id')
    if chapter.course_id != course.id:
        raise ValidationFailed('Invalid chapter_id for this course', field='chapter_id')

    existing = Assessment.objects.filter(chapter=chapter)
    if assessment is not None:
        existing = existing.exclude(pk=assessment.pk)
    if existing.exists():
        raise ValidationFailed('Chapter already has an assessment', field='chapter_id')
    return chapter


def _settings_from(data, partial=False):
    """Optional assessment settings shared by create and update"""
    values = {}
    if _has(data, 'time_limit_seconds'):
        values['time_limit_seconds'] = _positive_int(
            _pick(data, 'time_limit_seconds'), 'time_limit_seconds', allow_none=True
        )
    if _has(data, 'max_attempts'):
        values['max_attempts'] = _positive_int(_pick(data, 'max_attempts'), 'max_attempts')
    elif not partial:
        values['max_attempts'] = 1
    if _has(data, 'is_published'):
        is_published = _pick(data, 'is_published')
        if not isinstance(is_published, bool):
            raise ValidationFailed('is_published must be a boolean', field='is_published')
        values['is_published'] = is_published
    if 'order' in data:
        order = data['order']
        if order is not None and not _is_int(order):
            raise ValidationFailed('order must be an integer', field='order')
        values['order'] = order
    return values


# ============ Operations ============

def create_assessment(data):
    """
    Create an assessment together with its questions.

    ``data`` keys: title, type (quiz|final), course_id, chapter_id (quiz
    only), time_limit_seconds, max_attempts, is_published, order, questions.
    """
    if not isinstance(data, dict):
        raise ValidationFailed('Request body must be an object')

    title = data.get('title')
    if not isinstance(title, str) or not title.strip():
        raise ValidationFailed('title is required', field='title')
    assessment_type = _resolve_type(data.get('type'))

    course_id = _pick(data, 'course_id')
    if not course_id:
        raise ValidationFailed('course_id is required', field='course_id')
    course = get_course(course_id)

    chapter = None
    if assessment_type == Assessment.Type.QUIZ:
        chapter = _resolve_chapter(course, _pick(data, 'chapter_id'))
    elif _pick(data, 'chapter_id'):
        raise ValidationFailed('final assessments bind to the course and take no chapter_id', field='chapter_id')

    settings_values = _settings_from(data)
    cleaned = validate_questions(data.get('questions'))

    with atomic_write('create assessment'):
        assessment = Assessment.objects.create(
            title=title.strip(),
            type=assessment_type,
            scope=Assessment.scope_for(assessment_type),
            course=course,
            chapter=chapter,
            **settings_values,
        )
        _create_questions(assessment, cleaned)

    logger.info(
        f'Created {assessment_type} assessment {assessment.id} for course {course.id} '
        f'with {len(cleaned)} questions'
    )
    return assessment


def replace_questions(assessment_id, questions):
    """Discard the current question list and store ``questions`` in its place"""
    cleaned = validate_questions(questions)

    with atomic_write('replace questions'):
        assessment = lookup_assessment(assessment_id, for_update=True)
        removed, _ = Question.objects.filter(assessment=assessment).delete()
        _create_questions(assessment, cleaned)

    logger.info(f'Replaced questions of assessment {assessment.id}: {removed} removed, {len(cleaned)} added')
    return assessment


def update_assessment(assessment_id, patch):
    """Apply a partial update; questions are changed through replace_questions"""
    if not isinstance(patch, dict):
        raise ValidationFailed('Request body must be an object')

    with atomic_write('update assessment'):
        assessment = lookup_assessment(assessment_id, for_update=True)

        if 'title' in patch:
            title = patch['title']
            if not isinstance(title, str) or not title.strip():
                raise ValidationFailed('title cannot be blank', field='title')
            assessment.title = title.strip()

        if 'type' in patch:
            assessment.type = _resolve_type(patch['type'])
            assessment.scope = Assessment.scope_for(assessment.type)

        if assessment.type == Assessment.Type.FINAL:
            if _pick(patch, 'chapter_id'):
                raise ValidationFailed(
                    'final assessments bind to the course and take no chapter_id', field='chapter_id'
                )
            assessment.chapter = None
        elif _has(patch, 'chapter_id') or assessment.chapter_id is None:
            chapter_id = _pick(patch, 'chapter_id', assessment.chapter_id)
            assessment.chapter = _resolve_chapter(assessment.course, chapter_id, assessment=assessment)

        for field, value in _settings_from(patch, partial=True).items():
            setattr(assessment, field, value)

        assessment.save()

    logger.info(f'Updated assessment {assessment.id}')
    return assessment


def delete_assessment(assessment_id):
    """Remove questions, then attempts, then the assessment itself"""
    from learning.models import AssessmentAttempt

    with atomic_write('delete assessment'):
        assessment = lookup_assessment(assessment_id, for_update=True)
        questions_removed, _ = Question.objects.filter(assessment=assessment).delete()
        attempts_removed, _ = AssessmentAttempt.objects.filter(assessment=assessment).delete()
        assessment.delete()

    logger.info(
        f'Deleted assessment {assessment_id} '
        f'({questions_removed} questions, {attempts_removed} attempts)'
    )


def _check_visible(assessment, principal):
    if principal is None:
        return
    if not can_view_course(principal, assessment.course):
        raise Forbidden('Course is not published')
    if assessment.chapter is not None and not can_view_chapter(principal, assessment.chapter):
        raise Forbidden('Chapter is not published')
    if not assessment.is_published and not can_view_unpublished(principal):
        raise Forbidden('Assessment is not published')


def get_assessment(assessment_id, principal=None):
    """Assessment with its ordered questions prefetched"""
    queryset = Assessment.objects.select_related('course', 'chapter').prefetch_related('questions')
    assessment = get_or_not_found(queryset, assessment_id, 'Assessment')
    _check_visible(assessment, principal)
    return assessment


def list_assessments(chapter_id=None, course_id=None, principal=None):
    """Assessments of one chapter or one course; unpublished ones only for admins"""
    if bool(chapter_id) == bool(course_id):
        raise ValidationFailed('Provide exactly one of chapter_id or course_id')

    chapter = None
    if chapter_id:
        chapter = get_chapter(chapter_id)
        course = chapter.course
        queryset = Assessment.objects.filter(chapter=chapter)
    else:
        course = get_course(course_id)
        queryset = Assessment.objects.filter(course=course)

    if principal is not None:
        if not can_view_course(principal, course):
            raise Forbidden('Course is not published')
        if chapter is not None and not can_view_chapter(principal, chapter):
            raise Forbidden('Chapter is not published')
        if not can_view_unpublished(principal):
            queryset = queryset.filter(is_published=True)
            if str(course.created_by) != str(principal.id):
                # Quizzes of hidden chapters stay hidden; finals have no chapter
                queryset = queryset.filter(Q(chapter__isnull=True) | Q(chapter__is_published=True))

    return list(queryset.select_related('course', 'chapter').prefetch_related('questions'))
