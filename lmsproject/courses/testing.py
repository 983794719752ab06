"""
Small factories for tests that need a content tree
"""
from courses.models import Assessment, Chapter, Course, Question


def create_course(title='Python 101', status=Course.Status.PUBLISHED, created_by='owner-1'):
    return Course.objects.create(title=title, status=status, created_by=created_by)


def create_chapter(course, order=1, title=None, **fields):
    title = title or f'Chapter {order}'
    return Chapter.objects.create(
        course=course, title=title, slug=f'{order}-chapter', order=order, **fields
    )


def create_assessment(course, chapter=None, questions=None, **fields):
    """Quiz on ``chapter`` when given, otherwise a course final"""
    assessment_type = Assessment.Type.QUIZ if chapter else Assessment.Type.FINAL
    fields.setdefault('title', f'{assessment_type.label} for {course.title}')
    assessment = Assessment.objects.create(
        course=course,
        chapter=chapter,
        type=assessment_type,
        scope=Assessment.scope_for(assessment_type),
        **fields,
    )
    for position, data in enumerate(questions or [], 1):
        data = dict(data)
        data.setdefault('order', position)
        data.setdefault('prompt', f'Question {position}')
        Question.objects.create(assessment=assessment, **data)
    return assessment


def single(correct=0, points=1, options=('A', 'B', 'C')):
    return {'type': Question.Type.SINGLE, 'options': list(options), 'correct_option_index': correct, 'points': points}


def multiple(correct=(1, 2), points=1, options=('A', 'B', 'C', 'D')):
    return {
        'type': Question.Type.MULTIPLE,
        'options': list(options),
        'correct_option_indexes': sorted(correct),
        'points': points,
    }
