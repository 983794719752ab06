"""
Existence checks against the content tree
"""
from django.core.exceptions import ValidationError as DjangoValidationError

from courses.exceptions import NotFound
from courses.models import Assessment, Chapter, Course


def get_or_not_found(queryset, pk, resource):
    """Fetch by primary key; unknown or malformed ids both read as not found"""
    if pk in (None, ''):
        raise NotFound(f'{resource} not found')
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, DjangoValidationError, ValueError, TypeError):
        raise NotFound.for_resource(resource, pk)


def get_course(course_id):
    return get_or_not_found(Course.objects.all(), course_id, 'Course')


def get_chapter(chapter_id):
    return get_or_not_found(Chapter.objects.select_related('course'), chapter_id, 'Chapter')


def get_assessment(assessment_id, for_update=False):
    queryset = Assessment.objects.select_related('course', 'chapter')
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    return get_or_not_found(queryset, assessment_id, 'Assessment')
