"""
Authorization gate - pure predicates over an already-resolved principal,
plus the DRF permission classes that wrap them for views.
"""
from rest_framework import permissions

from .roles import ADMIN_ROLES, Role

CAN_CREATE_TESTS = 'canCreateTests'
CAN_CREATE_COURSES = 'canCreateCourses'


def _role(principal):
    return getattr(principal, 'role', None)


def can_view_unpublished(principal):
    """Only admins see unpublished assessments and chapters"""
    return _role(principal) in ADMIN_ROLES


def can_author(principal):
    """Create, edit and delete assessments and their questions"""
    role = _role(principal)
    if role in ADMIN_ROLES:
        return True
    if role == Role.INSTRUCTOR:
        return principal.has_permission(CAN_CREATE_TESTS)
    return False


def can_author_courses(principal):
    """Create and edit courses and chapters"""
    role = _role(principal)
    if role in ADMIN_ROLES:
        return True
    if role == Role.INSTRUCTOR:
        return principal.has_permission(CAN_CREATE_COURSES)
    return False


def can_attempt(principal, assessment):
    """Any recognized role may attempt a visible assessment"""
    if _role(principal) is None:
        return False
    return assessment.is_published or can_view_unpublished(principal)


def can_act_for_student(principal, student_id):
    """Students act for themselves; admins may act on a student's behalf"""
    if _role(principal) is None:
        return False
    return str(principal.id) == str(student_id) or _role(principal) in ADMIN_ROLES


def can_view_course(principal, course):
    """Draft courses are visible to their owner and to admins"""
    if course.status == course.Status.PUBLISHED:
        return True
    return can_view_unpublished(principal) or str(course.created_by) == str(principal.id)


def can_view_chapter(principal, chapter):
    """Unpublished chapters, like draft courses, are visible to the course owner and to admins"""
    if chapter.is_published:
        return True
    return can_view_unpublished(principal) or str(chapter.course.created_by) == str(principal.id)


class CanAuthorAssessments(permissions.BasePermission):
    """Authors can edit assessments, every authenticated principal can read"""
    message = 'Not allowed to create or edit tests'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return can_author(request.user)


class CanAuthorCourses(permissions.BasePermission):
    """Course authors can edit courses and chapters, others can only read"""
    message = 'Not allowed to create or edit courses'

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return can_author_courses(request.user)
