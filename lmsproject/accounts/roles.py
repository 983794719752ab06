"""
Role and principal handling.

Role strings arrive free-form from the identity service ("SuperAdmin",
"super-admin", "SUPER_ADMIN"). They are normalized once, when the principal
is built, into the closed ``Role`` enum; nothing past this module compares
raw role strings.
"""
import re

from django.db import models

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')
_NON_ALNUM = re.compile(r'[^A-Z0-9]+')


class Role(models.TextChoices):
    STUDENT = 'STUDENT', 'Student'
    INSTRUCTOR = 'INSTRUCTOR', 'Instructor'
    ADMIN = 'ADMIN', 'Admin'
    SUPER_ADMIN = 'SUPER_ADMIN', 'Super Admin'


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def normalize_role(value):
    """Upper snake case: 'superAdmin' / 'super-admin' -> 'SUPER_ADMIN'"""
    text = _CAMEL_BOUNDARY.sub('_', str(value or '').strip())
    return _NON_ALNUM.sub('_', text.upper()).strip('_')


def _compact(value):
    return normalize_role(value).replace('_', '')


_ROLES_BY_COMPACT = {_compact(role.value): role for role in Role}


def parse_role(value):
    """
    Resolve a raw role string to a ``Role``, or None when unrecognized.
    Separators are ignored, so 'superadmin' and 'Super Admin' both match.
    """
    return _ROLES_BY_COMPACT.get(_compact(value))


def normalize_permission(name):
    """'canCreateTests', 'can_create_tests' and 'CAN-CREATE-TESTS' compare equal"""
    return _compact(name)


def parse_permissions(raw):
    """
    Permissions come either as a list of names or as an object of flags
    ({"canCreateTests": true}). Only truthy flags are kept.
    """
    if not raw:
        return frozenset()
    if isinstance(raw, dict):
        names = [name for name, enabled in raw.items() if enabled is True]
    elif isinstance(raw, (list, tuple, set, frozenset)):
        names = [name for name in raw if isinstance(name, str)]
    elif isinstance(raw, str):
        names = [part for part in raw.split(',') if part.strip()]
    else:
        names = []
    return frozenset(normalize_permission(name) for name in names)


class Principal:
    """
    The resolved identity an operation runs on behalf of. Built from a
    verified token; never looked up in the database.
    """
    is_authenticated = True
    is_anonymous = False

    def __init__(self, id, role=None, permissions=None):
        self.id = str(id)
        self.raw_role = role
        self.role = role if isinstance(role, Role) else parse_role(role)
        self.permissions = parse_permissions(permissions)

    @property
    def is_admin(self):
        return self.role in ADMIN_ROLES

    def has_permission(self, name):
        return normalize_permission(name) in self.permissions

    def __repr__(self):
        return f'Principal(id={self.id!r}, role={self.role!r})'
