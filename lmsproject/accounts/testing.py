"""
Helpers for tests that call the API as a given principal
"""
import jwt
from django.conf import settings


def make_token(user_id, role=None, permissions=None, **claims):
    """Sign a token the way the identity service does"""
    payload = {'id': str(user_id), **claims}
    if role is not None:
        payload['role'] = role
    if permissions is not None:
        payload['permissions'] = permissions
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHMS[0])


class PrincipalClientMixin:
    """Mixin for APITestCase: ``self.login_as(...)`` sets the bearer token"""

    def login_as(self, user_id, role=None, permissions=None):
        token = make_token(user_id, role=role, permissions=permissions)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        return token

    def logout(self):
        self.client.credentials()
