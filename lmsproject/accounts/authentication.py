"""
JWT authentication for principals issued by the identity service
"""
import logging

import jwt
from django.conf import settings
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from .roles import Principal

logger = logging.getLogger(__name__)

ID_CLAIMS = ('id', 'user_id', 'userId', 'uid', 'sub')


def principal_from_claims(payload):
    """Build a Principal from decoded token claims"""
    principal_id = next((payload[claim] for claim in ID_CLAIMS if payload.get(claim)), None)
    if not principal_id:
        raise AuthenticationFailed('Invalid token: missing user id')
    return Principal(
        id=principal_id,
        role=payload.get('role'),
        permissions=payload.get('permissions'),
    )


class PrincipalJWTAuthentication(BaseAuthentication):
    """
    Verifies 'Authorization: Bearer <token>' and resolves the principal
    from the token claims alone. Requests without a bearer token are left
    unauthenticated.
    """
    keyword = 'Bearer'

    def authenticate(self, request):
        auth_header = request.META.get('HTTP_AUTHORIZATION', '')

        if not auth_header.startswith(f'{self.keyword} '):
            return None

        token = auth_header[len(self.keyword) + 1:].strip()
        if not token:
            raise AuthenticationFailed('Invalid token header')

        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=settings.JWT_ALGORITHMS,
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationFailed('Token has expired')
        except jwt.InvalidTokenError:
            logger.warning('Rejected invalid bearer token')
            raise AuthenticationFailed('Invalid token')

        return (principal_from_claims(payload), token)

    def authenticate_header(self, request):
        return self.keyword
