"""
Health check endpoint - reports API and database availability
"""
import logging

from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class HealthCheckService:
    """Service for checking the components the API depends on"""

    @staticmethod
    def check_database():
        try:
            with connection.cursor() as cursor:
                cursor.execute('SELECT 1')
            return {'status': 'healthy', 'database': 'connected'}
        except DatabaseError as e:
            logger.error(f'Database health check failed: {e}')
            return {'status': 'unhealthy', 'database': 'disconnected', 'error': str(e)}


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """GET /api/health/ - 200 when the database answers, 503 otherwise"""
    database = HealthCheckService.check_database()
    healthy = database['status'] == 'healthy'
    return Response(
        {'status': 'healthy' if healthy else 'unhealthy', 'checks': {'database': database}},
        status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
