import logging
from django.db import DatabaseError, connection
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema
from apps.domain.models import LegalDocument

logger = logging.getLogger('apps')


@extend_schema(
    summary='Health check',
    description='Reports API health, database connectivity and how many required legal documents are published.',
    tags=['Health'],
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {
                    'type': 'string',
                    'example': 'ok',
                },
                'database': {
                    'type': 'string',
                    'example': 'healthy',
                    'description': 'healthy or unhealthy'
                },
                'requiredDocuments': {
                    'type': 'integer',
                    'nullable': True,
                    'example': 4,
                    'description': 'Active required legal documents, null when the database is unreachable'
                }
            }
        }
    },
)
@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    required_documents = None
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        required_documents = LegalDocument.objects.required().count()
        db_status = "healthy"
    except DatabaseError as e:
        logger.error(f'Health check database error: {str(e)}')
        db_status = "unhealthy"

    return Response({
        "status": "ok",
        "database": db_status,
        "requiredDocuments": required_documents,
    }, status=status.HTTP_200_OK)
