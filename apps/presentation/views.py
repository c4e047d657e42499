import logging
from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes
from apps.domain.exceptions import LegalAcceptanceError
from apps.application.services.audit_trail_service import AuditTrailService
from apps.application.services.legal_acceptance_service import LegalAcceptanceService
from apps.application.services.legal_document_service import LegalDocumentService
from apps.presentation.serializers import (
    AcceptanceStatusSerializer,
    AuditEventSerializer,
    CompletionSerializer,
    LegalDocumentSummarySerializer,
    RegisterSerializer,
    RequiredDocumentSerializer,
    SignatureHistorySerializer,
    SignatureVerificationSerializer,
    SignatureReceiptSerializer,
    SignRequestSerializer,
)
from apps.presentation.utils import domain_error_response, error_response, get_client_ip, get_user_agent

logger = logging.getLogger('apps')


def _user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'name': user.get_full_name() or user.username,
    }


@extend_schema(
    summary='Register a new user',
    description='Creates a user account and returns an authentication token. The new user still has to accept every required legal document.',
    tags=['Authentication'],
    request=RegisterSerializer,
    responses={
        201: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Registration',
            value={
                'firstName': 'Ada',
                'lastName': 'Lovelace',
                'email': 'ada@example.com',
                'password': 'analytical-engine',
                'company': 'SmartStart'
            },
            request_only=True
        )
    ],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = RegisterSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid registration data', status.HTTP_400_BAD_REQUEST, serializer.errors, code='ValidationError')

    user = serializer.save()
    logger.info(f'User {user.id} registered')
    return Response({
        'user': _user_payload(user),
        'token': user.auth_token.key,
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    summary='Obtain an authentication token',
    description='Authenticates with username and password and returns a token. Send it as "Authorization: Token <token>" on the other endpoints.',
    tags=['Authentication'],
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'username': {'type': 'string', 'example': 'ada@example.com'},
                'password': {'type': 'string', 'format': 'password'},
            },
            'required': ['username', 'password']
        }
    },
    responses={
        200: {
            'type': 'object',
            'properties': {
                'token': {'type': 'string', 'example': '9944b09199c62bcf9418ad846dd0e4bbdfc6ee4b'}
            }
        },
        400: OpenApiTypes.OBJECT,
    },
)
@api_view(['POST'])
@permission_classes([AllowAny])
def custom_obtain_auth_token(request):
    username = request.data.get('username')
    password = request.data.get('password')

    if username is None or password is None:
        return error_response('Please provide username and password', status.HTTP_400_BAD_REQUEST, code='ValidationError')

    user = authenticate(username=username, password=password)

    if not user:
        return error_response('Invalid credentials', status.HTTP_400_BAD_REQUEST, code='InvalidCredentials')

    token, created = Token.objects.get_or_create(user=user)
    return Response({'token': token.key}, status=status.HTTP_200_OK)


@extend_schema(
    summary='List required legal documents',
    description='Returns every active required legal document in signing order, with the caller\'s signing state for each.',
    tags=['Legal'],
    responses={200: RequiredDocumentSerializer(many=True)},
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def required_documents(request):
    service = LegalAcceptanceService()
    required = service.get_required(request.user)
    return Response(RequiredDocumentSerializer(required, many=True).data, status=status.HTTP_200_OK)


@extend_schema(
    summary='Sign a legal document',
    description='Records the caller\'s acceptance of one required document. A document can be signed at most once per user.',
    tags=['Legal'],
    request=SignRequestSerializer,
    responses={
        201: SignatureReceiptSerializer,
        400: OpenApiTypes.OBJECT,
        404: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Sign the terms of service',
            value={
                'documentId': 1,
                'signatureData': {
                    'name': 'Ada Lovelace',
                    'email': 'ada@example.com',
                    'userAgent': 'Mozilla/5.0',
                    'signedAt': '2024-01-01T12:00:00Z'
                }
            },
            request_only=True
        )
    ],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sign_document(request):
    serializer = SignRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid signature request', status.HTTP_400_BAD_REQUEST, serializer.errors, code='ValidationError')

    service = LegalAcceptanceService()
    try:
        signature = service.sign(
            request.user,
            serializer.validated_data['documentId'],
            signature_data=dict(serializer.validated_data.get('signatureData') or {}),
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except LegalAcceptanceError as e:
        return domain_error_response(e)
    except Exception as e:
        logger.error(f'Error signing legal document: {str(e)}')
        return error_response('Failed to sign document', status.HTTP_500_INTERNAL_SERVER_ERROR, {'detail': str(e)})

    return Response(SignatureReceiptSerializer(signature).data, status=status.HTTP_201_CREATED)


@extend_schema(
    summary='Legal acceptance status',
    description='Counts of required and signed documents for the caller.',
    tags=['Legal'],
    responses={200: AcceptanceStatusSerializer},
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def acceptance_status(request):
    service = LegalAcceptanceService()
    acceptance = service.status(request.user)
    payload = {
        'total_documents': acceptance.total_documents,
        'signed_documents': acceptance.signed_documents,
        'completion_percentage': acceptance.completion_percentage,
        'is_complete': acceptance.is_complete,
        'last_updated': timezone.now(),
    }
    return Response(AcceptanceStatusSerializer(payload).data, status=status.HTTP_200_OK)


@extend_schema(
    summary='Record completion',
    description='Appends a completion event once the caller has signed every required document. Repeating the call returns the existing event.',
    tags=['Audit'],
    request=None,
    responses={
        200: CompletionSerializer,
        201: CompletionSerializer,
        400: OpenApiTypes.OBJECT,
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete_acceptance(request):
    service = LegalAcceptanceService()
    try:
        event, created = service.record_completion(
            request.user,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except LegalAcceptanceError as e:
        return domain_error_response(e)

    return Response(
        CompletionSerializer(event).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@extend_schema(
    summary='Signing history',
    description='The caller\'s signatures, each with a hash check, and the audit events recorded for them.',
    tags=['Audit'],
    responses={200: OpenApiTypes.OBJECT},
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def acceptance_history(request):
    service = LegalAcceptanceService()
    history = service.history(request.user)
    return Response({
        'signatures': SignatureHistorySerializer(history['signatures'], many=True).data,
        'events': AuditEventSerializer(history['events'], many=True).data,
    }, status=status.HTTP_200_OK)


@extend_schema(
    summary='Send a signing reminder',
    description='Emails a user the list of required documents they have not signed yet and records a reminder event. Staff only.',
    tags=['Audit'],
    request=None,
    responses={
        201: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
        404: OpenApiTypes.OBJECT,
    },
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
def send_reminder(request, user_id):
    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        return error_response(f'User {user_id} not found', status.HTTP_404_NOT_FOUND, code='UserNotFound')

    service = LegalAcceptanceService()
    try:
        event = service.send_reminder(
            user,
            actor=request.user,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except LegalAcceptanceError as e:
        return domain_error_response(e)

    return Response({
        'auditEventId': event.id,
        'pendingDocuments': event.details['pendingDocumentIds'],
        'delivered': event.details['delivered'],
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    summary='Verify a signature',
    description='Recomputes the signature hash and checks it against the stored one and against the document\'s current content. Users can verify their own signatures; staff can verify any.',
    tags=['Audit'],
    responses={
        200: SignatureVerificationSerializer,
        404: OpenApiTypes.OBJECT,
    },
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_signature(request, signature_id):
    service = LegalAcceptanceService()
    try:
        signature = service.get_signature(signature_id, user=None if request.user.is_staff else request.user)
    except LegalAcceptanceError as e:
        return domain_error_response(e)

    return Response(SignatureVerificationSerializer(signature).data, status=status.HTTP_200_OK)


@extend_schema(
    summary='Audit statistics',
    description='Audit event counts, overall and by action and severity. Staff only.',
    tags=['Audit'],
    responses={200: OpenApiTypes.OBJECT},
)
@api_view(['GET'])
@permission_classes([IsAdminUser])
def audit_statistics(request):
    stats = AuditTrailService().statistics()
    return Response({
        'totalEvents': stats['total'],
        'byAction': stats['by_action'],
        'bySeverity': stats['by_severity'],
    }, status=status.HTTP_200_OK)


@extend_schema(
    summary='Tampered ledger entries',
    description='Ids of audit events and signatures whose stored hash no longer matches their content. Staff only.',
    tags=['Audit'],
    responses={200: OpenApiTypes.OBJECT},
)
@api_view(['GET'])
@permission_classes([IsAdminUser])
def audit_tampered(request):
    service = AuditTrailService()
    events = service.find_tampered()
    signatures = service.find_tampered_signatures()
    if events or signatures:
        logger.warning(f'Ledger integrity check found {len(events)} event(s) and {len(signatures)} signature(s) altered')
    return Response({
        'events': events,
        'signatures': signatures,
    }, status=status.HTTP_200_OK)


@extend_schema(
    summary='Document audit history',
    description='A legal document, any version, with every audit event recorded against it. Staff only.',
    tags=['Audit'],
    responses={
        200: OpenApiTypes.OBJECT,
        404: OpenApiTypes.OBJECT,
    },
)
@api_view(['GET'])
@permission_classes([IsAdminUser])
def document_history(request, document_id):
    try:
        document = LegalDocumentService().get(document_id)
    except LegalAcceptanceError as e:
        return domain_error_response(e)

    events = AuditTrailService().history_for_document(document)
    return Response({
        'document': LegalDocumentSummarySerializer(document).data,
        'events': AuditEventSerializer(events, many=True).data,
    }, status=status.HTTP_200_OK)
