from rest_framework.response import Response
from rest_framework import status
import logging
from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from apps.domain.exceptions import DocumentNotFound, LegalAcceptanceError, SignatureNotFound

logger = logging.getLogger('apps')

DOMAIN_ERROR_STATUS = {
    DocumentNotFound.code: status.HTTP_404_NOT_FOUND,
    SignatureNotFound.code: status.HTTP_404_NOT_FOUND,
}


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict = None, code: str = None) -> Response:
    response_data = {
        'error': message,
        'status': status_code
    }

    if code:
        response_data['code'] = code

    if details:
        response_data['details'] = details

    logger.error(f'Error response: {code or status_code} {message} - {details}')

    return Response(response_data, status=status_code)


def domain_error_response(error: LegalAcceptanceError) -> Response:
    status_code = DOMAIN_ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST)
    return error_response(str(error), status_code, details=error.context or None, code=error.code)


def _valid_ip(value):
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def get_client_ip(request) -> str:
    forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded_for:
        client_ip = _valid_ip(forwarded_for.split(',')[0].strip())
        if client_ip:
            return client_ip
        logger.warning(f'Ignoring unparsable X-Forwarded-For header: {forwarded_for[:100]}')
    return _valid_ip(request.META.get('REMOTE_ADDR', ''))


def get_user_agent(request) -> str:
    return request.META.get('HTTP_USER_AGENT', '')[:500]
