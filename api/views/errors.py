import logging

from rest_framework import status
from rest_framework.response import Response
from django.core.exceptions import ObjectDoesNotExist, ValidationError

logger = logging.getLogger('api.views')


def error_response(code, message, http_status, details=None):
    error = {
        'code': code,
        'message': message,
    }
    if details is not None:
        error['details'] = details
    return Response({'error': error}, status=http_status)


def validation_error(serializer):
    return error_response(
        'VALIDATION_ERROR',
        'Invalid request body',
        status.HTTP_400_BAD_REQUEST,
        details=serializer.errors,
    )


def service_error(exc):
    """
    Переводит ошибку сервиса в HTTP-ответ: не найдено -> 404,
    нарушение доменных правил -> 409, все остальное -> 500.
    """
    if isinstance(exc, ObjectDoesNotExist):
        return error_response(
            getattr(exc, 'code', 'NOT_FOUND'),
            str(exc),
            status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, ValidationError):
        return error_response(
            exc.code if getattr(exc, 'code', None) else 'VALIDATION_ERROR',
            ' '.join(exc.messages),
            status.HTTP_409_CONFLICT,
        )

    logger.error("Unhandled service error", exc_info=exc)
    return error_response('SERVER_ERROR', 'Internal server error', status.HTTP_500_INTERNAL_SERVER_ERROR)
