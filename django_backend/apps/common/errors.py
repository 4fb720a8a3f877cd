import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

from apps.common.results import Err

logger = logging.getLogger(__name__)


class AppError(exceptions.APIException):
    """Base class for errors raised by the service layer"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "APP_ERROR"
    default_detail = "Unexpected application error"

    def __init__(self, message=None, field=None):
        self.message = message or self.default_detail
        self.field = field
        super().__init__(detail=self.message)

    def to_dict(self):
        data = {"code": self.error_code, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_detail = "Invalid request data"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource, resource_id):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id {resource_id} not found")


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    default_detail = "Resource was modified by another request"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "AUTHORIZATION_ERROR"
    default_detail = "Insufficient permissions"


STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_401_UNAUTHORIZED: "AUTHENTICATION_ERROR",
    status.HTTP_403_FORBIDDEN: "AUTHORIZATION_ERROR",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def app_exception_handler(exc, context):
    """
    Render every API error as {"code", "message", "field"?, "details"?}.

    Serializer failures keep DRF's per-field messages under "details".
    """
    response = exception_handler(exc, context)
    if response is None:
        logger.error(f"Unhandled error in {context.get('view').__class__.__name__}: {exc}")
        return None

    if isinstance(exc, AppError):
        response.data = exc.to_dict()
    elif isinstance(exc, exceptions.ValidationError):
        response.data = {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "details": response.data,
        }
    else:
        if isinstance(exc, Http404):
            message = "Not found."
        elif isinstance(response.data, dict) and "detail" in response.data:
            message = str(response.data["detail"])
        else:
            message = str(exc)
        response.data = {
            "code": STATUS_CODES.get(response.status_code, "ERROR"),
            "message": message,
        }
    return response


def ensure_ok(result, field=None):
    """Return the value of an Ok rule result, raise ValidationError for an Err."""
    if isinstance(result, Err):
        raise ValidationError(result.error, field=field)
    return result.value
