"""DRF exception handler giving every refusal a stable ``code``."""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from leads.exceptions import PipelineError
from reports.models import ImmutableReportError

logger = logging.getLogger("jewellery")


def pipeline_exception_handler(exc, context):
    """Render errors as ``{"code", "detail", "errors"?}``."""
    if isinstance(exc, PipelineError):
        set_rollback()
        data = {"code": exc.code, "detail": exc.detail}
        if exc.errors:
            data["errors"] = exc.errors
        if exc.status_code >= 500:
            logger.warning("Pipeline unavailable: %s", exc.detail)
        return Response(data, status=exc.status_code)

    if isinstance(exc, ImmutableReportError):
        set_rollback()
        return Response(
            {"code": "immutable_report", "detail": str(exc)},
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "code": "validation_error",
            "detail": "Some fields are missing or invalid.",
            "errors": response.data,
        }
    elif isinstance(response.data, dict) and "detail" in response.data:
        response.data = {
            "code": getattr(exc, "default_code", "error"),
            "detail": response.data["detail"],
        }
    return response
