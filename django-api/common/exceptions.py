"""Map domain and DRF errors to structured HTTP responses.

Every error body has the shape ``{"success": false, "code", "message"}``
plus any structured context carried by the error.
"""

import math

import structlog
from rest_framework import status
from rest_framework.exceptions import APIException, Throttled, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from common.errors import DomainError, ErrorCode

logger = structlog.get_logger(__name__)

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ITEM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ITEM_UNAVAILABLE: status.HTTP_409_CONFLICT,
    ErrorCode.LINE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CLUB_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.DATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.TICKET_MIX_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.LIMIT_EXCEEDED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.EMPTY_CART: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TRANSACTION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_SIGNATURE: status.HTTP_403_FORBIDDEN,
    ErrorCode.UPSTREAM_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


def error_body(code: ErrorCode, message: str, **extra) -> dict:
    return {"success": False, "code": code.value, "message": message, **extra}


def domain_error_response(exc: DomainError) -> Response:
    http_status = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
    response = Response(error_body(exc.code, exc.message, **exc.extra), status=http_status)
    retry_after = exc.extra.get("retryAfter")
    if retry_after is not None:
        response["Retry-After"] = str(retry_after)
    return response


def api_exception_handler(exc: Exception, context: dict) -> Response | None:
    """DRF ``EXCEPTION_HANDLER`` entry point."""
    if isinstance(exc, DomainError):
        logger.info("domain_error", code=exc.code.value, view=_view_name(context))
        return domain_error_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        logger.exception("unhandled_api_error", view=_view_name(context))
        return None

    if isinstance(exc, Throttled):
        retry_after = math.ceil(exc.wait) if exc.wait is not None else 1
        response.data = error_body(
            ErrorCode.RATE_LIMITED,
            "Too many requests, please try again later",
            retryAfter=retry_after,
        )
        response["Retry-After"] = str(retry_after)
    elif isinstance(exc, ValidationError):
        response.data = error_body(
            ErrorCode.INVALID_INPUT, "Invalid request", errors=exc.detail
        )
    elif isinstance(exc, APIException):
        response.data = {
            "success": False,
            "code": str(exc.default_code).upper(),
            "message": str(exc.detail),
        }
    return response


def _view_name(context: dict) -> str | None:
    view = context.get("view")
    return type(view).__name__ if view is not None else None
