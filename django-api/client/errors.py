"""Client-side errors mirroring the API error codes."""


class CartClientError(Exception):
    """Base error for failed cart API calls."""

    def __init__(self, message: str, code: str | None = None, status: int | None = None, extra: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.extra = extra or {}


class ClubConflictError(CartClientError):
    @property
    def club_id(self) -> str | None:
        return self.extra.get("clubId")


class LimitExceededError(CartClientError):
    @property
    def limit(self) -> int | None:
        return self.extra.get("limit")


class NotFoundError(CartClientError):
    pass


class RateLimitedError(CartClientError):
    @property
    def retry_after(self) -> int:
        return int(self.extra.get("retryAfter", 1))


class UpstreamFailureError(CartClientError):
    pass


class StreamDisconnectedError(CartClientError):
    pass


class SchemaValidationError(CartClientError):
    """A response did not match the expected schema."""


class BusyError(CartClientError):
    """A mutation was requested while another one is still in flight."""


ERRORS_BY_CODE: dict[str, type[CartClientError]] = {
    "CLUB_CONFLICT": ClubConflictError,
    "LIMIT_EXCEEDED": LimitExceededError,
    "ITEM_NOT_FOUND": NotFoundError,
    "LINE_NOT_FOUND": NotFoundError,
    "TRANSACTION_NOT_FOUND": NotFoundError,
    "RATE_LIMITED": RateLimitedError,
    "UPSTREAM_FAILURE": UpstreamFailureError,
}


def error_from_body(status: int, body: dict) -> CartClientError:
    code = body.get("code")
    message = body.get("message") or f"Request failed with status {status}"
    extra = {k: v for k, v in body.items() if k not in ("success", "code", "message")}
    if code in ERRORS_BY_CODE:
        error_class = ERRORS_BY_CODE[code]
    elif status >= 500:
        error_class = UpstreamFailureError
    else:
        error_class = CartClientError
    return error_class(message, code=code, status=status, extra=extra)
