"""DRF throttle backed by the per-process :class:`RateLimiter`."""

from django.apps import apps
from rest_framework.request import Request
from rest_framework.throttling import BaseThrottle

from common.identity import rate_limit_identifier
from common.ratelimit import RateLimiter


def get_rate_limiter() -> RateLimiter:
    return apps.get_app_config("common").rate_limiter


class CartRateThrottle(BaseThrottle):
    """Window, minute and burst caps per user, session or IP."""

    def __init__(self) -> None:
        self._retry_after: int | None = None

    def allow_request(self, request: Request, view) -> bool:
        decision = get_rate_limiter().hit(rate_limit_identifier(request))
        if decision.allowed:
            return True
        self._retry_after = decision.retry_after
        return False

    def wait(self) -> float | None:
        return self._retry_after
