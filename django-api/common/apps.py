from django.apps import AppConfig
from django.conf import settings


class CommonConfig(AppConfig):
    name = "common"

    def ready(self) -> None:
        from common.ratelimit import RateLimitConfig, RateLimiter

        config = RateLimitConfig.from_settings(settings.NIGHTLIFE.get("RATE_LIMIT", {}))
        self.rate_limiter = RateLimiter(config)
