"""Resolve who owns a cart and who a request should be rate limited as."""

from dataclasses import dataclass

from rest_framework.request import Request


@dataclass(frozen=True)
class CartOwner:
    """Authenticated user or anonymous session that owns a cart."""

    user_id: str | None = None
    session_key: str | None = None

    def __post_init__(self) -> None:
        if not self.user_id and not self.session_key:
            raise ValueError("CartOwner needs a user id or a session key")

    @property
    def key(self) -> str:
        if self.user_id:
            return f"user:{self.user_id}"
        return f"session:{self.session_key}"

    def __str__(self) -> str:
        return self.key


def client_ip(request: Request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "unknown")


def resolve_owner(request: Request) -> CartOwner:
    """Return the cart owner for ``request``, creating a session if needed."""
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return CartOwner(user_id=str(user.pk))
    session = request.session
    if not session.session_key:
        session.save()
    return CartOwner(session_key=session.session_key)


def rate_limit_identifier(request: Request) -> str:
    """User id, else session key, else client IP."""
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return f"user:{user.pk}"
    session = getattr(request, "session", None)
    if session is not None and session.session_key:
        return f"session:{session.session_key}"
    return f"ip:{client_ip(request)}"
