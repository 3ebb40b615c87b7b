"""
Typed errors raised by the service layer.

Every error carries the HTTP status it maps to; ``main.py`` registers a single
handler that renders them as ``{"detail": ...}`` responses. None of them is
retried by the services: the caller decides what to do next.
"""
from typing import Optional


class SocialAPIError(Exception):
    """Base class for all expected, request-scoped failures."""
    status_code: int = 400
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class RateLimited(SocialAPIError):
    status_code = 429
    default_detail = "Please wait for some time before trying again"


class PermissionDenied(SocialAPIError):
    status_code = 403
    default_detail = "Permission denied"


class NotFound(SocialAPIError):
    status_code = 404
    default_detail = "Not found"


class Conflict(SocialAPIError):
    status_code = 409
    default_detail = "Conflict"


class AlreadyLiked(Conflict):
    default_detail = "Post is already liked"


class NotLiked(Conflict):
    default_detail = "Post is not liked in the first place"


class AlreadyFollowing(Conflict):
    default_detail = "Already following this user"


class NotFollowing(Conflict):
    default_detail = "Not following this user"


class InvalidOperation(SocialAPIError):
    status_code = 400
    default_detail = "Invalid operation"


class AuthenticationFailed(SocialAPIError):
    status_code = 401
    default_detail = "Email or password incorrect"


class DataIntegrityInconsistency(SocialAPIError):
    """Raised when a denormalized counter cannot be written back, e.g. the
    owning post disappeared while its comments were being deleted."""
    status_code = 500
    default_detail = "Stored data is inconsistent"
