"""Error taxonomy shared by services and mapped to HTTP responses in main."""

from typing import Any


class AppError(Exception):
    """Base for errors that reach the request boundary as a structured response."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str, **extra: Any) -> None:
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.kind, "message": self.message}
        payload.update(self.extra)
        return payload


class ValidationError(AppError):
    """Missing or malformed input; the client must fix it and retry."""

    kind = "ValidationError"
    status_code = 400


class AuthenticationError(AppError):
    """Bad credentials or an invalid/expired token. Never says which."""

    kind = "AuthenticationError"
    status_code = 401


class EntitlementError(AppError):
    """Tier-gated capability denied; kind is the deny reason."""

    status_code = 402

    def __init__(self, reason: str, message: str, *, required_tier: str, current_tier: str) -> None:
        super().__init__(message, requiredTier=required_tier, currentTier=current_tier)
        self.kind = reason
        self.required_tier = required_tier
        self.current_tier = current_tier


class ForbiddenError(AppError):
    """Authenticated, but the role does not allow the action."""

    kind = "ForbiddenError"
    status_code = 403


class NotFoundError(AppError):
    kind = "NotFoundError"
    status_code = 404


class ConflictError(AppError):
    """Uniqueness violation; the client must choose a different identifier."""

    kind = "ConflictError"
    status_code = 409


class ServiceUnavailableError(AppError):
    """A required external collaborator (e.g. Stripe) is not configured."""

    kind = "ServiceUnavailableError"
    status_code = 503


class InternalError(AppError):
    kind = "InternalError"
    status_code = 500
