"""Custom exception hierarchy for Folio."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from folio.api.ratelimit import RateLimitDecision


class FolioError(Exception):
    """Base exception for all Folio errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Content Errors -----


class NotFoundError(FolioError):
    """Requested resource was not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found: {identifier}",
            details={"resource": resource, "identifier": identifier},
        )


class MalformedContentError(FolioError):
    """A content record could not be parsed into its expected shape."""

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(
            message=f"Malformed {kind} content: {reason}",
            details={"kind": kind, "reason": reason},
        )


# ----- Configuration Errors -----


class ConfigurationError(FolioError):
    """Required configuration (credentials, model id, provider) is missing."""

    pass


# ----- External Service Errors -----


class ExternalServiceError(FolioError):
    """Error from an external service."""

    pass


class BackendError(ExternalServiceError):
    """The model backend answered with a non-success status or was unreachable."""

    def __init__(self, provider: str, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "no response"
        super().__init__(
            message=f"{provider} API error: {status} - {body}",
            details={"provider": provider, "status_code": status_code},
        )


class ProtocolError(ExternalServiceError):
    """The model backend returned a response without a usable choice or content."""

    pass


# ----- Request Boundary Errors -----


class RateLimitExceededError(FolioError):
    """Client exceeded the chat request budget for the current window."""

    def __init__(self, decision: "RateLimitDecision") -> None:
        self.decision = decision
        super().__init__(
            message="Rate limit exceeded. Please try again later.",
            details={"limit": decision.limit, "reset_at": decision.reset_at},
        )
