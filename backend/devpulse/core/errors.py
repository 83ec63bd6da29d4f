"""errors.py — Domain exception hierarchy shared by every DevPulse component.

The upstream error classes (``RateLimitExceeded``, ``NetworkError``, ...) are
raised both by the live GitHub client and by the fault injector, so calling
code sees one taxonomy regardless of the active application mode.

Called by: every core module, the providers, and the API exception handlers
Depends on: Nothing
"""

from __future__ import annotations


class DevPulseError(Exception):
    """Base class for all DevPulse errors."""

    code = "DEVPULSE_ERROR"
    status_code = 500
    default_message = "Unexpected DevPulse error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        """Serialize into the ``{"code", "message"}`` shape used in HTTP bodies."""
        return {"code": self.code, "message": self.message}


class ValidationError(DevPulseError):
    """Invalid input: generation parameters, mode options, or an import blob."""

    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "The request contained invalid parameters."

    def __init__(self, message: str | None = None, problems: list[str] | None = None) -> None:
        self.problems = list(problems or [])
        super().__init__(message)


class StorageError(DevPulseError):
    """A persistence backend (database, Redis) failed to read or write."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503
    default_message = "Storage backend is unavailable."


class DatasetNotFoundError(DevPulseError):
    """The named dataset does not exist in the dataset store."""

    code = "DATASET_NOT_FOUND"
    status_code = 404
    default_message = "Dataset not found."


# ─── Upstream Errors ──────────────────────────────────────────────────────────
# Status codes follow the GitHub REST API. Simulated faults reuse these classes
# unchanged so consumers cannot tell an injected failure from a real one.


class UpstreamError(DevPulseError):
    """Base class for failures talking to the hosting API."""

    code = "UPSTREAM_ERROR"
    status_code = 502
    default_message = "The hosting API returned an error."


class RateLimitExceeded(UpstreamError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = "API rate limit exceeded. Please try again later."

    def __init__(self, message: str | None = None, retry_after: int | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class NetworkError(UpstreamError):
    code = "NETWORK_ERROR"
    status_code = 503
    default_message = "Network error occurred. Please check your connection."


class AuthenticationError(UpstreamError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication failed. Please sign in again."


class NotFound(UpstreamError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found."


class ServerError(UpstreamError):
    code = "SERVER_ERROR"
    status_code = 502
    default_message = "Server error occurred. Please try again later."
