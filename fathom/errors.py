"""Exception hierarchy and the user-facing error classifier."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType


class FathomError(Exception):
    """Base class for all Fathom errors."""


# -- Pre-stream errors (detected before any provider call) --


class MissingQuery(FathomError):
    def __init__(self) -> None:
        super().__init__("Query is required")


class MissingSearchCredential(FathomError):
    def __init__(self) -> None:
        super().__init__("Firecrawl API key not configured")


class MissingGenerationCredential(FathomError):
    def __init__(self) -> None:
        super().__init__("OpenAI API key not configured")


# -- Provider errors --


class ProviderError(FathomError):
    """A search or generation provider rejected or failed a request."""

    status_code: int | None = None

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str = "",
    ) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.provider = provider


class ProviderAuthError(ProviderError):
    status_code = 401


class ProviderQuotaError(ProviderError):
    status_code = 402


class RateLimited(ProviderError):
    status_code = 429


class ProviderTimeout(ProviderError):
    status_code = 504


class UnknownProviderError(ProviderError):
    pass


class GenerationFailure(ProviderError):
    """The generation stream broke after it had started."""


_ERRORS_BY_STATUS: dict[int, type[ProviderError]] = {
    401: ProviderAuthError,
    402: ProviderQuotaError,
    429: RateLimited,
    504: ProviderTimeout,
}


def provider_error(status_code: int | None, message: str, provider: str = "") -> ProviderError:
    """Build the ProviderError subclass matching an HTTP status."""
    cls = _ERRORS_BY_STATUS.get(status_code, UnknownProviderError) if status_code else UnknownProviderError
    return cls(message, status_code=status_code, provider=provider)


# -- Classification --


@dataclass(frozen=True)
class ErrorReport:
    """What the caller sees when a turn fails."""

    message: str
    suggestion: str | None = None
    code: int | None = None

    def to_dict(self) -> dict:
        data: dict = {"message": self.message}
        if self.suggestion:
            data["suggestion"] = self.suggestion
        if self.code is not None:
            data["code"] = self.code
        return data


KNOWN_ERRORS = MappingProxyType({
    401: ("Invalid API key", "Please check your Firecrawl API key is correct."),
    402: (
        "Insufficient credits",
        "You've run out of Firecrawl credits. Please upgrade your plan.",
    ),
    429: ("Rate limit exceeded", "Too many requests. Please wait a moment and try again."),
    504: (
        "Request timeout",
        "The search took too long. Try a simpler query or fewer sources.",
    ),
})


def _status_of(failure: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(failure, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(failure, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def classify_error(failure: BaseException) -> ErrorReport:
    """Turn any failure into a user-facing message with an optional remedy."""
    code = _status_of(failure)
    if code in KNOWN_ERRORS:
        message, suggestion = KNOWN_ERRORS[code]
        return ErrorReport(message=message, suggestion=suggestion, code=code)
    message = str(failure) or type(failure).__name__
    return ErrorReport(message=message, code=code)
