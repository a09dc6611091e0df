"""Error taxonomy for food resolution."""


class ResolutionError(Exception):
    """Base class for all resolution errors."""


class IdentifierValidationError(ResolutionError):
    """The submitted identifier is malformed; no provider is consulted."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ProviderError(ResolutionError):
    """A single provider failed; the chain moves on to the next provider."""

    def __init__(self, source_name: str, message: str) -> None:
        super().__init__(f"{source_name}: {message}")
        self.source_name = source_name
        self.message = message


class ProviderTransportError(ProviderError):
    """Network, timeout or HTTP status failure talking to a provider."""


class ProviderDataError(ProviderError):
    """Provider returned a malformed or unexpected payload."""


class NotFoundError(ProviderError):
    """Provider reports that it does not know the identifier."""


class QuotaExceededError(ProviderError):
    """Provider rejected the call because its own quota is exhausted."""


class RateLimitExceeded(ResolutionError):
    """Local quota for a provider is exhausted for the current window."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Rate limit exceeded for {key}")
        self.key = key


class ExhaustionError(ResolutionError):
    """Every provider was tried or skipped and none produced a result."""


class CachePersistenceError(ResolutionError):
    """Reading or writing the durable cache failed."""
