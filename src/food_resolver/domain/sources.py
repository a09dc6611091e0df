"""Static provider configuration models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RateLimitPolicy:
    """Fixed-window quota: at most ``max_calls`` per ``window_ms``."""

    window_ms: int
    max_calls: int

    @classmethod
    def per_minute(cls, max_calls: int) -> "RateLimitPolicy":
        return cls(window_ms=60_000, max_calls=max_calls)

    @classmethod
    def per_hour(cls, max_calls: int) -> "RateLimitPolicy":
        return cls(window_ms=3_600_000, max_calls=max_calls)


@dataclass(frozen=True)
class AccessPolicy:
    """Licensing and usage constraints declared by a provider."""

    license_name: str | None = None
    attribution_required: bool = False
    attribution_text: str | None = None
    rate_limit: RateLimitPolicy | None = None
    search_rate_limit: RateLimitPolicy | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class SourceDescriptor:
    """Immutable identity and policy of one provider in the resolution chain."""

    name: str
    priority_rank: int
    access_policy: AccessPolicy = field(default_factory=AccessPolicy)
    is_fallback: bool = False
