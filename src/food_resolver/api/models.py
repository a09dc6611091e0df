"""Request models for the HTTP API."""

from pydantic import BaseModel, Field


class WarmCacheRequest(BaseModel):
    """Identifiers to resolve ahead of time."""

    identifiers: list[str] = Field(min_length=1, max_length=500)
