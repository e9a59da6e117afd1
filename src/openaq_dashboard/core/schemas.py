"""
Pydantic models for the client boundary.
Why: every caller gets the same envelope shape, whatever upstream sends.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

RATE_LIMIT_HEADERS = {
    "used": "x-ratelimit-used",
    "remaining": "x-ratelimit-remaining",
    "reset": "x-ratelimit-reset",
}


class RateLimitHeaders(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    used: Optional[str] = None
    remaining: Optional[str] = None
    reset: Optional[str] = None

    @classmethod
    def from_response_headers(cls, headers: Mapping[str, str]) -> "RateLimitHeaders":
        """Pick the quota headers out of a (case-insensitive) header mapping."""
        return cls(**{field: headers.get(name) for field, name in RATE_LIMIT_HEADERS.items()})


class ResponseEnvelope(BaseModel):
    """Upstream body verbatim plus rate-limit accounting."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    data: Any
    headers: RateLimitHeaders = Field(default_factory=RateLimitHeaders)


class ParameterRecord(BaseModel):
    remote_id: int = Field(..., ge=0)
    name: str = Field(..., min_length=1)
    display_name: Optional[str] = None
    units: Optional[str] = None
    description: Optional[str] = None
