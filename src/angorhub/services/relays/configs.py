"""Relay configuration models.

See Also:
    [RelayPublisher][angorhub.services.relays.RelayPublisher] and
        [RelayPool][angorhub.services.relays.RelayPool]: The classes that
        consume this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from angorhub.models.constants import DEFAULT_RELAY_URL
from angorhub.models.relay import normalize_relay_url


class RelayConfig(BaseModel):
    """Deadlines and the last-resort relay for read and write routing."""

    publish_timeout: float = Field(
        default=15.0, gt=0.0, le=120.0, description="Deadline for one relay publish attempt"
    )
    query_timeout: float = Field(
        default=10.0, gt=0.0, le=120.0, description="Deadline for one relay read"
    )
    connect_timeout: float = Field(
        default=10.0, gt=0.0, le=120.0, description="Deadline for one relay connection check"
    )
    default_relay: str = Field(
        default=DEFAULT_RELAY_URL,
        description="Relay used when no relay is eligible for a read or a write",
    )

    @field_validator("default_relay")
    @classmethod
    def _normalize_default_relay(cls, v: str) -> str:
        return normalize_relay_url(v)
