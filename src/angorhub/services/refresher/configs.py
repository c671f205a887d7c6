"""Health refresher configuration models.

See Also:
    [HealthRefresher][angorhub.services.refresher.HealthRefresher]: The
        service class that consumes these configurations.
    [BaseServiceConfig][angorhub.core.base_service.BaseServiceConfig]:
        Base class providing ``interval``, ``max_consecutive_failures``,
        and ``metrics`` fields.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from angorhub.core.base_service import BaseServiceConfig
from angorhub.models.constants import NetworkId


class RefresherConfig(BaseServiceConfig):
    """Health refresher configuration."""

    interval: float = Field(
        default=60.0,
        ge=5.0,
        description="Seconds between health checks",
    )
    networks: list[NetworkId] = Field(
        default_factory=lambda: list(NetworkId),
        description="Networks whose indexers are kept tested",
    )
    force: bool = Field(
        default=False,
        description="Test every cycle even when the cached status is still fresh",
    )

    @field_validator("networks")
    @classmethod
    def networks_not_empty(cls, v: list[NetworkId]) -> list[NetworkId]:
        if not v:
            raise ValueError("networks list must not be empty")
        return list(dict.fromkeys(v))
