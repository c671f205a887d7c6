"""Deny-list configuration models.

See Also:
    [DenyListResolver][angorhub.services.denylist.DenyListResolver]: The
        class that consumes this configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from angorhub.models.constants import CORS_PROXIES, DENY_LIST_URL, FALLBACK_DENY_LIST


class DenyListConfig(BaseModel):
    """Transport chain and caching for the moderation list.

    ``proxy_url`` is the first transport: an endpoint under the operator's
    control that serves the list. It is skipped when unset.
    """

    proxy_url: str | None = Field(
        default=None, description="Operator-controlled endpoint tried before the canonical URL"
    )
    url: str = Field(default=DENY_LIST_URL, description="Canonical deny-list URL")
    cors_proxies: list[str] = Field(
        default_factory=lambda: list(CORS_PROXIES),
        description="Relay proxies tried in order; the encoded URL is appended",
    )
    fallback: list[str] = Field(
        default_factory=lambda: list(FALLBACK_DENY_LIST),
        description="Identifiers used when every transport fails",
    )
    cache_ttl: float = Field(
        default=300.0, ge=0.0, description="Seconds a resolved list is served before revalidation"
    )
    request_timeout: float = Field(
        default=10.0, gt=0.0, le=120.0, description="Timeout for one transport attempt"
    )
