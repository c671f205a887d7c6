"""Health refresher service package.

Re-exports all public symbols::

    from angorhub.services.refresher import HealthRefresher, RefresherConfig
"""

from .configs import RefresherConfig
from .service import HealthRefresher


__all__ = [
    "HealthRefresher",
    "RefresherConfig",
]
