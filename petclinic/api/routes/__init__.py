from __future__ import annotations

from petclinic.api.routes.analytics import router as analytics_router
from petclinic.api.routes.health import router as health_router
from petclinic.api.routes.owners import router as owners_router

__all__ = ["analytics_router", "health_router", "owners_router"]
