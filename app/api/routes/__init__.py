from __future__ import annotations

from app.api.routes.bookings import router as bookings_router
from app.api.routes.fallback import StaticAssets
from app.api.routes.fallback import router as fallback_router
from app.api.routes.health import router as health_router
from app.api.routes.reviews import router as reviews_router
from app.api.routes.tours import router as tours_router
from app.api.routes.users import router as users_router
from app.api.routes.views import router as views_router
from app.api.routes.webhook import WEBHOOK_PATH, webhook_checkout

__all__ = [
    "WEBHOOK_PATH",
    "StaticAssets",
    "bookings_router",
    "fallback_router",
    "health_router",
    "reviews_router",
    "tours_router",
    "users_router",
    "views_router",
    "webhook_checkout",
]
