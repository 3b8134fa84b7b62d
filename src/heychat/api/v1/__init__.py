"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    chats_router,
    contacts_router,
    realtime_router,
    reports_router,
    users_router,
)

__all__ = [
    "admin_router",
    "chats_router",
    "contacts_router",
    "realtime_router",
    "reports_router",
    "users_router",
]
