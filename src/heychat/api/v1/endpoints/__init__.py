"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .chats import router as chats_router
from .contacts import router as contacts_router
from .realtime import router as realtime_router
from .reports import router as reports_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "chats_router",
    "contacts_router",
    "realtime_router",
    "reports_router",
    "users_router",
]
