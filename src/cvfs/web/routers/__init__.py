from cvfs.web.routers.auth import router as auth_router
from cvfs.web.routers.events import router as events_router
from cvfs.web.routers.files import router as files_router
from cvfs.web.routers.shares import router as shares_router
from cvfs.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "events_router",
    "files_router",
    "shares_router",
    "users_router",
]
