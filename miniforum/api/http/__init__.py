from miniforum.api.http.health import router as health_router
from miniforum.api.http.auth import router as auth_router
from miniforum.api.http.users import router as users_router
from miniforum.api.http.threads import router as threads_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "threads_router"
]
