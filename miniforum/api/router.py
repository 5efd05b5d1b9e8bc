from fastapi import APIRouter

from miniforum.api.http import health_router, auth_router, users_router, threads_router
from miniforum.api.ws.sync import router as websocket_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(threads_router)
api_router.include_router(websocket_router)
