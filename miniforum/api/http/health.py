from fastapi import APIRouter

from miniforum.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Проверка доступности сервиса"""
    return {
        "status": "healthy",
        "service": settings.service_name
    }
