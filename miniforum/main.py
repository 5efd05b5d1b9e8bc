import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from miniforum import __version__
from miniforum.api.router import api_router
from miniforum.core.config import settings
from miniforum.core.db import init_db
from miniforum.core.errors import ProviderError, HTTP_STATUS_BY_CODE, humanize_error
from miniforum.core.logging_config import init_logging

init_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Создаем таблицы, если их нет
    await init_db()
    logger.info(f"{settings.service_name} ready")
    yield
    logger.info(f"Shutting down {settings.service_name}")


app = FastAPI(
    title="MiniForum",
    description="Minimal discussion forum with live thread and post subscriptions",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    status_code = HTTP_STATUS_BY_CODE.get(exc.code, 400)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": humanize_error(exc), "code": exc.code}
    )


app.include_router(api_router)


@app.get("/")
async def root():
    """Корневой эндпоинт"""
    return {
        "message": "MiniForum API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }
