import logging
from typing import Optional, Union

from miniforum.core.config import settings

LOG_FORMAT = "%(asctime)s | {service} | %(levelname)s | %(name)s | %(message)s"

# Библиотеки, которые на INFO пишут слишком много
NOISY_LOGGERS = ("httpx", "uvicorn.access", "aiosqlite")


def init_logging(service_name: Optional[str] = None, level: Union[int, str, None] = None) -> None:
    """Настройка корневого логгера сервиса.

    По умолчанию имя сервиса и уровень берутся из настроек. Повторный
    вызов заменяет ранее установленные обработчики.
    """
    service_name = service_name or settings.service_name
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT.format(service=service_name),
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # с sql_echo SQL-запросы нужны в логе
    if not settings.sql_echo:
        logging.getLogger("sqlalchemy.engine.Engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging initialized for {service_name}")
