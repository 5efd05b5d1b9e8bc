from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./miniforum.db"
    sql_echo: bool = False

    jwt_secret: str = "miniforum-dev-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12

    min_password_length: int = 6
    # Удалять посты вместе с темой (по умолчанию посты остаются)
    cascade_thread_delete: bool = False

    service_name: str = "miniforum"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    """Получение закэшированных настроек"""
    return Settings()


settings = get_settings()
