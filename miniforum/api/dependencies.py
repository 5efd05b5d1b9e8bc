from functools import lru_cache

from miniforum.core.db import SessionLocal
from miniforum.domains.forum.store import ForumStore
from miniforum.domains.identity.services import IdentityService


@lru_cache()
def get_identity_service() -> IdentityService:
    return IdentityService(SessionLocal)


@lru_cache()
def get_forum_store() -> ForumStore:
    """Одно хранилище на процесс: в нем живут подписки"""
    return ForumStore(SessionLocal)
