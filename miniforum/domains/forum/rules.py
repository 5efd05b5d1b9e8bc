"""Серверные правила доступа к документам.

Клиентские проверки владельца - только удобство интерфейса; здесь то же
самое проверяется до записи в базу.
"""
import logging
from typing import Any, Dict, Optional

from miniforum.core.errors import ProviderError, PERMISSION_DENIED, UNAUTHENTICATED
from miniforum.domains.forum.paths import DocumentRef, THREADS, POSTS, USERS

logger = logging.getLogger(__name__)

# Поля, которые любой вошедший пользователь может менять в чужой теме
THREAD_ACTIVITY_FIELDS = {"last_at"}
IMMUTABLE_FIELDS = {
    THREADS: {"author_id", "created_at"},
    POSTS: {"author_id", "created_at"},
    USERS: {"created_at"},
}


class ContentAccess:
    """Права на документ, принадлежащий одному автору"""

    def __init__(self, owner_id: Optional[str]):
        self.owner_id = owner_id

    def is_owner(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id == self.owner_id

    def can_delete(self, user_id: Optional[str]) -> bool:
        return self.is_owner(user_id)

    def can_edit(self, user_id: Optional[str]) -> bool:
        return self.is_owner(user_id)


def _deny(ref: DocumentRef, reason: str):
    logger.warning(f"Rule check failed for {ref.path}: {reason}")
    raise ProviderError(PERMISSION_DENIED, reason)


def require_auth(ref: DocumentRef, auth) -> str:
    if auth is None:
        logger.warning(f"Unauthenticated write to {ref.path}")
        raise ProviderError(UNAUTHENTICATED, "Sign in required")
    return auth.id


def check_create(ref: DocumentRef, values: Dict[str, Any], auth) -> None:
    user_id = require_auth(ref, auth)
    if ref.kind == USERS:
        return check_set(ref, values, auth)
    if values.get("author_id") != user_id:
        _deny(ref, "author_id must match the signed-in user")


def check_set(ref: DocumentRef, values: Dict[str, Any], auth) -> None:
    user_id = require_auth(ref, auth)
    if ref.kind != USERS or ref.doc_id != user_id:
        _deny(ref, "Only the owner can write this profile")


def check_update(ref: DocumentRef, current, values: Dict[str, Any], auth) -> None:
    user_id = require_auth(ref, auth)

    changed_immutable = {
        name for name in IMMUTABLE_FIELDS[ref.kind] & values.keys()
        if values[name] != getattr(current, name)
    }
    if changed_immutable:
        _deny(ref, f"Fields cannot be changed: {', '.join(sorted(changed_immutable))}")

    owner_id = current.id if ref.kind == USERS else current.author_id
    if ContentAccess(owner_id).can_edit(user_id):
        return
    # Обновление времени активности темы разрешено всем при ответе
    if ref.kind == THREADS and values.keys() <= THREAD_ACTIVITY_FIELDS:
        return
    _deny(ref, "Only the author can change this document")


def check_delete(ref: DocumentRef, current, auth) -> None:
    user_id = require_auth(ref, auth)
    owner_id = current.id if ref.kind == USERS else current.author_id
    if not ContentAccess(owner_id).can_delete(user_id):
        _deny(ref, "Only the author can delete this document")
