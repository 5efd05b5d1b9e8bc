"""Интерфейсы внешних сервисов для модели представления и их
реализации поверх сервисов этого приложения в том же процессе.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from miniforum.domains.forum.store import ForumStore
from miniforum.domains.identity.entities import User
from miniforum.domains.identity.services import IdentityService

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[User]], Any]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    async def create_account(self, email: str, password: str) -> User: ...

    async def set_display_name(self, user: User, name: str) -> None: ...

    async def sign_in(self, email: str, password: str) -> User: ...

    async def sign_out(self) -> None: ...

    def on_session_change(self, callback: SessionListener) -> Unsubscribe: ...


class DocumentStore(Protocol):
    async def create(self, collection_path: str, fields: Dict[str, Any]) -> str: ...

    async def set(self, document_path: str, fields: Dict[str, Any]) -> None: ...

    async def update(self, document_path: str, fields: Dict[str, Any]) -> None: ...

    async def delete(self, document_path: str) -> None: ...

    def subscribe(
        self,
        collection_path: str,
        order_by: str,
        direction: str,
        callback: Callable[[list], Any],
        error_callback: Optional[Callable[[Exception], Any]] = None
    ) -> Unsubscribe: ...


class LocalIdentityProvider:
    """Клиентская сессия поверх IdentityService"""

    def __init__(self, identity: IdentityService):
        self.identity = identity
        self.current_user: Optional[User] = None
        self.token: Optional[str] = None
        self._listeners: List[SessionListener] = []

    async def create_account(self, email: str, password: str) -> User:
        """Регистрация; новый пользователь сразу входит в систему"""
        user = await self.identity.create_account(email, password)
        self._set_session(user, self.identity.issue_token(user))
        return user

    async def set_display_name(self, user: User, name: str) -> None:
        updated = await self.identity.set_display_name(user.id, name)
        # тот же объект, что видят подписчики сессии
        user.display_name = updated.display_name

    async def sign_in(self, email: str, password: str) -> User:
        user, token = await self.identity.sign_in(email, password)
        self._set_session(user, token)
        return user

    async def sign_out(self) -> None:
        self._set_session(None, None)

    def on_session_change(self, callback: SessionListener) -> Unsubscribe:
        """Подписка на вход/выход; текущее состояние сообщается сразу"""
        self._listeners.append(callback)
        callback(self.current_user)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_session(self, user: Optional[User], token: Optional[str]) -> None:
        self.current_user = user
        self.token = token
        logger.info(f"Session changed: {user.id if user else 'signed out'}")
        for listener in list(self._listeners):
            try:
                listener(user)
            except Exception:
                logger.exception("Session listener raised")


class LocalDocumentStore:
    """Доступ к ForumStore от имени текущего пользователя сессии"""

    def __init__(self, store: ForumStore, session: LocalIdentityProvider):
        self.store = store
        self.session = session

    async def create(self, collection_path: str, fields: Dict[str, Any]) -> str:
        return await self.store.create(collection_path, fields, auth=self.session.current_user)

    async def set(self, document_path: str, fields: Dict[str, Any]) -> None:
        await self.store.set(document_path, fields, auth=self.session.current_user)

    async def update(self, document_path: str, fields: Dict[str, Any]) -> None:
        await self.store.update(document_path, fields, auth=self.session.current_user)

    async def delete(self, document_path: str) -> None:
        await self.store.delete(document_path, auth=self.session.current_user)

    def subscribe(self, collection_path, order_by, direction, callback, error_callback=None) -> Unsubscribe:
        return self.store.subscribe(collection_path, order_by, direction, callback, error_callback)
