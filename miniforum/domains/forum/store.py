"""Хранилище документов форума с живыми подписками.

Каждая подписка получает полный упорядоченный набор документов своей
коллекции: сначала асинхронно после подписки, затем после каждой
записи в эту коллекцию.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from miniforum.core.config import settings
from miniforum.core.errors import ProviderError, INVALID_ARGUMENT, NOT_FOUND
from miniforum.core.db import provider_session
from miniforum.db.models import TITLE_LENGTH, AUTHOR_NAME_LENGTH, NAME_LENGTH, EMAIL_LENGTH
from miniforum.db.repositories import ThreadRepository, PostRepository, ProfileRepository
from miniforum.domains.forum import rules
from miniforum.domains.forum.paths import (
    DocumentRef, THREADS, POSTS, USERS, ASCENDING, DESCENDING,
    parse_collection, parse_document, posts_path
)

logger = logging.getLogger(__name__)


class ServerTimestamp:
    """Значение поля, которое хранилище заменит своим временем записи"""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()

FIELDS = {
    THREADS: {"title", "author_id", "author_name", "created_at", "last_at"},
    POSTS: {"text", "author_id", "author_name", "created_at"},
    USERS: {"display_name", "email", "created_at"},
}
TEXT_FIELDS = {THREADS: "title", POSTS: "text", USERS: "display_name"}
TIMESTAMP_FIELDS = {"created_at", "last_at"}
# Длины строковых колонок
FIELD_LIMITS = {
    "title": TITLE_LENGTH,
    "author_name": AUTHOR_NAME_LENGTH,
    "display_name": NAME_LENGTH,
    "email": EMAIL_LENGTH,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LiveQuery:
    """Подписка на упорядоченную коллекцию"""

    def __init__(
        self,
        store: "ForumStore",
        ref: DocumentRef,
        order_by: str,
        direction: str,
        callback: Callable[[list], Any],
        error_callback: Optional[Callable[[ProviderError], Any]] = None
    ):
        self.store = store
        self.ref = ref
        self.order_by = order_by
        self.direction = direction
        self.callback = callback
        self.error_callback = error_callback
        self.active = True
        # Обновления одной подписки выполняются строго по очереди
        self._lock = asyncio.Lock()

    async def refresh(self) -> None:
        async with self._lock:
            if not self.active:
                return
            try:
                docs = await self.store.query(self.ref.collection_path, self.order_by, self.direction)
            except ProviderError as e:
                self._fail(e)
                return
            if self.active:
                self._call(self.callback, docs)

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self.store._forget(self)
        logger.debug(f"Live query on {self.ref.collection_path} cancelled")

    def _fail(self, error: ProviderError) -> None:
        logger.error(f"Live query on {self.ref.collection_path} failed: {error.message}")
        if self.active and self.error_callback is not None:
            self._call(self.error_callback, error)

    def _call(self, func, arg) -> None:
        # ошибка одного подписчика не должна ломать запись и других подписчиков
        try:
            func(arg)
        except Exception:
            logger.exception(f"Subscriber of {self.ref.collection_path} raised")


class ForumStore:
    """Хранилище документов: темы, посты и профили"""

    def __init__(
        self,
        session_factory,
        clock: Optional[Callable[[], datetime]] = None,
        cascade_thread_delete: Optional[bool] = None
    ):
        self.session_factory = session_factory
        self.clock = clock or utcnow
        if cascade_thread_delete is None:
            cascade_thread_delete = settings.cascade_thread_delete
        self.cascade_thread_delete = cascade_thread_delete
        self._live: Dict[str, List[LiveQuery]] = {}
        self._pending: Set[asyncio.Task] = set()

    # -------- запись --------

    async def create(self, collection_path: str, fields: Dict[str, Any], auth=None) -> str:
        """Добавление документа с новым id в коллекцию"""
        ref = parse_collection(collection_path)
        if ref.kind == USERS:
            raise ProviderError(INVALID_ARGUMENT, "Profiles are written with set()")
        values = self._prepare(ref, fields, partial=False)
        rules.check_create(ref, values, auth)

        async with provider_session(self.session_factory) as session:
            if ref.kind == THREADS:
                doc = await ThreadRepository(session).create(values)
            else:
                if not await ThreadRepository(session).exists(ref.thread_id):
                    raise ProviderError(NOT_FOUND, "Thread not found")
                doc = await PostRepository(session).create(ref.thread_id, values)

        logger.info(f"Created {ref.collection_path}/{doc.id}")
        await self._publish(ref.collection_path)
        return doc.id

    async def set(self, document_path: str, fields: Dict[str, Any], auth=None) -> None:
        """Запись документа с известным id (только профили)"""
        ref = parse_document(document_path)
        if ref.kind != USERS:
            raise ProviderError(INVALID_ARGUMENT, "Only profiles can be written with set()")
        values = self._prepare(ref, fields, partial=False)
        rules.check_set(ref, values, auth)

        async with provider_session(self.session_factory) as session:
            await ProfileRepository(session).put(ref.doc_id, values)

        logger.info(f"Wrote {ref.path}")
        await self._publish(ref.collection_path)

    async def update(self, document_path: str, fields: Dict[str, Any], auth=None) -> None:
        """Частичное обновление существующего документа"""
        ref = parse_document(document_path)
        values = self._prepare(ref, fields, partial=True)

        async with provider_session(self.session_factory) as session:
            current = await self._load(session, ref)
            rules.check_update(ref, current, values, auth)
            if ref.kind == THREADS:
                await ThreadRepository(session).update(ref.doc_id, values)
            elif ref.kind == POSTS:
                await PostRepository(session).update(ref.thread_id, ref.doc_id, values)
            else:
                await ProfileRepository(session).update(ref.doc_id, values)

        logger.debug(f"Updated {ref.path}: {sorted(values)}")
        await self._publish(ref.collection_path)

    async def delete(self, document_path: str, auth=None) -> None:
        """Удаление документа"""
        ref = parse_document(document_path)
        changed = [ref.collection_path]

        async with provider_session(self.session_factory) as session:
            current = await self._load(session, ref)
            rules.check_delete(ref, current, auth)
            if ref.kind == THREADS:
                removed = await ThreadRepository(session).delete(
                    ref.doc_id, with_posts=self.cascade_thread_delete
                )
                if self.cascade_thread_delete:
                    changed.append(posts_path(ref.doc_id))
                    logger.info(f"Deleted {removed} posts of {ref.path}")
            elif ref.kind == POSTS:
                await PostRepository(session).delete(ref.thread_id, ref.doc_id)
            else:
                await ProfileRepository(session).delete(ref.doc_id)

        logger.info(f"Deleted {ref.path}")
        await self._publish(*changed)

    # -------- чтение --------

    async def get(self, document_path: str):
        """Документ по пути или None"""
        ref = parse_document(document_path)
        async with provider_session(self.session_factory) as session:
            return await self._get(session, ref)

    async def query(self, collection_path: str, order_by: str = "created_at", direction: str = ASCENDING) -> list:
        """Все документы коллекции в заданном порядке"""
        ref = parse_collection(collection_path)
        if direction not in (ASCENDING, DESCENDING):
            raise ProviderError(INVALID_ARGUMENT, f"Unknown direction {direction!r}")
        descending = direction == DESCENDING

        async with provider_session(self.session_factory) as session:
            if ref.kind == THREADS:
                return await ThreadRepository(session).get_all(order_by, descending)
            if ref.kind == POSTS:
                return await PostRepository(session).get_by_thread(ref.thread_id, order_by, descending)
            return await ProfileRepository(session).get_all(order_by, descending)

    def subscribe(
        self,
        collection_path: str,
        order_by: str,
        direction: str,
        callback: Callable[[list], Any],
        error_callback: Optional[Callable[[ProviderError], Any]] = None
    ) -> Callable[[], None]:
        """Живая подписка на коллекцию. Возвращает функцию отписки"""
        ref = parse_collection(collection_path)
        live = LiveQuery(self, ref, order_by, direction, callback, error_callback)
        self._live.setdefault(ref.collection_path, []).append(live)
        self._schedule(live)
        logger.debug(f"Live query on {ref.collection_path} opened")
        return live.cancel

    async def drain(self) -> None:
        """Дождаться доставки всех запланированных обновлений"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def subscriber_count(self, collection_path: Optional[str] = None) -> int:
        if collection_path is not None:
            return len(self._live.get(collection_path, ()))
        return sum(len(queries) for queries in self._live.values())

    # -------- внутреннее --------

    def _schedule(self, live: LiveQuery) -> None:
        task = asyncio.get_running_loop().create_task(live.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _forget(self, live: LiveQuery) -> None:
        queries = self._live.get(live.ref.collection_path)
        if queries and live in queries:
            queries.remove(live)
            if not queries:
                del self._live[live.ref.collection_path]

    async def _publish(self, *collection_paths: str) -> None:
        for path in collection_paths:
            for live in list(self._live.get(path, ())):
                await live.refresh()

    async def _get(self, session, ref: DocumentRef):
        if ref.kind == THREADS:
            return await ThreadRepository(session).get_by_id(ref.doc_id)
        if ref.kind == POSTS:
            return await PostRepository(session).get_by_id(ref.thread_id, ref.doc_id)
        return await ProfileRepository(session).get_by_id(ref.doc_id)

    async def _load(self, session, ref: DocumentRef):
        current = await self._get(session, ref)
        if current is None:
            raise ProviderError(NOT_FOUND, f"No document at {ref.path}")
        return current

    def _prepare(self, ref: DocumentRef, fields: Dict[str, Any], partial: bool) -> Dict[str, Any]:
        """Проверка полей и подстановка серверного времени"""
        allowed = FIELDS[ref.kind]
        unknown = set(fields) - allowed
        if unknown:
            raise ProviderError(INVALID_ARGUMENT, f"Unknown fields: {', '.join(sorted(unknown))}")
        missing = allowed - set(fields)
        if not partial and missing:
            raise ProviderError(INVALID_ARGUMENT, f"Missing fields: {', '.join(sorted(missing))}")
        if not fields:
            raise ProviderError(INVALID_ARGUMENT, "Nothing to write")

        text_field = TEXT_FIELDS[ref.kind]
        if text_field in fields:
            text = fields[text_field]
            if not isinstance(text, str) or not text.strip():
                raise ProviderError(INVALID_ARGUMENT, f"{text_field} cannot be empty")

        for name, limit in FIELD_LIMITS.items():
            value = fields.get(name)
            if isinstance(value, str) and len(value) > limit:
                raise ProviderError(INVALID_ARGUMENT, f"{name} is longer than {limit} characters")

        # одно значение времени на всю запись
        now = self.clock()
        values = {}
        for name, value in fields.items():
            if name in TIMESTAMP_FIELDS:
                if value is not SERVER_TIMESTAMP:
                    raise ProviderError(INVALID_ARGUMENT, f"{name} must be the server timestamp")
                value = now
            values[name] = value
        return values
