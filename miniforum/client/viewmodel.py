"""Модель представления форума.

Единственное место, где хранится клиентское состояние (сессия, список
тем, активная тема, посты, формы и сообщения), проверяются права перед
записью и открываются/закрываются живые подписки. Методы, открывающие
подписки, нужно вызывать внутри работающего event loop.
"""
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Union

from miniforum.client.formatting import format_timestamp
from miniforum.client.providers import DocumentStore, IdentityProvider, Unsubscribe
from miniforum.core.config import settings
from miniforum.core.errors import ForumError, ValidationError, AuthorizationError, humanize_error
from miniforum.domains.forum.entities import Thread, Post
from miniforum.domains.forum.paths import (
    THREADS, ASCENDING, DESCENDING, thread_path, posts_path, post_path, user_path
)
from miniforum.domains.forum.store import SERVER_TIMESTAMP, FIELD_LIMITS
from miniforum.domains.identity.entities import User

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]
StateListener = Callable[["ForumState"], Any]


@dataclass
class RegisterForm:
    username: str = ""
    email: str = ""
    password: str = ""
    confirm: str = ""


@dataclass
class LoginForm:
    email: str = ""
    password: str = ""


@dataclass
class ForumState:
    current_user: Optional[User] = None
    # по убыванию created_at
    threads: List[Thread] = field(default_factory=list)
    loading_threads: bool = True
    active_thread_id: Optional[str] = None
    # по возрастанию created_at, только для active_thread_id
    posts: List[Post] = field(default_factory=list)

    error: str = ""
    info: str = ""
    busy: bool = False

    thread_title: str = ""
    reply_text: str = ""
    register_form: RegisterForm = field(default_factory=RegisterForm)
    login_form: LoginForm = field(default_factory=LoginForm)


def _require_text(value: Optional[str], message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


def _check_length(value: str, field_name: str, label: str) -> None:
    limit = FIELD_LIMITS[field_name]
    if len(value) > limit:
        raise ValidationError(f"{label} must be at most {limit} characters")


class ForumViewModel:
    """Состояние и операции клиента форума"""

    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        confirm: Optional[ConfirmCallback] = None,
        min_password_length: Optional[int] = None
    ):
        self.identity = identity
        self.store = store
        self.confirm = confirm
        self.min_password_length = min_password_length or settings.min_password_length
        self.state = ForumState()

        self._listeners: List[StateListener] = []
        self._unsubscribe_session: Optional[Unsubscribe] = None
        self._unsubscribe_threads: Optional[Unsubscribe] = None
        self._unsubscribe_posts: Optional[Unsubscribe] = None
        # поколение подписки на посты; ответы старых поколений отбрасываются
        self._posts_generation = 0

    # -------- жизненный цикл --------

    def start(self) -> None:
        """Подписка на сессию и на список тем"""
        if self._unsubscribe_session is not None:
            return
        self._unsubscribe_session = self.identity.on_session_change(self._on_session_change)
        self.state.loading_threads = True
        self._unsubscribe_threads = self.store.subscribe(
            THREADS, "created_at", DESCENDING, self._on_threads, self._on_threads_error
        )
        self._notify()

    def close(self) -> None:
        """Отмена всех живых подписок"""
        self._cancel_posts_subscription()
        for name in ("_unsubscribe_threads", "_unsubscribe_session"):
            unsubscribe = getattr(self, name)
            if unsubscribe is not None:
                unsubscribe()
                setattr(self, name, None)
        self._listeners.clear()

    def add_listener(self, listener: StateListener) -> Unsubscribe:
        """Уведомления после каждого изменения состояния"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------- выбор темы --------

    def select_thread(self, thread_id: Optional[str]) -> None:
        if thread_id == self.state.active_thread_id:
            return
        self.state.active_thread_id = thread_id
        self._cancel_posts_subscription()
        self.state.posts = []
        if thread_id is not None:
            generation = self._posts_generation
            self._unsubscribe_posts = self.store.subscribe(
                posts_path(thread_id),
                "created_at",
                ASCENDING,
                lambda docs: self._on_posts(generation, docs),
                lambda error: self._on_posts_error(generation, error),
            )
        self._notify()

    def reset_active_thread(self) -> None:
        self.select_thread(None)

    @property
    def active_thread(self) -> Optional[Thread]:
        for thread in self.state.threads:
            if thread.id == self.state.active_thread_id:
                return thread
        return None

    @property
    def current_user_name(self) -> Optional[str]:
        user = self.state.current_user
        return user.name if user else None

    def can_delete(self, item: Union[Thread, Post]) -> bool:
        user = self.state.current_user
        return user is not None and item.is_authored_by(user.id)

    # -------- аутентификация --------

    async def register(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        confirm: Optional[str] = None
    ) -> bool:
        """Регистрация: учетная запись, отображаемое имя и профиль users/{uid}"""
        form = self.state.register_form
        username = form.username if username is None else username
        email = form.email if email is None else email
        password = form.password if password is None else password
        confirm = form.confirm if confirm is None else confirm

        self._begin(busy=True)
        try:
            username = (username or "").strip()
            email = (email or "").strip()
            if not (username and email and password and confirm):
                raise ValidationError("Fill in all fields")
            if len(password) < self.min_password_length:
                raise ValidationError(
                    f"Password must be at least {self.min_password_length} characters"
                )
            if password != confirm:
                raise ValidationError("Passwords do not match")
            _check_length(username, "display_name", "Username")
            _check_length(email, "email", "Email")

            user = await self.identity.create_account(email, password)
            await self.identity.set_display_name(user, username)
            # если запись профиля не удалась, учетная запись уже существует
            await self.store.set(user_path(user.id), {
                "display_name": username,
                "email": user.email,
                "created_at": SERVER_TIMESTAMP,
            })
        except ForumError as e:
            return self._fail(e)
        except Exception as e:
            logger.exception("Registration failed")
            self.state.error = humanize_error(e)
            raise
        else:
            self.state.register_form = RegisterForm()
            return self._succeed("Registration successful")
        finally:
            self._release_busy()

    async def login(self, email: Optional[str] = None, password: Optional[str] = None) -> bool:
        form = self.state.login_form
        email = form.email if email is None else email
        password = form.password if password is None else password

        self._begin(busy=True)
        try:
            email = (email or "").strip()
            if not email or not password:
                raise ValidationError("Enter email and password")
            await self.identity.sign_in(email, password)
        except ForumError as e:
            return self._fail(e)
        except Exception as e:
            logger.exception("Sign-in failed")
            self.state.error = humanize_error(e)
            raise
        else:
            self.state.login_form = LoginForm()
            return self._succeed("Signed in")
        finally:
            self._release_busy()

    async def logout(self) -> bool:
        """Выход; current_user обнулится через подписку на сессию"""
        self._begin()
        try:
            await self.identity.sign_out()
        except ForumError as e:
            return self._fail(e)
        return self._succeed("Signed out")

    # -------- темы и посты --------

    async def create_thread(self, title: Optional[str] = None) -> bool:
        title = self.state.thread_title if title is None else title

        self._begin()
        try:
            user = self._require_user("You must sign in to create a thread")
            title = _require_text(title, "Enter a thread title")
            _check_length(title, "title", "Thread title")
            thread_id = await self.store.create(THREADS, {
                "title": title,
                "author_id": user.id,
                "author_name": user.name,
                "created_at": SERVER_TIMESTAMP,
                "last_at": SERVER_TIMESTAMP,
            })
        except ForumError as e:
            return self._fail(e)

        self.state.thread_title = ""
        self.select_thread(thread_id)
        return self._succeed("Thread created")

    async def add_post(self, text: Optional[str] = None) -> bool:
        """Ответ в активной теме и обновление last_at темы (две отдельные записи)"""
        text = self.state.reply_text if text is None else text

        self._begin()
        try:
            user = self._require_user("You must sign in to reply")
            thread_id = self.state.active_thread_id
            if thread_id is None:
                raise ValidationError("Select a thread")
            text = _require_text(text, "Enter a reply")

            await self.store.create(posts_path(thread_id), {
                "text": text,
                "author_id": user.id,
                "author_name": user.name,
                "created_at": SERVER_TIMESTAMP,
            })
            try:
                await self.store.update(thread_path(thread_id), {"last_at": SERVER_TIMESTAMP})
            except ForumError:
                logger.warning(f"Reply saved but last activity of thread {thread_id} is stale")
                raise
        except ForumError as e:
            return self._fail(e)

        self.state.reply_text = ""
        return self._succeed("Reply posted")

    async def delete_thread(self, thread: Thread) -> bool:
        """Удаление темы автором. Посты темы не удаляются"""
        self._begin()
        try:
            user = self._require_user("You must sign in")
            if not thread.is_authored_by(user.id):
                raise AuthorizationError("Only the author can delete this thread")
            if not await self._confirm("Delete this thread?"):
                return self._idle()
            await self.store.delete(thread_path(thread.id))
        except ForumError as e:
            return self._fail(e)

        if self.state.active_thread_id == thread.id:
            self.select_thread(None)
        return self._succeed("Thread deleted")

    async def delete_post(self, post: Post) -> bool:
        self._begin()
        try:
            user = self._require_user("You must sign in")
            if not post.is_authored_by(user.id):
                raise AuthorizationError("Only the author can delete this post")
            if not await self._confirm("Delete this post?"):
                return self._idle()
            await self.store.delete(post_path(post.thread_id, post.id))
        except ForumError as e:
            return self._fail(e)

        return self._succeed("Post deleted")

    format_timestamp = staticmethod(format_timestamp)

    # -------- подписки --------

    def _on_session_change(self, user: Optional[User]) -> None:
        self.state.current_user = user
        self._notify()

    def _on_threads(self, threads: List[Thread]) -> None:
        self.state.threads = list(threads)
        self.state.loading_threads = False
        self._notify()

    def _on_threads_error(self, error: Exception) -> None:
        logger.error(f"threads snapshot error: {error}")
        self.state.loading_threads = False
        self._notify()

    def _on_posts(self, generation: int, posts: List[Post]) -> None:
        if generation != self._posts_generation:
            logger.debug(f"Dropped stale posts snapshot (generation {generation})")
            return
        self.state.posts = list(posts)
        self._notify()

    def _on_posts_error(self, generation: int, error: Exception) -> None:
        if generation == self._posts_generation:
            logger.error(f"posts snapshot error: {error}")

    def _cancel_posts_subscription(self) -> None:
        self._posts_generation += 1
        if self._unsubscribe_posts is not None:
            self._unsubscribe_posts()
            self._unsubscribe_posts = None

    # -------- вспомогательное --------

    def _require_user(self, message: str) -> User:
        if self.state.current_user is None:
            raise AuthorizationError(message)
        return self.state.current_user

    async def _confirm(self, message: str) -> bool:
        if self.confirm is None:
            return False
        answer = self.confirm(message)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _begin(self, busy: bool = False) -> None:
        self.state.error = ""
        self.state.info = ""
        self.state.busy = busy
        self._notify()

    def _fail(self, error: ForumError) -> bool:
        self.state.error = humanize_error(error)
        self.state.busy = False
        self._notify()
        return False

    def _succeed(self, info: str) -> bool:
        self.state.info = info
        self.state.busy = False
        self._notify()
        return True

    def _idle(self) -> bool:
        self.state.busy = False
        self._notify()
        return False

    def _release_busy(self) -> None:
        # ни одна ошибка не оставляет интерфейс занятым
        if self.state.busy:
            self.state.busy = False
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("State listener raised")
