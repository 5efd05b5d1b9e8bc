from datetime import datetime
from typing import Optional


class Thread:
    """Тема обсуждения"""

    def __init__(
        self,
        id: str,
        title: str,
        author_id: str,
        author_name: str,
        created_at: datetime,
        last_at: Optional[datetime] = None
    ):
        self.id = id
        self.title = title
        self.author_id = author_id
        # Снимок имени автора на момент создания, не обновляется при переименовании
        self.author_name = author_name
        self.created_at = created_at
        self.last_at = last_at or created_at

    def is_authored_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id == self.author_id

    def __eq__(self, other) -> bool:
        if not isinstance(other, Thread):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Thread(id={self.id}, title={self.title}, author_id={self.author_id})"


class Post:
    """Ответ в теме"""

    def __init__(
        self,
        id: str,
        thread_id: str,
        text: str,
        author_id: str,
        author_name: str,
        created_at: datetime
    ):
        self.id = id
        self.thread_id = thread_id
        self.text = text
        self.author_id = author_id
        self.author_name = author_name
        self.created_at = created_at

    def is_authored_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id == self.author_id

    def __eq__(self, other) -> bool:
        if not isinstance(other, Post):
            return False
        return self.id == other.id and self.thread_id == other.thread_id

    def __hash__(self) -> int:
        return hash((self.thread_id, self.id))

    def __repr__(self) -> str:
        return f"Post(id={self.id}, thread_id={self.thread_id}, author_id={self.author_id})"


class UserProfile:
    """Профиль пользователя users/{uid}"""

    def __init__(self, id: str, display_name: str, email: str, created_at: datetime):
        self.id = id
        self.display_name = display_name
        self.email = email
        self.created_at = created_at

    def __eq__(self, other) -> bool:
        if not isinstance(other, UserProfile):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"UserProfile(id={self.id}, display_name={self.display_name})"
