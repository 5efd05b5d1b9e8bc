import uuid
from datetime import datetime, timezone
from typing import Optional

from miniforum.core.security import get_password_hash, verify_password


class User:
    """Пользователь, каким его видит клиент"""

    def __init__(
        self,
        id: str,
        email: str,
        display_name: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        self.id = id
        self.email = email
        self.display_name = display_name
        self.created_at = created_at or datetime.now(timezone.utc)

    @property
    def name(self) -> str:
        """Имя для подписи: отображаемое имя или email"""
        return self.display_name or self.email

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, display_name={self.display_name})"


class Account(User):
    """Учетная запись с хешем пароля (только на стороне сервиса)"""

    def __init__(self, password_hash: str, **kwargs):
        super().__init__(**kwargs)
        self.password_hash = password_hash

    def authenticate(self, password: str) -> bool:
        """Проверка пароля пользователя"""
        return verify_password(password, self.password_hash)

    def to_user(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            display_name=self.display_name,
            created_at=self.created_at
        )

    @classmethod
    def create_account(cls, email: str, password: str) -> "Account":
        """Создание новой учетной записи с хешированием пароля"""
        return cls(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=get_password_hash(password)
        )

    def __repr__(self) -> str:
        return f"Account(id={self.id}, email={self.email})"
