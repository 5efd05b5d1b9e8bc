import logging
from typing import Optional, Tuple

from email_validator import validate_email, EmailNotValidError

from miniforum.core.config import settings
from miniforum.core.db import provider_session
from miniforum.core.errors import (
    ProviderError, EMAIL_IN_USE, WEAK_PASSWORD, INVALID_EMAIL, MISSING_EMAIL,
    INVALID_CREDENTIAL, USER_NOT_FOUND, INVALID_ARGUMENT
)
from miniforum.core.security import create_access_token, verify_token
from miniforum.db.models import NAME_LENGTH
from miniforum.db.repositories.account_repository import AccountRepository
from miniforum.domains.identity.entities import Account, User

logger = logging.getLogger(__name__)


class IdentityService:
    """Сервис идентификации: учетные записи, пароли и токены доступа"""

    def __init__(self, session_factory, min_password_length: Optional[int] = None):
        self.session_factory = session_factory
        self.min_password_length = min_password_length or settings.min_password_length

    async def create_account(self, email: str, password: str) -> User:
        """Регистрация учетной записи по email и паролю"""
        email = self._normalize_email(email)
        if len(password or "") < self.min_password_length:
            raise ProviderError(
                WEAK_PASSWORD,
                f"Password should be at least {self.min_password_length} characters"
            )

        async with provider_session(self.session_factory) as session:
            repository = AccountRepository(session)
            if await repository.email_exists(email):
                raise ProviderError(EMAIL_IN_USE, "Email already registered")
            account = await repository.create(self._new_account(email, password))

        logger.info(f"Account {account.id} created")
        return account.to_user()

    async def set_display_name(self, user_id: str, display_name: str) -> User:
        """Установка отображаемого имени"""
        if len(display_name or "") > NAME_LENGTH:
            raise ProviderError(
                INVALID_ARGUMENT, f"Display name should be at most {NAME_LENGTH} characters"
            )
        async with provider_session(self.session_factory) as session:
            repository = AccountRepository(session)
            if not await repository.set_display_name(user_id, display_name):
                raise ProviderError(USER_NOT_FOUND, "User not found")
            account = await repository.get_by_id(user_id)
        return account.to_user()

    async def sign_in(self, email: str, password: str) -> Tuple[User, str]:
        """Проверка учетных данных и выдача JWT токена"""
        email = self._normalize_email(email)
        async with provider_session(self.session_factory) as session:
            account = await AccountRepository(session).get_by_email(email)

        if account is None:
            raise ProviderError(USER_NOT_FOUND, "User not found")
        if not self._authenticate(account, password or ""):
            logger.warning(f"Failed sign-in for account {account.id}")
            raise ProviderError(INVALID_CREDENTIAL, "Invalid credentials")

        user = account.to_user()
        return user, self.issue_token(user)

    def issue_token(self, user: User) -> str:
        """JWT токен доступа для пользователя"""
        return create_access_token({"sub": user.id, "email": user.email})

    async def get_user(self, user_id: str) -> Optional[User]:
        async with provider_session(self.session_factory) as session:
            account = await AccountRepository(session).get_by_id(user_id)
        return account.to_user() if account else None

    async def get_user_from_token(self, token: str) -> Optional[User]:
        """Получение пользователя из JWT токена"""
        payload = verify_token(token)
        if not payload or not payload.get("sub"):
            return None
        return await self.get_user(payload["sub"])

    def _new_account(self, email: str, password: str) -> Account:
        try:
            return Account.create_account(email, password)
        except ValueError as e:
            # passlib: например, NUL-байт в пароле
            raise ProviderError(WEAK_PASSWORD, str(e))

    def _authenticate(self, account: Account, password: str) -> bool:
        try:
            return account.authenticate(password)
        except ValueError as e:
            logger.warning(f"Unusable password for account {account.id}: {e}")
            return False

    def _normalize_email(self, email: str) -> str:
        email = (email or "").strip()
        if not email:
            raise ProviderError(MISSING_EMAIL, "Email is required")
        try:
            return validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ProviderError(INVALID_EMAIL, str(e))
