from typing import Optional, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from miniforum.core.errors import ProviderError, EMAIL_IN_USE
from miniforum.db.models.account import Account as AccountModel
from miniforum.db.repositories.utils import as_utc

if TYPE_CHECKING:
    from miniforum.domains.identity.entities import Account


class AccountRepository:
    """Репозиторий учетных записей"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, account: "Account") -> "Account":
        """Создание учетной записи"""
        db_account = AccountModel(
            id=account.id,
            email=account.email,
            password_hash=account.password_hash,
            display_name=account.display_name
        )

        self.session.add(db_account)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ProviderError(EMAIL_IN_USE, "Email already registered")
        await self.session.refresh(db_account)
        return self._to_domain(db_account)

    async def get_by_id(self, account_id: str) -> Optional["Account"]:
        result = await self.session.execute(
            select(AccountModel).where(AccountModel.id == account_id)
        )
        db_account = result.scalar_one_or_none()
        return self._to_domain(db_account) if db_account else None

    async def get_by_email(self, email: str) -> Optional["Account"]:
        result = await self.session.execute(
            select(AccountModel).where(AccountModel.email == email)
        )
        db_account = result.scalar_one_or_none()
        return self._to_domain(db_account) if db_account else None

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(AccountModel.id).where(AccountModel.email == email)
        )
        return result.scalar_one_or_none() is not None

    async def set_display_name(self, account_id: str, display_name: str) -> bool:
        stmt = (
            update(AccountModel)
            .where(AccountModel.id == account_id)
            .values(display_name=display_name)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_account: AccountModel) -> "Account":
        """Преобразование модели БД в доменную сущность"""
        from miniforum.domains.identity.entities import Account

        return Account(
            id=db_account.id,
            email=db_account.email,
            display_name=db_account.display_name,
            password_hash=db_account.password_hash,
            created_at=as_utc(db_account.created_at)
        )
