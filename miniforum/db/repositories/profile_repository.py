from typing import Any, Dict, List, Optional, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete

from miniforum.db.models.profile import UserProfile as UserProfileModel
from miniforum.db.repositories.thread_repository import order_clause
from miniforum.db.repositories.utils import as_utc

if TYPE_CHECKING:
    from miniforum.domains.forum.entities import UserProfile


class ProfileRepository:
    """Репозиторий профилей users/{uid}"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def put(self, user_id: str, values: Dict[str, Any]) -> "UserProfile":
        """Запись профиля целиком (создание или замена)"""
        db_profile = await self.session.get(UserProfileModel, user_id)
        if db_profile is None:
            db_profile = UserProfileModel(id=user_id, **values)
            self.session.add(db_profile)
        else:
            for name, value in values.items():
                setattr(db_profile, name, value)
        await self.session.commit()
        await self.session.refresh(db_profile)
        return self._to_domain(db_profile)

    async def get_by_id(self, user_id: str) -> Optional["UserProfile"]:
        db_profile = await self.session.get(UserProfileModel, user_id)
        return self._to_domain(db_profile) if db_profile else None

    async def get_all(self, order_by: str = "created_at", descending: bool = False) -> List["UserProfile"]:
        result = await self.session.execute(
            select(UserProfileModel).order_by(*order_clause(UserProfileModel, order_by, descending))
        )
        return [self._to_domain(p) for p in result.scalars().all()]

    async def update(self, user_id: str, values: Dict[str, Any]) -> bool:
        result = await self.session.execute(
            update(UserProfileModel).where(UserProfileModel.id == user_id).values(**values)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete(self, user_id: str) -> bool:
        result = await self.session.execute(
            delete(UserProfileModel).where(UserProfileModel.id == user_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_profile: UserProfileModel) -> "UserProfile":
        from miniforum.domains.forum.entities import UserProfile

        return UserProfile(
            id=db_profile.id,
            display_name=db_profile.display_name,
            email=db_profile.email,
            created_at=as_utc(db_profile.created_at)
        )
