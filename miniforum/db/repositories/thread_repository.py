from typing import Any, Dict, List, Optional, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete

from miniforum.core.errors import ProviderError, INVALID_ARGUMENT
from miniforum.db.models.thread import Thread as ThreadModel, Post as PostModel
from miniforum.db.repositories.utils import as_utc

if TYPE_CHECKING:
    from miniforum.domains.forum.entities import Thread, Post

ORDERABLE = {"created_at", "last_at", "title", "display_name"}


def order_clause(model, order_by: str, descending: bool):
    if order_by not in ORDERABLE or not hasattr(model, order_by):
        raise ProviderError(INVALID_ARGUMENT, f"Cannot order by {order_by!r}")
    column = getattr(model, order_by)
    # при равенстве ключа порядок задает id
    if descending:
        return column.desc(), model.id.desc()
    return column.asc(), model.id.asc()


class ThreadRepository:
    """Репозиторий тем"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, values: Dict[str, Any]) -> "Thread":
        """Создание темы"""
        db_thread = ThreadModel(**values)
        self.session.add(db_thread)
        await self.session.commit()
        await self.session.refresh(db_thread)
        return self._to_domain(db_thread)

    async def get_by_id(self, thread_id: str) -> Optional["Thread"]:
        result = await self.session.execute(
            select(ThreadModel).where(ThreadModel.id == thread_id)
        )
        db_thread = result.scalar_one_or_none()
        return self._to_domain(db_thread) if db_thread else None

    async def exists(self, thread_id: str) -> bool:
        result = await self.session.execute(
            select(ThreadModel.id).where(ThreadModel.id == thread_id)
        )
        return result.scalar_one_or_none() is not None

    async def get_all(self, order_by: str = "created_at", descending: bool = True) -> List["Thread"]:
        """Все темы в заданном порядке"""
        result = await self.session.execute(
            select(ThreadModel).order_by(*order_clause(ThreadModel, order_by, descending))
        )
        return [self._to_domain(t) for t in result.scalars().all()]

    async def update(self, thread_id: str, values: Dict[str, Any]) -> bool:
        result = await self.session.execute(
            update(ThreadModel).where(ThreadModel.id == thread_id).values(**values)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete(self, thread_id: str, with_posts: bool = False) -> int:
        """Удаление темы; с with_posts - вместе с ее постами. Возвращает число удаленных постов"""
        removed_posts = 0
        if with_posts:
            result = await self.session.execute(
                delete(PostModel).where(PostModel.thread_id == thread_id)
            )
            removed_posts = result.rowcount
        await self.session.execute(delete(ThreadModel).where(ThreadModel.id == thread_id))
        await self.session.commit()
        return removed_posts

    def _to_domain(self, db_thread: ThreadModel) -> "Thread":
        """Преобразование модели БД в доменную сущность"""
        from miniforum.domains.forum.entities import Thread

        return Thread(
            id=db_thread.id,
            title=db_thread.title,
            author_id=db_thread.author_id,
            author_name=db_thread.author_name,
            created_at=as_utc(db_thread.created_at),
            last_at=as_utc(db_thread.last_at)
        )


class PostRepository:
    """Репозиторий постов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, thread_id: str, values: Dict[str, Any]) -> "Post":
        db_post = PostModel(thread_id=thread_id, **values)
        self.session.add(db_post)
        await self.session.commit()
        await self.session.refresh(db_post)
        return self._to_domain(db_post)

    async def get_by_id(self, thread_id: str, post_id: str) -> Optional["Post"]:
        result = await self.session.execute(
            select(PostModel).where(PostModel.thread_id == thread_id, PostModel.id == post_id)
        )
        db_post = result.scalar_one_or_none()
        return self._to_domain(db_post) if db_post else None

    async def get_by_thread(
        self,
        thread_id: str,
        order_by: str = "created_at",
        descending: bool = False
    ) -> List["Post"]:
        """Посты темы в заданном порядке"""
        result = await self.session.execute(
            select(PostModel)
            .where(PostModel.thread_id == thread_id)
            .order_by(*order_clause(PostModel, order_by, descending))
        )
        return [self._to_domain(p) for p in result.scalars().all()]

    async def update(self, thread_id: str, post_id: str, values: Dict[str, Any]) -> bool:
        result = await self.session.execute(
            update(PostModel)
            .where(PostModel.thread_id == thread_id, PostModel.id == post_id)
            .values(**values)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete(self, thread_id: str, post_id: str) -> bool:
        result = await self.session.execute(
            delete(PostModel).where(PostModel.thread_id == thread_id, PostModel.id == post_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_post: PostModel) -> "Post":
        from miniforum.domains.forum.entities import Post

        return Post(
            id=db_post.id,
            thread_id=db_post.thread_id,
            text=db_post.text,
            author_id=db_post.author_id,
            author_name=db_post.author_name,
            created_at=as_utc(db_post.created_at)
        )
