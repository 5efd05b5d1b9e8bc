import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from miniforum.api.dependencies import get_forum_store
from miniforum.core.auth import get_current_user
from miniforum.domains.forum.paths import (
    THREADS, ASCENDING, DESCENDING, thread_path, posts_path, post_path
)
from miniforum.domains.forum.schemas import ThreadCreate, ThreadResponse, PostCreate, PostResponse
from miniforum.domains.forum.store import ForumStore, SERVER_TIMESTAMP
from miniforum.domains.identity.entities import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/threads", tags=["threads"])


@router.get("", response_model=List[ThreadResponse])
async def list_threads(store: ForumStore = Depends(get_forum_store)):
    """Все темы, новые сверху"""
    threads = await store.query(THREADS, "created_at", DESCENDING)
    return [ThreadResponse.model_validate(t) for t in threads]


@router.post("", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
async def create_thread(
    thread_data: ThreadCreate,
    user: User = Depends(get_current_user),
    store: ForumStore = Depends(get_forum_store)
):
    """Создание темы"""
    thread_id = await store.create(THREADS, {
        "title": thread_data.title,
        "author_id": user.id,
        "author_name": user.name,
        "created_at": SERVER_TIMESTAMP,
        "last_at": SERVER_TIMESTAMP,
    }, auth=user)
    return ThreadResponse.model_validate(await store.get(thread_path(thread_id)))


@router.get("/{thread_id}", response_model=ThreadResponse)
async def get_thread(thread_id: str, store: ForumStore = Depends(get_forum_store)):
    thread = await store.get(thread_path(thread_id))

    if not thread:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Thread not found"
        )

    return ThreadResponse.model_validate(thread)


@router.delete("/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: str,
    user: User = Depends(get_current_user),
    store: ForumStore = Depends(get_forum_store)
):
    """Удаление темы (только автор)"""
    await store.delete(thread_path(thread_id), auth=user)


@router.get("/{thread_id}/posts", response_model=List[PostResponse])
async def list_posts(thread_id: str, store: ForumStore = Depends(get_forum_store)):
    """Посты темы в порядке написания"""
    posts = await store.query(posts_path(thread_id), "created_at", ASCENDING)
    return [PostResponse.model_validate(p) for p in posts]


@router.post("/{thread_id}/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def add_post(
    thread_id: str,
    post_data: PostCreate,
    user: User = Depends(get_current_user),
    store: ForumStore = Depends(get_forum_store)
):
    """Ответ в теме; затем обновляется last_at темы"""
    post_id = await store.create(posts_path(thread_id), {
        "text": post_data.text,
        "author_id": user.id,
        "author_name": user.name,
        "created_at": SERVER_TIMESTAMP,
    }, auth=user)
    await store.update(thread_path(thread_id), {"last_at": SERVER_TIMESTAMP}, auth=user)
    return PostResponse.model_validate(await store.get(post_path(thread_id, post_id)))


@router.delete("/{thread_id}/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    thread_id: str,
    post_id: str,
    user: User = Depends(get_current_user),
    store: ForumStore = Depends(get_forum_store)
):
    """Удаление поста (только автор)"""
    await store.delete(post_path(thread_id, post_id), auth=user)
