"""Живые подписки по WebSocket.

После подключения клиент получает ``{"type": "snapshot", "data": [...]}``
с полным упорядоченным набором документов и затем такое же сообщение
после каждого изменения коллекции.
"""
import asyncio
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from miniforum.api.dependencies import get_forum_store
from miniforum.core.errors import ProviderError
from miniforum.domains.forum.paths import THREADS, ASCENDING, DESCENDING, posts_path
from miniforum.domains.forum.schemas import ThreadResponse, PostResponse, SnapshotMessage
from miniforum.domains.forum.store import ForumStore

logger = logging.getLogger(__name__)

router = APIRouter()


async def receive_client_messages(websocket: WebSocket) -> None:
    """Чтение сообщений клиента до отключения; ping -> pong"""
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Malformed websocket message: {data!r}")
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        return


async def stream_collection(
    websocket: WebSocket,
    store: ForumStore,
    collection_path: str,
    order_by: str,
    direction: str,
    schema
) -> None:
    """Пересылка живой подписки на коллекцию в websocket"""
    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()

    def on_snapshot(docs):
        data = [schema.model_validate(doc).model_dump(mode="json") for doc in docs]
        queue.put_nowait(SnapshotMessage(data=data).model_dump())

    def on_error(error: ProviderError):
        queue.put_nowait({
            "type": "error",
            "data": {"code": error.code, "detail": error.message}
        })

    unsubscribe = store.subscribe(collection_path, order_by, direction, on_snapshot, on_error)
    logger.info(f"Websocket subscribed to {collection_path}")
    receiver = asyncio.create_task(receive_client_messages(websocket))

    try:
        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if getter not in done:
                getter.cancel()
                break
            await websocket.send_json(getter.result())
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        receiver.cancel()
        logger.info(f"Websocket unsubscribed from {collection_path}")


@router.websocket("/ws/threads")
async def threads_feed(websocket: WebSocket, store: ForumStore = Depends(get_forum_store)):
    """Список тем, новые сверху"""
    await stream_collection(websocket, store, THREADS, "created_at", DESCENDING, ThreadResponse)


@router.websocket("/ws/threads/{thread_id}/posts")
async def posts_feed(
    websocket: WebSocket,
    thread_id: str,
    store: ForumStore = Depends(get_forum_store)
):
    """Посты темы в порядке написания"""
    await stream_collection(
        websocket, store, posts_path(thread_id), "created_at", ASCENDING, PostResponse
    )
