"""Адресация коллекций и документов хранилища.

Поддерживаемые пути::

    threads                      threads/{threadId}
    threads/{threadId}/posts     threads/{threadId}/posts/{postId}
    users                        users/{userId}
"""
from typing import Optional

from miniforum.core.errors import ProviderError, INVALID_ARGUMENT

THREADS = "threads"
POSTS = "posts"
USERS = "users"

ASCENDING = "asc"
DESCENDING = "desc"


class DocumentRef:
    """Разобранный путь: вид коллекции, родительская тема и id документа"""

    def __init__(self, kind: str, thread_id: Optional[str] = None, doc_id: Optional[str] = None):
        self.kind = kind
        self.thread_id = thread_id
        self.doc_id = doc_id

    @property
    def collection_path(self) -> str:
        if self.kind == POSTS:
            return posts_path(self.thread_id)
        return self.kind

    @property
    def path(self) -> str:
        if self.doc_id is None:
            return self.collection_path
        return f"{self.collection_path}/{self.doc_id}"

    def __repr__(self) -> str:
        return f"DocumentRef({self.path})"


def thread_path(thread_id: str) -> str:
    return f"{THREADS}/{thread_id}"


def posts_path(thread_id: str) -> str:
    return f"{THREADS}/{thread_id}/{POSTS}"


def post_path(thread_id: str, post_id: str) -> str:
    return f"{posts_path(thread_id)}/{post_id}"


def user_path(user_id: str) -> str:
    return f"{USERS}/{user_id}"


def parse_path(path: str) -> DocumentRef:
    parts = [p for p in (path or "").strip("/").split("/")]
    if any(not p for p in parts):
        raise ProviderError(INVALID_ARGUMENT, f"Invalid path: {path!r}")

    if parts[0] == USERS and len(parts) <= 2:
        return DocumentRef(USERS, doc_id=parts[1] if len(parts) == 2 else None)
    if parts[0] == THREADS:
        if len(parts) <= 2:
            return DocumentRef(THREADS, doc_id=parts[1] if len(parts) == 2 else None)
        if parts[2] == POSTS and len(parts) <= 4:
            return DocumentRef(
                POSTS, thread_id=parts[1], doc_id=parts[3] if len(parts) == 4 else None
            )
    raise ProviderError(INVALID_ARGUMENT, f"Invalid path: {path!r}")


def parse_collection(path: str) -> DocumentRef:
    ref = parse_path(path)
    if ref.doc_id is not None:
        raise ProviderError(INVALID_ARGUMENT, f"Not a collection path: {path!r}")
    return ref


def parse_document(path: str) -> DocumentRef:
    ref = parse_path(path)
    if ref.doc_id is None:
        raise ProviderError(INVALID_ARGUMENT, f"Not a document path: {path!r}")
    return ref
