from miniforum.client.formatting import format_timestamp
from miniforum.client.providers import (
    IdentityProvider, DocumentStore, LocalIdentityProvider, LocalDocumentStore
)
from miniforum.client.viewmodel import ForumViewModel, ForumState

__all__ = [
    "format_timestamp",
    "IdentityProvider", "DocumentStore", "LocalIdentityProvider", "LocalDocumentStore",
    "ForumViewModel", "ForumState"
]
