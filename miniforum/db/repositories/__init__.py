from miniforum.db.repositories.account_repository import AccountRepository
from miniforum.db.repositories.thread_repository import ThreadRepository, PostRepository
from miniforum.db.repositories.profile_repository import ProfileRepository

__all__ = [
    "AccountRepository",
    "ThreadRepository",
    "PostRepository",
    "ProfileRepository"
]
