from miniforum.domains.forum.entities import Thread, Post, UserProfile
from miniforum.domains.forum.paths import (
    THREADS, USERS, ASCENDING, DESCENDING,
    thread_path, posts_path, post_path, user_path
)
from miniforum.domains.forum.store import ForumStore, SERVER_TIMESTAMP

__all__ = [
    "Thread", "Post", "UserProfile",
    "THREADS", "USERS", "ASCENDING", "DESCENDING",
    "thread_path", "posts_path", "post_path", "user_path",
    "ForumStore", "SERVER_TIMESTAMP"
]
