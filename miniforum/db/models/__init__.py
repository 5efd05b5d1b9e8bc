from miniforum.db.models.account import Account
from miniforum.db.models.profile import UserProfile
from miniforum.db.models.thread import Thread, Post, TITLE_LENGTH, AUTHOR_NAME_LENGTH
from miniforum.db.models.account import NAME_LENGTH, EMAIL_LENGTH

__all__ = [
    "Account",
    "UserProfile",
    "Thread",
    "Post",
    "TITLE_LENGTH",
    "AUTHOR_NAME_LENGTH",
    "NAME_LENGTH",
    "EMAIL_LENGTH",
]
