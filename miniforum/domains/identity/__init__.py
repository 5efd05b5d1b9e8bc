from miniforum.domains.identity.entities import User, Account
from miniforum.domains.identity.schemas import (
    UserCreate, UserLogin, UserUpdate, UserResponse, Token
)
from miniforum.domains.identity.services import IdentityService

__all__ = [
    "User", "Account",
    "UserCreate", "UserLogin", "UserUpdate", "UserResponse", "Token",
    "IdentityService"
]
