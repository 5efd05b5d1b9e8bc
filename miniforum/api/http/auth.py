from fastapi import APIRouter, Depends, status

from miniforum.api.dependencies import get_identity_service, get_forum_store
from miniforum.core.auth import get_current_user
from miniforum.domains.forum.paths import user_path
from miniforum.domains.forum.store import ForumStore, SERVER_TIMESTAMP
from miniforum.domains.identity.entities import User
from miniforum.domains.identity.schemas import UserCreate, UserLogin, UserResponse, Token
from miniforum.domains.identity.services import IdentityService

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    identity: IdentityService = Depends(get_identity_service),
    store: ForumStore = Depends(get_forum_store)
):
    """Регистрация нового пользователя с профилем users/{uid}"""
    user = await identity.create_account(user_data.email, user_data.password)
    user = await identity.set_display_name(user.id, user_data.username)
    await store.set(user_path(user.id), {
        "display_name": user_data.username,
        "email": user.email,
        "created_at": SERVER_TIMESTAMP,
    }, auth=user)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=Token)
async def login(
    login_data: UserLogin,
    identity: IdentityService = Depends(get_identity_service)
):
    """Вход пользователя"""
    _, token = await identity.sign_in(login_data.email, login_data.password)
    return Token(access_token=token)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
