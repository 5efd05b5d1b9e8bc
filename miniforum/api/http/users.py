from fastapi import APIRouter, Depends, HTTPException, status

from miniforum.api.dependencies import get_identity_service, get_forum_store
from miniforum.core.auth import get_current_user
from miniforum.domains.forum.paths import user_path
from miniforum.domains.forum.schemas import ProfileResponse
from miniforum.domains.forum.store import ForumStore
from miniforum.domains.identity.entities import User
from miniforum.domains.identity.schemas import UserUpdate
from miniforum.domains.identity.services import IdentityService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    store: ForumStore = Depends(get_forum_store)
):
    """Профиль пользователя"""
    profile = await store.get(user_path(user_id))

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return ProfileResponse.model_validate(profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    update_data: UserUpdate,
    user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
    store: ForumStore = Depends(get_forum_store)
):
    """Смена отображаемого имени. Старые author_name в темах и постах не меняются"""
    await identity.set_display_name(user.id, update_data.display_name)
    await store.update(user_path(user.id), {"display_name": update_data.display_name}, auth=user)
    return ProfileResponse.model_validate(await store.get(user_path(user.id)))
