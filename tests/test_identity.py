from datetime import timedelta

import pytest

from miniforum.client.providers import LocalIdentityProvider
from miniforum.core.errors import (
    ForumError, ProviderError, EMAIL_IN_USE, WEAK_PASSWORD, INVALID_EMAIL, MISSING_EMAIL,
    INVALID_CREDENTIAL, USER_NOT_FOUND, INVALID_ARGUMENT, humanize_error
)
from miniforum.core.security import create_access_token, get_password_hash, verify_password


async def test_create_account_and_sign_in(identity_service):
    user = await identity_service.create_account("  Alice@X.com ", "secret1")
    assert user.email == "Alice@x.com"
    assert user.display_name is None
    assert user.name == "Alice@x.com"

    signed_in, token = await identity_service.sign_in("Alice@x.com", "secret1")
    assert signed_in == user
    assert (await identity_service.get_user_from_token(token)) == user


@pytest.mark.parametrize("email,password,code", [
    ("", "secret1", MISSING_EMAIL),
    ("not-an-email", "secret1", INVALID_EMAIL),
    ("a@x.com", "12345", WEAK_PASSWORD),
])
async def test_create_account_rejects_bad_input(identity_service, email, password, code):
    with pytest.raises(ProviderError) as exc_info:
        await identity_service.create_account(email, password)
    assert exc_info.value.code == code


async def test_duplicate_email(identity_service):
    await identity_service.create_account("a@x.com", "secret1")

    with pytest.raises(ProviderError) as exc_info:
        await identity_service.create_account("a@x.com", "other-secret")
    assert exc_info.value.code == EMAIL_IN_USE


async def test_sign_in_failures(identity_service):
    await identity_service.create_account("a@x.com", "secret1")

    with pytest.raises(ProviderError) as exc_info:
        await identity_service.sign_in("a@x.com", "wrong")
    assert exc_info.value.code == INVALID_CREDENTIAL

    with pytest.raises(ProviderError) as exc_info:
        await identity_service.sign_in("b@x.com", "secret1")
    assert exc_info.value.code == USER_NOT_FOUND


async def test_set_display_name(identity_service):
    user = await identity_service.create_account("a@x.com", "secret1")

    renamed = await identity_service.set_display_name(user.id, "alice")
    assert renamed.name == "alice"
    assert (await identity_service.get_user(user.id)).display_name == "alice"

    with pytest.raises(ProviderError) as exc_info:
        await identity_service.set_display_name("missing", "ghost")
    assert exc_info.value.code == USER_NOT_FOUND


async def test_bad_tokens_resolve_to_nobody(identity_service):
    user = await identity_service.create_account("a@x.com", "secret1")
    expired = create_access_token({"sub": user.id}, expires_delta=timedelta(minutes=-1))

    assert await identity_service.get_user_from_token("garbage") is None
    assert await identity_service.get_user_from_token(expired) is None
    assert await identity_service.get_user_from_token(create_access_token({})) is None


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


async def test_session_listeners(identity_service):
    session = LocalIdentityProvider(identity_service)
    seen = []
    unsubscribe = session.on_session_change(seen.append)
    assert seen == [None]

    user = await session.create_account("a@x.com", "secret1")
    assert session.current_user is user
    assert session.token
    await session.set_display_name(user, "alice")
    assert seen[-1].name == "alice"

    await session.sign_out()
    unsubscribe()
    await session.sign_in("a@x.com", "secret1")

    assert [u.id if u else None for u in seen] == [None, user.id, None]


@pytest.mark.parametrize("error,expected", [
    (None, "Error"),
    (ProviderError(EMAIL_IN_USE), "email already in use"),
    (ProviderError(WEAK_PASSWORD, "Password should be at least 6 characters"), "weak password"),
    (ProviderError("permission-denied"), "permission denied"),
    (ProviderError("auth/auth/odd-code"), "auth/odd code"),
    (ForumError("Enter a reply"), "Enter a reply"),
    (RuntimeError("boom"), "boom"),
])
def test_humanize_error(error, expected):
    assert humanize_error(error) == expected


async def test_unusable_password_is_a_provider_error(identity_service):
    with pytest.raises(ProviderError) as exc_info:
        await identity_service.create_account("e@x.com", "secret\x001")
    assert exc_info.value.code == WEAK_PASSWORD

    await identity_service.create_account("a@x.com", "secret1")
    with pytest.raises(ProviderError) as exc_info:
        await identity_service.sign_in("a@x.com", "secret\x001")
    assert exc_info.value.code == INVALID_CREDENTIAL


async def test_display_name_length_is_checked(identity_service):
    user = await identity_service.create_account("a@x.com", "secret1")

    with pytest.raises(ProviderError) as exc_info:
        await identity_service.set_display_name(user.id, "n" * 101)
    assert exc_info.value.code == INVALID_ARGUMENT
    assert (await identity_service.get_user(user.id)).display_name is None
