from typing import Optional

from fastapi import status


class ForumError(Exception):
    """Базовая ошибка форума"""


class ValidationError(ForumError):
    """Пустые, короткие или несовпадающие поля (проверяется локально)"""


class AuthorizationError(ForumError):
    """Действие над чужим контентом (проверяется локально)"""


class ProviderError(ForumError):
    """Ошибка сервиса идентификации или хранилища документов"""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ProviderError(code={self.code!r}, message={self.message!r})"


# Коды ошибок сервиса идентификации
EMAIL_IN_USE = "auth/email-already-in-use"
WEAK_PASSWORD = "auth/weak-password"
INVALID_EMAIL = "auth/invalid-email"
MISSING_EMAIL = "auth/missing-email"
INVALID_CREDENTIAL = "auth/invalid-credential"
USER_NOT_FOUND = "auth/user-not-found"

# Коды ошибок хранилища
PERMISSION_DENIED = "permission-denied"
UNAUTHENTICATED = "unauthenticated"
NOT_FOUND = "not-found"
INVALID_ARGUMENT = "invalid-argument"
UNAVAILABLE = "unavailable"

HTTP_STATUS_BY_CODE = {
    EMAIL_IN_USE: status.HTTP_409_CONFLICT,
    WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    INVALID_EMAIL: status.HTTP_400_BAD_REQUEST,
    MISSING_EMAIL: status.HTTP_400_BAD_REQUEST,
    INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    USER_NOT_FOUND: status.HTTP_401_UNAUTHORIZED,
    PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

AUTH_PREFIX = "auth/"


def humanize_error(error: Optional[BaseException]) -> str:
    """Короткое сообщение об ошибке для интерфейса"""
    if error is None:
        return "Error"
    code = getattr(error, "code", None)
    if code:
        return code.replace(AUTH_PREFIX, "", 1).replace("-", " ")
    return str(error)
