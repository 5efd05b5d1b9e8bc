from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import Optional
from datetime import datetime

from miniforum.db.models import NAME_LENGTH


class UserCreate(BaseModel):
    """Схема для регистрации"""
    username: str = Field(..., min_length=1, max_length=NAME_LENGTH)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not v.strip():
            raise ValueError('Username cannot be empty')
        return v.strip()


class UserLogin(BaseModel):
    """Схема для входа пользователя"""
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """Схема для смены отображаемого имени"""
    display_name: str = Field(..., min_length=1, max_length=NAME_LENGTH)

    @field_validator('display_name')
    @classmethod
    def validate_display_name(cls, v):
        if not v.strip():
            raise ValueError('Display name cannot be empty')
        return v.strip()


class UserResponse(BaseModel):
    """Схема для ответа с данными пользователя"""
    id: str
    email: str
    display_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    """Схема для JWT токена"""
    access_token: str
    token_type: str = "bearer"
