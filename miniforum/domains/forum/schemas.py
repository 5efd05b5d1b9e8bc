from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import List, Literal, Any
from datetime import datetime

from miniforum.db.models import TITLE_LENGTH


class ThreadCreate(BaseModel):
    """Схема для создания темы"""
    title: str = Field(..., min_length=1, max_length=TITLE_LENGTH)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()


class ThreadResponse(BaseModel):
    id: str
    title: str
    author_id: str
    author_name: str
    created_at: datetime
    last_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostCreate(BaseModel):
    """Схема для ответа в теме"""
    text: str = Field(..., min_length=1, max_length=10000)

    @field_validator('text')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError('Text cannot be empty')
        return v.strip()


class PostResponse(BaseModel):
    id: str
    thread_id: str
    text: str
    author_id: str
    author_name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    id: str
    display_name: str
    email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SnapshotMessage(BaseModel):
    """Сообщение живой подписки: полный упорядоченный набор документов"""
    type: Literal["snapshot"] = "snapshot"
    data: List[Any]
