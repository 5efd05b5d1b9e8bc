from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
import uuid

from miniforum.core.db import Base

NAME_LENGTH = 100
EMAIL_LENGTH = 255


class Account(Base):
    """Учетная запись сервиса идентификации"""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(EMAIL_LENGTH), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(NAME_LENGTH), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
