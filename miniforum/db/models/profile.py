from sqlalchemy import Column, String, DateTime

from miniforum.core.db import Base
from miniforum.db.models.account import NAME_LENGTH, EMAIL_LENGTH


class UserProfile(Base):
    """Документ users/{uid}"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    display_name = Column(String(NAME_LENGTH), nullable=False)
    email = Column(String(EMAIL_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
