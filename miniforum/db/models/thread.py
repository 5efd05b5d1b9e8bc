from sqlalchemy import Column, String, Text, DateTime
import uuid

from miniforum.core.db import Base

TITLE_LENGTH = 255
AUTHOR_NAME_LENGTH = 255


class Thread(Base):
    __tablename__ = "threads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(TITLE_LENGTH), nullable=False)
    author_id = Column(String(36), index=True, nullable=False)
    author_name = Column(String(AUTHOR_NAME_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), index=True, nullable=False)
    last_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Thread(id={self.id}, title={self.title})>"


class Post(Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Без внешнего ключа: пост адресуется путем threads/{id}/posts и может пережить тему
    thread_id = Column(String(36), index=True, nullable=False)
    text = Column(Text, nullable=False)
    author_id = Column(String(36), index=True, nullable=False)
    author_name = Column(String(AUTHOR_NAME_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), index=True, nullable=False)

    def __repr__(self):
        preview = (self.text or "")[:60]
        return f"<Post(id={self.id}, thread_id={self.thread_id}, text_preview={preview})>"
