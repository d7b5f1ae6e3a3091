"""Topic model: a subject string submitted by a user. Never updated or deleted."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from cardforge.db.session import Base
from cardforge.models._defaults import new_id, utcnow


class Topic(Base):
    __tablename__ = "topics"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    topic = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=True)

    user = relationship("User", back_populates="topics")
    flashcards = relationship("Flashcard", back_populates="topic", order_by="Flashcard.position")
