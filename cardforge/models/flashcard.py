"""Flashcard model: one question/answer pair of a topic."""
from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from cardforge.db.session import Base
from cardforge.models._defaults import new_id


class Flashcard(Base):
    __tablename__ = "flashcards"

    id = Column(String(36), primary_key=True, default=new_id)
    topic_id = Column(String(36), ForeignKey("topics.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # order within the generated batch
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)

    topic = relationship("Topic", back_populates="flashcards")
