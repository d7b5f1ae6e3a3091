"""Quiz model: one generated multiple-choice quiz. A topic may have many."""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func

from cardforge.db.session import Base
from cardforge.models._defaults import new_id, utcnow


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    topic_id = Column(String(36), ForeignKey("topics.id"), nullable=False, index=True)
    # JSON array of {question, options[4], correctAnswer}
    quiz_content = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=True)
