"""Recommendation model: one generated batch of learning suggestions."""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func

from cardforge.db.session import Base
from cardforge.models._defaults import new_id, utcnow


class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    # JSON array of {title, description}
    recommendation_content = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=True)
