"""Progress model: latest quiz score per (user, topic)."""
from sqlalchemy import Column, Float, String, DateTime, ForeignKey, UniqueConstraint

from cardforge.db.session import Base
from cardforge.models._defaults import new_id


class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (UniqueConstraint("user_id", "topic_id", name="uq_progress_user_topic"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    topic_id = Column(String(36), ForeignKey("topics.id"), nullable=False, index=True)
    score = Column(Float, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False)
