"""Pydantic schemas for progress rows."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ProgressOutSchema(BaseModel):
    id: str
    user_id: str
    topic_id: str
    score: float
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
