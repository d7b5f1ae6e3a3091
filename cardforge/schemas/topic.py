"""Pydantic schemas for topics."""
from pydantic import BaseModel, ConfigDict


class TopicOutSchema(BaseModel):
    id: str
    topic: str

    model_config = ConfigDict(from_attributes=True)
