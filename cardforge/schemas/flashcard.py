"""Pydantic schemas for flashcards."""
from pydantic import BaseModel, ConfigDict, Field


class FlashcardDraft(BaseModel):
    """One generated card before it is stored."""

    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class FlashcardOutSchema(BaseModel):
    id: str
    topic_id: str
    question: str
    answer: str

    model_config = ConfigDict(from_attributes=True)
