"""Pydantic schemas for recommendations."""
from pydantic import BaseModel, Field


class RecommendationItem(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
