"""Pydantic schemas for account routes."""
from pydantic import BaseModel, ConfigDict


class CredentialsSchema(BaseModel):
    email: str
    password: str


class UserOutSchema(BaseModel):
    id: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class TokenOutSchema(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOutSchema
