"""Authentication-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    # Presence and length are checked by the service so the messages stay uniform
    email: str = ""
    password: str = ""
    name: str | None = Field(None, max_length=100)


class RegisterResponse(BaseModel):
    message: str
    user_id: UUID


class LoginRequest(BaseModel):
    email: str
    password: str


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None
    created_at: datetime


class ProfileUpdate(BaseModel):
    name: str | None = None


class PasswordChange(BaseModel):
    current_password: str = ""
    new_password: str = ""


class MessageResponse(BaseModel):
    message: str
