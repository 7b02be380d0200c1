from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: str
    username: str


class AuthResponse(BaseModel):
    token: str
    expires_at: datetime
    user: UserResponse
