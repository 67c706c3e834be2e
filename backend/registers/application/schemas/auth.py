"""Pydantic DTOs for login, session and password-reset endpoints."""

from pydantic import BaseModel, Field

from registers.domain.entities import Role


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    username: str
    role: Role


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: UserInfo


class SessionResponse(BaseModel):
    success: bool = True
    user: UserInfo


class MessageResponse(BaseModel):
    success: bool
    message: str | None = None


class VerifySecurityRequest(BaseModel):
    username: str
    answer: str


class ChangePasswordRequest(BaseModel):
    username: str
    answer: str
    new_password: str
