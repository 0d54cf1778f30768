"""Request/response schemas for auth endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class SignInRequest(BaseModel):
    """Email/password credentials. Presence is checked by the handler (400, not 422)."""

    email: str | None = None
    password: str | None = None


class SignUpRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")
    phone: str | None = None
    hometown: str | None = None
    birth_date: str | None = Field(default=None, alias="birthDate")

    class Config:
        populate_by_name = True


class ChangePasswordRequest(BaseModel):
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class SessionUserInfo(BaseModel):
    """Short user block returned after sign-in/sign-up."""

    id: str
    email: str | None = None


class SignInResponse(BaseModel):
    success: bool = True
    user: SessionUserInfo
    expires_at: int | None = None
    require_password_change: bool = False


class SignUpResponse(BaseModel):
    success: bool = True
    user: SessionUserInfo
    message: str


class SignOutResponse(BaseModel):
    success: bool = True
    message: str
    intentional: bool = Field(
        default=True,
        description="Marks the logout as user-initiated (not a token expiry).",
    )


class CheckSessionUser(BaseModel):
    id: str
    email: str | None = None
    role: str | None = None
    status: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CheckSessionResponse(BaseModel):
    """Response for GET /api/auth/check-session."""

    authenticated: bool = True
    user: CheckSessionUser
    expires_at: int | None = None


class PreserveSessionResponse(BaseModel):
    status: str = "success"
    message: str
    refreshed: bool = False
    user_email: str | None = None
    user_id: str
    expires_at: int | None = None
    timestamp: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str
