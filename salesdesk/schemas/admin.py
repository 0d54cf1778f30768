"""Request/response schemas for admin account management."""

from datetime import datetime

from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")
    role: str | None = None
    phone: str | None = None

    class Config:
        populate_by_name = True


class CreatedUser(BaseModel):
    id: str
    email: str
    full_name: str = Field(serialization_alias="fullName")


class CreateUserResponse(BaseModel):
    success: bool = True
    user: CreatedUser


class DeleteUserRequest(BaseModel):
    user_id: str | None = Field(default=None, alias="userId")

    class Config:
        populate_by_name = True


class DeleteUserResponse(BaseModel):
    success: bool = True
    message: str
    identity_deleted: bool = Field(
        default=True,
        description="False when the login could not be removed at the identity provider.",
    )


class ChangeRoleRequest(BaseModel):
    role: str | None = None


class AccountListItem(BaseModel):
    """Account row joined with the profile (no secrets)."""

    user_id: str
    username: str
    role: str
    status: str
    last_login: datetime | None = None
    email: str | None = None
    full_name: str | None = None
    phone: str | None = None


class AccountsListResponse(BaseModel):
    users: list[AccountListItem]
    count: int


class AccountOut(BaseModel):
    user_id: str
    username: str
    role: str
    status: str

    class Config:
        from_attributes = True
