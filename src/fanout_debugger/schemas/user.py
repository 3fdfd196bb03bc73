"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    """Public user record."""

    id: str
    username: str
    email: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserRef(BaseModel):
    """Minimal reference used in follower listings."""

    id: str
    username: str

    model_config = ConfigDict(from_attributes=True)


class UserDetail(UserOut):
    """User with follower graph summary."""

    followers_count: int = Field(..., description="Number of users following this user")
    following_count: int = Field(..., description="Number of users this user follows")
    followers: list[UserRef] = Field(default_factory=list)
    following: list[UserRef] = Field(default_factory=list)


class UserList(BaseModel):
    data: list[UserOut]
