"""
Nexus Forum Backend — Auth Request/Response Schemas
====================================================

What:  Pydantic models for POST /api/register and POST /api/login.
Why:   The user object returned to clients never includes password_hash;
       keeping the API shape separate from the ORM model guarantees that.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=100, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    """
    What:  Credentials for login.

    The identifier is matched against both username and email. Older clients
    send it as `username` (or `email`); all three keys are accepted.
    """
    username_or_email: str = Field(
        min_length=1,
        validation_alias=AliasChoices("username_or_email", "username", "email"),
    )
    password: str = Field(min_length=1)


class UserPublic(BaseModel):
    """User fields safe to return to any client."""
    id: int
    username: str
    email: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None

    model_config = {"from_attributes": True}


class UserCredentials(UserPublic):
    """Internal: a user row together with its password hash. Never serialized."""
    password_hash: str
    last_seen: Optional[datetime] = None


class AuthResponse(BaseModel):
    user: UserPublic
    token: str = Field(description="Signed JWT carrying the user id and username")
