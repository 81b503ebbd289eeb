"""User-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Email-only sign-in."""

    email: str = Field(..., min_length=3, max_length=254, description="Company email address")


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    display_name: str
    role: Literal["underwriter", "assigner"]


class UserCreate(BaseModel):
    """Schema for adding a user to the directory."""

    email: str = Field(..., min_length=3, max_length=254)
    name: str = Field(..., min_length=1, max_length=100)
    role: Literal["underwriter", "assigner"]


class UserResponse(BaseModel):
    id: str = Field(..., description="Normalized email")
    display_name: str
    role: Literal["underwriter", "assigner"]

    model_config = ConfigDict(from_attributes=True)
