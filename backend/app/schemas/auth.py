"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class AdminRegister(BaseModel):
    """
    Schema for administrator sign-up.

    Used by POST /auth/register. Drivers join through an invitation instead.
    """
    email: EmailStr = Field(..., description="User email address")
    name: str = Field(..., min_length=2, max_length=150)
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    phone: Optional[str] = Field(default=None, max_length=30)


class DriverRegister(AdminRegister):
    """
    Schema for driver sign-up.

    Used by POST /auth/register-driver with the token an admin shared.
    """
    invitation_token: str = Field(..., min_length=10, description="Invitation issued by an administrator")


class UserLogin(BaseModel):
    email: str = Field(..., description="Email")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login/register operations.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: str = Field(..., description="User ID")
    name: str
    email: str
    role: UserRole
    admin_id: Optional[str] = Field(default=None, description="Linked administrator (for Drivers)")


class InvitationResponse(BaseModel):
    invitation_token: str
    expires_in_hours: int


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me endpoint.
    """
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: UserRole
    admin_id: Optional[str] = None
    is_active: bool
    trial_ends_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
