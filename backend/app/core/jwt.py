"""
JWT token utilities for authentication.

This module provides functions for encoding and decoding access tokens
and the invitation tokens administrators hand out to new drivers.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings

INVITATION_PURPOSE = "driver_invitation"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data payload to encode in the token (should include: sub, user_id, role)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "maria@example.com",
            "user_id": "6f1c...",
            "role": "DRIVER",
            "admin_id": "a93e...",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns:
        Decoded token payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("purpose") == INVITATION_PURPOSE:
        return None
    return payload


def create_invitation_token(admin_id: str) -> str:
    """Signed, expiring token binding a future driver to admin_id."""
    return create_access_token(
        data={"purpose": INVITATION_PURPOSE, "admin_id": admin_id},
        expires_delta=timedelta(hours=settings.invitation_expire_hours),
    )


def decode_invitation_token(token: str) -> Optional[str]:
    """Return the inviting admin's id, or None if the token is not a valid invitation."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("purpose") != INVITATION_PURPOSE:
        return None
    return payload.get("admin_id")
