"""
Authentication API endpoints.

Administrator sign-up, driver sign-up through an invitation, login,
logout (token revocation) and current user info.
"""

import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from backend.app.api.v1.deps import get_store
from backend.app.core.actor import Actor
from backend.app.core.config import settings
from backend.app.core.dependencies import get_bearer_token, get_current_actor
from backend.app.core.guards import require_admin
from backend.app.core.jwt import create_access_token, create_invitation_token, decode_invitation_token
from backend.app.core.security import get_password_hash, verify_password
from backend.app.core.token_revocation import revoke_token
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.auth import (
    AdminRegister,
    DriverRegister,
    InvitationResponse,
    TokenResponse,
    UserLogin,
    UserResponse,
)
from backend.app.store.entity_store import EntityKind, EntityStore

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("freight.auth")


def _token_response(user: User) -> TokenResponse:
    jwt_payload = {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
        "admin_id": user.admin_id,
    }
    return TokenResponse(
        access_token=create_access_token(data=jwt_payload),
        token_type="bearer",
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        admin_id=user.admin_id,
    )


async def _ensure_email_free(store: EntityStore, email: str):
    if await store.find_user_by_email(email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(
    user_data: AdminRegister,
    store: EntityStore = Depends(get_store)
):
    """Register a new administrator account."""
    await _ensure_email_free(store, user_data.email)

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        phone=user_data.phone,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.ADMIN,
        admin_id=None,
        is_active=True,
    )
    new_user = await store.insert(EntityKind.USER, new_user)
    logger.info("Administrator %s registered", new_user.id)

    return _token_response(new_user)


@router.post("/invitations", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def create_invitation(actor: Actor = Depends(require_admin)):
    """Issue an invitation token a new driver uses to join this administrator."""
    return InvitationResponse(
        invitation_token=create_invitation_token(actor.id),
        expires_in_hours=settings.invitation_expire_hours,
    )


@router.post("/register-driver", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_driver(
    user_data: DriverRegister,
    store: EntityStore = Depends(get_store)
):
    """
    Register a driver from an invitation.

    The driver is linked to the administrator who issued the invitation.
    """
    admin_id = decode_invitation_token(user_data.invitation_token)
    if admin_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invitation is invalid or has expired"
        )

    admin = await store.get(EntityKind.USER, admin_id)
    if admin is None or admin.role != UserRole.ADMIN or not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inviting administrator no longer exists"
        )

    await _ensure_email_free(store, user_data.email)

    new_user = User(
        email=user_data.email,
        name=user_data.name,
        phone=user_data.phone,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.DRIVER,
        admin_id=admin.id,
        is_active=True,
        trial_ends_at=datetime.now(timezone.utc) + timedelta(days=settings.driver_trial_days),
    )
    new_user = await store.insert(EntityKind.USER, new_user)
    logger.info("Driver %s joined administrator %s", new_user.id, admin.id)

    return _token_response(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    store: EntityStore = Depends(get_store)
):
    """Login user and return JWT token."""
    user = await store.find_user_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for %s", credentials.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return _token_response(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    actor: Actor = Depends(get_current_actor),
    token: str = Depends(get_bearer_token)
):
    """Revoke the presented token."""
    await revoke_token(token, actor.id)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    actor: Actor = Depends(get_current_actor),
    store: EntityStore = Depends(get_store)
):
    """Get current authenticated user information."""
    user = await store.get(EntityKind.USER, actor.id)
    return UserResponse.model_validate(user)
