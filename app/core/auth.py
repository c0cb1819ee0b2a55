"""
Authentication dependencies
Resolves the bearer token to the caller's profile, provisioning the profile
on first use.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.error_handling import UnauthorizedException
from app.core.security import verify_token
from app.core.storage import guarded
from app.models import Profile, UserRole

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Roles an account may claim for itself at sign-up
SELF_ASSIGNABLE_ROLES = (UserRole.PATIENT, UserRole.NURSE)


def provisioned_role(metadata: Dict[str, Any]) -> UserRole:
    requested = str(metadata.get("role") or "").lower()
    for role in SELF_ASSIGNABLE_ROLES:
        if requested == role.value:
            return role
    return UserRole.PATIENT


async def get_or_provision_profile(db: AsyncSession, payload: Dict[str, Any]) -> Profile:
    """
    Profile for the token's subject, created from ``user_metadata`` if missing
    """
    account_id = payload["sub"]
    result = await guarded(db.execute(select(Profile).where(Profile.id == account_id)), "load profile")
    profile = result.scalar_one_or_none()
    if profile:
        return profile

    metadata = payload.get("user_metadata") or {}
    email = payload.get("email")
    profile = Profile(
        id=account_id,
        email=email,
        full_name=(metadata.get("full_name") or email or "Pengguna").strip()[:100],
        role=provisioned_role(metadata).value,
    )
    db.add(profile)
    try:
        await guarded(db.flush(), "provision profile")
    except IntegrityError:
        # Parallel first requests from the same account
        await db.rollback()
        result = await guarded(db.execute(select(Profile).where(Profile.id == account_id)), "load profile")
        return result.scalar_one()

    logger.info(f"Provisioned profile {account_id} with role '{profile.role}'")
    return profile


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_async_session),
) -> Profile:
    """
    Get the current authenticated account profile
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Not authenticated")

    payload = verify_token(credentials.credentials)
    return await get_or_provision_profile(db, payload)
