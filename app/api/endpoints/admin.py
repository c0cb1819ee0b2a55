"""
Admin API endpoints for monitoring screenings and managing accounts
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.middleware.permissions import require_admin
from app.models import Profile, UserRole
from app.schemas.patient import DashboardStats, GuestCleanupResponse, ProfileResponse, RoleUpdate
from app.services.admin_service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    current_user: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Screening totals, this month's volume and risk distribution
    """
    return await AdminService.get_dashboard_stats(db)


@router.get("/users", response_model=List[ProfileResponse])
async def list_users(
    role: Optional[str] = Query(None, pattern="^(admin|nurse|patient)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    return await AdminService.list_users(db, role=role, skip=skip, limit=limit)


@router.patch("/users/{user_id}/role", response_model=ProfileResponse)
async def update_user_role(
    user_id: str,
    payload: RoleUpdate,
    current_user: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Change an account's role (the only way to grant admin)
    """
    profile = await AdminService.update_role(db, user_id, UserRole(payload.role))
    logger.info(f"Admin {current_user.id} set role of {user_id} to '{payload.role}'")
    return profile


@router.post("/guest-cleanup", response_model=GuestCleanupResponse)
async def cleanup_guest_screenings(
    retention_days: Optional[int] = Query(None, ge=1, le=3650),
    current_user: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Delete guest screenings that were never linked and are past retention
    """
    return await AdminService.cleanup_guest_screenings(db, retention_days=retention_days)
