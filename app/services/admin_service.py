"""
Admin Service
Dashboard statistics, account roles and guest data retention
"""

import datetime
import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from app.core.error_handling import NotFoundException
from app.core.storage import guarded
from app.models import Patient, Profile, Screening, SubjectType, UserRole
from app.schemas.patient import DashboardStats, GuestCleanupResponse
from app.services.esas import RiskLevel

logger = logging.getLogger(__name__)


class AdminService:

    @staticmethod
    async def get_dashboard_stats(db: AsyncSession, now: Optional[datetime.datetime] = None) -> DashboardStats:
        now = now or datetime.datetime.now(datetime.timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        total_patients = (await guarded(db.execute(select(func.count(Patient.id))), "count patients")).scalar_one()
        total_screenings = (
            await guarded(db.execute(select(func.count(Screening.id))), "count screenings")
        ).scalar_one()
        guest_screenings = (
            await guarded(
                db.execute(select(func.count(Screening.id)).where(Screening.subject_type == SubjectType.GUEST.value)),
                "count guest screenings",
            )
        ).scalar_one()
        monthly_screenings = (
            await guarded(
                db.execute(select(func.count(Screening.id)).where(Screening.created_at >= month_start)),
                "count monthly screenings",
            )
        ).scalar_one()
        average = (
            await guarded(db.execute(select(func.avg(Screening.highest_score))), "average highest score")
        ).scalar_one()

        distribution_rows = (
            await guarded(
                db.execute(select(Screening.risk_level, func.count(Screening.id)).group_by(Screening.risk_level)),
                "risk distribution",
            )
        ).all()
        risk_distribution = {level.value: 0 for level in RiskLevel}
        for risk_level, count in distribution_rows:
            risk_distribution[risk_level] = count

        return DashboardStats(
            total_patients=total_patients,
            total_screenings=total_screenings,
            guest_screenings=guest_screenings,
            monthly_screenings=monthly_screenings,
            average_risk_score=round(float(average or 0), 1),
            risk_distribution=risk_distribution,
        )

    @staticmethod
    async def list_users(db: AsyncSession, role: Optional[str] = None, skip: int = 0, limit: int = 50) -> List[Profile]:
        query = select(Profile)
        if role:
            query = query.where(Profile.role == role)
        query = query.order_by(Profile.created_at.desc()).offset(skip).limit(limit)
        result = await guarded(db.execute(query), "list users")
        return list(result.scalars().all())

    @staticmethod
    async def update_role(db: AsyncSession, user_id: str, role: UserRole) -> Profile:
        result = await guarded(db.execute(select(Profile).where(Profile.id == user_id)), "load profile")
        profile = result.scalar_one_or_none()
        if not profile:
            raise NotFoundException("User not found", details={"user_id": user_id})

        previous = profile.role
        profile.role = role.value
        await guarded(db.flush(), "update role")
        await guarded(db.refresh(profile), "reload profile")
        logger.info(f"Role of {user_id} changed from '{previous}' to '{role.value}'")
        return profile

    @staticmethod
    async def cleanup_guest_screenings(
        db: AsyncSession,
        retention_days: Optional[int] = None,
        now: Optional[datetime.datetime] = None,
    ) -> GuestCleanupResponse:
        """Delete guest-state screenings older than the retention period. Linked screenings are kept."""
        retention_days = retention_days or settings.GUEST_RETENTION_DAYS
        now = now or datetime.datetime.now(datetime.timezone.utc)
        cutoff = now - datetime.timedelta(days=retention_days)

        result = await guarded(
            db.execute(
                delete(Screening)
                .where(
                    Screening.subject_type == SubjectType.GUEST.value,
                    Screening.guest_identifier.is_not(None),
                    Screening.created_at < cutoff,
                )
                .execution_options(synchronize_session=False)
            ),
            "delete expired guest screenings",
        )
        deleted = result.rowcount or 0
        logger.info(f"Guest cleanup removed {deleted} screening(s) created before {cutoff.isoformat()}")
        return GuestCleanupResponse(deleted_count=deleted, cutoff=cutoff, retention_days=retention_days)
