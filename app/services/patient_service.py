"""
Patient Service
Patient records, account self-profiles and per-patient screening summaries
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.error_handling import ConflictException, NotFoundException, ValidationException
from app.core.storage import guarded
from app.models import Patient, Screening
from app.schemas.patient import PatientResponse, PatientScreeningSummary
from app.services.esas import RiskLevel
from app.services.screening_service import ScreeningService

logger = logging.getLogger(__name__)

TREND_WINDOW = 3
TREND_MARGIN = 1.0


def _average(values: Sequence[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def progress_trend(highest_scores: Sequence[int]) -> str:
    """
    Trend over highest scores ordered newest first

    Compares the newest three screenings with the (up to) three before them.
    A drop of more than one point is an improvement.
    """
    if len(highest_scores) < 2:
        return "insufficient_data"

    recent = highest_scores[:TREND_WINDOW]
    older = highest_scores[TREND_WINDOW:TREND_WINDOW * 2]
    if not older:
        return "insufficient_data"

    recent_avg = _average(recent)
    older_avg = _average(older)
    if recent_avg < older_avg - TREND_MARGIN:
        return "improving"
    if recent_avg > older_avg + TREND_MARGIN:
        return "declining"
    return "stable"


def summarize(patient: Patient, screenings: List[Screening]) -> PatientScreeningSummary:
    """Summary of a patient's screenings, which must be ordered newest first"""
    items = [ScreeningService.to_list_item(s, patient.name) for s in screenings]
    highest_scores = [s.highest_score for s in screenings]
    risk_counts = {level.value: 0 for level in RiskLevel}
    for screening in screenings:
        risk_counts[screening.risk_level] = risk_counts.get(screening.risk_level, 0) + 1

    return PatientScreeningSummary(
        patient=PatientResponse.model_validate(patient),
        latest_screening=items[0] if items else None,
        screening_history=items,
        screening_count=len(items),
        first_screening_date=screenings[-1].created_at if screenings else None,
        last_screening_date=screenings[0].created_at if screenings else None,
        progress_trend=progress_trend(highest_scores),
        average_risk_score=round(_average(highest_scores), 1),
        high_risk_count=risk_counts[RiskLevel.HIGH.value],
        medium_risk_count=risk_counts[RiskLevel.MEDIUM.value],
        low_risk_count=risk_counts[RiskLevel.LOW.value],
    )


class PatientService:
    """Service for patient records"""

    @staticmethod
    async def create_patient(db: AsyncSession, owner_id: str, identity: Dict[str, Any]) -> Patient:
        """Register a patient owned by a nurse"""
        patient = Patient(
            user_id=owner_id,
            name=identity["name"],
            age=identity["age"],
            gender=identity["gender"],
            facility_name=identity.get("facility_name"),
        )
        db.add(patient)
        await guarded(db.flush(), "create patient")
        await guarded(db.refresh(patient), "reload patient")
        logger.info(f"Patient {patient.id} registered by {owner_id}")
        return patient

    @staticmethod
    async def get_account_patient(db: AsyncSession, account_id: str) -> Optional[Patient]:
        result = await guarded(
            db.execute(select(Patient).where(Patient.account_id == account_id)),
            "load account patient",
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_create_account_patient(
        db: AsyncSession,
        account_id: str,
        identity: Optional[Dict[str, Any]],
    ) -> Patient:
        """
        The account holder's own patient profile

        Created from ``identity`` on first use; an existing profile is
        returned unchanged.
        """
        patient = await PatientService.get_account_patient(db, account_id)
        if patient:
            return patient
        if not identity:
            raise ValidationException(
                "No patient profile for this account yet; include identity with the first screening",
                details={"field": "identity"},
            )

        patient = Patient(
            user_id=account_id,
            account_id=account_id,
            name=identity["name"],
            age=identity["age"],
            gender=identity["gender"],
            facility_name=identity.get("facility_name"),
        )
        db.add(patient)
        try:
            await guarded(db.flush(), "create account patient")
        except IntegrityError as e:
            raise ConflictException(
                "Patient profile for this account was created by a concurrent request",
                details={"account_id": account_id, "retryable": True},
            ) from e
        await guarded(db.refresh(patient), "reload patient")
        logger.info(f"Created self patient profile {patient.id} for account {account_id}")
        return patient

    @staticmethod
    async def get_patient(db: AsyncSession, patient_id: str) -> Patient:
        result = await guarded(db.execute(select(Patient).where(Patient.id == patient_id)), "load patient")
        patient = result.scalar_one_or_none()
        if not patient:
            raise NotFoundException("Patient not found", details={"patient_id": patient_id})
        return patient

    @staticmethod
    async def list_patients(
        db: AsyncSession,
        owner_id: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[Patient]:
        query = select(Patient)
        if owner_id:
            query = query.where(Patient.user_id == owner_id)
        if search:
            query = query.where(Patient.name.ilike(f"%{search}%"))
        query = query.order_by(Patient.created_at.desc()).offset(skip).limit(limit)
        result = await guarded(db.execute(query), "list patients")
        return list(result.scalars().all())

    @staticmethod
    async def get_summary(db: AsyncSession, patient: Patient) -> PatientScreeningSummary:
        result = await guarded(
            db.execute(
                select(Screening)
                .where(Screening.patient_id == patient.id)
                .order_by(Screening.created_at.desc())
            ),
            "load patient screenings",
        )
        return summarize(patient, list(result.scalars().all()))
