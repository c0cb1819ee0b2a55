"""
Screening API Endpoints
Registered screenings, their results and printable reports
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import get_current_user
from app.core.error_handling import ForbiddenException, ValidationException
from app.core.storage import guarded
from app.middleware.permissions import ensure_patient_access, ensure_screening_access, require_screener
from app.models import Profile, Screening, SubjectType, UserRole
from app.schemas.report import PatientIdentity, ProviderIdentity, ReportView
from app.schemas.screening import ScreeningCreate, ScreeningListResponse, ScreeningResponse
from app.services.esas import RecommendationTable, recommendation_table_dependency
from app.services.patient_service import PatientService
from app.services.pdf_generator import pdf_generator
from app.services.report_assembler import assemble
from app.services.screening_service import ScreeningService, identity_from, identity_from_patient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/screenings", tags=["Screenings"])


@router.post("", response_model=ScreeningResponse, status_code=status.HTTP_201_CREATED)
async def create_screening(
    payload: ScreeningCreate,
    current_user: Profile = Depends(require_screener),
    db: AsyncSession = Depends(get_async_session),
    table: RecommendationTable = Depends(recommendation_table_dependency),
):
    """
    Submit an ESAS screening

    Patients screen themselves; their patient profile is created from
    ``identity`` on the first screening. Nurses screen an existing patient
    they own (``patient_id``) or register one on the spot (``identity``).
    """
    if current_user.role == UserRole.NURSE.value:
        subject_type = SubjectType.NURSE_ASSISTED
        if payload.patient_id:
            patient = await PatientService.get_patient(db, payload.patient_id)
            ensure_patient_access(current_user, patient)
        elif payload.identity:
            patient = await PatientService.create_patient(db, current_user.id, identity_from(payload.identity))
        else:
            raise ValidationException(
                "Either patient_id or identity is required",
                details={"field": "patient_id"},
            )
    else:
        subject_type = SubjectType.PATIENT
        if payload.patient_id:
            raise ForbiddenException("Patients can only screen themselves")
        identity = identity_from(payload.identity) if payload.identity else None
        patient = await PatientService.get_or_create_account_patient(db, current_user.id, identity)

    screening = await ScreeningService.create_screening(
        db,
        table,
        raw_scores=payload.scores,
        identity=identity_from_patient(patient),
        subject_type=subject_type,
        screening_type=payload.screening_type,
        user_id=current_user.id,
        patient_id=patient.id,
    )
    return ScreeningService.to_response(screening)


@router.get("", response_model=ScreeningListResponse)
async def list_screenings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    risk_level: Optional[str] = Query(None, pattern="^(low|medium|high)$"),
    patient_id: Optional[str] = Query(None),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Screening history: patients see their own, nurses the ones they
    submitted, admins all of them
    """
    filters = {}
    if current_user.role == UserRole.PATIENT.value:
        filters["account_id"] = current_user.id
    elif current_user.role == UserRole.NURSE.value:
        filters["user_id"] = current_user.id

    return await ScreeningService.list_screenings(
        db,
        patient_id=patient_id,
        risk_level=risk_level,
        page=page,
        limit=limit,
        **filters,
    )


async def _load_accessible(db: AsyncSession, screening_id: str, user: Profile):
    screening = await ScreeningService.get_screening(db, screening_id)
    patient = await PatientService.get_patient(db, screening.patient_id) if screening.patient_id else None
    ensure_screening_access(user, screening, patient)
    return screening, patient


async def _provider_for(db: AsyncSession, screening: Screening, viewer: Profile) -> Optional[ProviderIdentity]:
    """The screening nurse, else a viewing clinician, else nobody"""
    if screening.subject_type == SubjectType.NURSE_ASSISTED.value and screening.user_id:
        if screening.user_id == viewer.id:
            nurse = viewer
        else:
            nurse = await guarded(db.get(Profile, screening.user_id), "load screening nurse")
        if nurse:
            return ProviderIdentity(name=nurse.full_name, title=nurse.title, license_number=nurse.license_number)
    if viewer.role in (UserRole.NURSE.value, UserRole.ADMIN.value):
        return ProviderIdentity(name=viewer.full_name, title=viewer.title, license_number=viewer.license_number)
    return None


async def _build_report(db: AsyncSession, screening_id: str, user: Profile) -> ReportView:
    screening, patient = await _load_accessible(db, screening_id, user)
    identity = identity_from_patient(patient) if patient else screening.identity
    provider = await _provider_for(db, screening, user)
    return assemble(PatientIdentity(**identity), screening, provider)


@router.get("/{screening_id}", response_model=ScreeningResponse)
async def get_screening(
    screening_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    screening, _ = await _load_accessible(db, screening_id, current_user)
    return ScreeningService.to_response(screening)


@router.get("/{screening_id}/report", response_model=ReportView)
async def get_screening_report(
    screening_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Printable report data for a screening
    """
    return await _build_report(db, screening_id, current_user)


@router.get("/{screening_id}/report.pdf")
async def download_screening_report(
    screening_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Screening report as PDF
    """
    report = await _build_report(db, screening_id, current_user)
    pdf_bytes = pdf_generator.generate_screening_report(report)
    filename = f"laporan_esas_{report.screening.date.strftime('%Y%m%d')}_{screening_id[:8]}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
