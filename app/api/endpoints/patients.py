"""
Patient API Endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from app.core.auth import get_current_user
from app.middleware.permissions import ensure_patient_access, require_clinical_staff, require_nurse
from app.models import Profile, UserRole
from app.schemas.patient import PatientCreate, PatientResponse, PatientScreeningSummary
from app.services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: PatientCreate,
    current_user: Profile = Depends(require_nurse),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Register a patient under the calling nurse
    """
    return await PatientService.create_patient(db, current_user.id, payload.model_dump())


@router.get("", response_model=List[PatientResponse])
async def list_patients(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    search: Optional[str] = Query(None, max_length=100),
    current_user: Profile = Depends(require_clinical_staff),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Nurses list their own patients, admins every patient
    """
    owner_id = None if current_user.role == UserRole.ADMIN.value else current_user.id
    return await PatientService.list_patients(db, owner_id=owner_id, search=search, skip=skip, limit=limit)


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    patient = await PatientService.get_patient(db, patient_id)
    ensure_patient_access(current_user, patient)
    return patient


@router.get("/{patient_id}/summary", response_model=PatientScreeningSummary)
async def get_patient_summary(
    patient_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Screening history with risk counts and progress trend
    """
    patient = await PatientService.get_patient(db, patient_id)
    ensure_patient_access(current_user, patient)
    return await PatientService.get_summary(db, patient)
