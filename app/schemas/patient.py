"""
Pydantic schemas for patients, accounts and the admin dashboard
"""

from typing import Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.schemas.screening import IdentityIn, ScreeningListItem


class PatientCreate(IdentityIn):
    """Request to register a patient (nurses)"""


class PatientResponse(BaseModel):
    id: str
    user_id: str
    account_id: Optional[str] = None
    name: str
    age: int
    gender: str
    facility_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PatientScreeningSummary(BaseModel):
    patient: PatientResponse
    latest_screening: Optional[ScreeningListItem] = None
    screening_history: List[ScreeningListItem]
    screening_count: int
    first_screening_date: Optional[datetime] = None
    last_screening_date: Optional[datetime] = None
    progress_trend: Literal["improving", "declining", "stable", "insufficient_data"]
    average_risk_score: float
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: str
    role: str
    title: Optional[str] = None
    license_number: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    role: Literal["admin", "nurse", "patient"]


class DashboardStats(BaseModel):
    total_patients: int
    total_screenings: int
    guest_screenings: int
    monthly_screenings: int
    average_risk_score: float
    risk_distribution: Dict[str, int]


class GuestCleanupResponse(BaseModel):
    deleted_count: int
    cutoff: datetime
    retention_days: int = Field(..., ge=1)
