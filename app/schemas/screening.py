"""
Pydantic schemas for ESAS screenings and guest linking
"""

from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class IdentityIn(BaseModel):
    """Identity fields collected on the screening form"""
    name: str = Field(..., min_length=3, max_length=100, description="Patient name")
    age: int = Field(..., gt=0, le=150, description="Age in years")
    gender: Literal["L", "P"] = Field(..., description="L = laki-laki, P = perempuan")
    facility_name: Optional[str] = Field(None, max_length=100, description="Health facility, if any")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Name must have at least 3 characters")
        return value

    @field_validator("facility_name")
    @classmethod
    def blank_facility_is_absent(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class ScreeningCreate(BaseModel):
    """Request to create a screening for a registered patient"""
    patient_id: Optional[str] = Field(None, description="Existing patient (nurse screenings)")
    identity: Optional[IdentityIn] = Field(None, description="New patient identity")
    screening_type: Literal["initial", "follow_up"] = "initial"
    # Kept loose on purpose: the ESAS validator reports per-question errors
    scores: Dict[Any, Any] = Field(..., description="Question id (1-9) -> score (0-10)")


class GuestScreeningCreate(BaseModel):
    """Request to create an anonymous guest screening"""
    identity: IdentityIn
    screening_type: Literal["initial", "follow_up"] = "initial"
    scores: Dict[Any, Any] = Field(..., description="Question id (1-9) -> score (0-10)")


class ClassificationOut(BaseModel):
    highest_score: int
    primary_question: int
    primary_symptom: str
    risk_level: str
    priority_rank: int


class RecommendationOut(BaseModel):
    diagnosis: str
    therapy_type: str
    intervention_steps: List[str]
    references: List[str]
    action_required: str
    frequency: str


class ScreeningResponse(BaseModel):
    """Screening with everything needed to display the result"""
    id: str
    subject_type: str
    patient_id: Optional[str] = None
    user_id: Optional[str] = None
    guest_identifier: Optional[str] = None
    screening_type: str
    status: str
    identity: Dict[str, Any]
    scores: Dict[int, int]
    classification: ClassificationOut
    recommendation: RecommendationOut
    created_at: datetime
    linked_at: Optional[datetime] = None


class ScreeningListItem(BaseModel):
    id: str
    subject_type: str
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    screening_type: str
    highest_score: int
    primary_question: int
    risk_level: str
    created_at: datetime


class ScreeningListResponse(BaseModel):
    data: List[ScreeningListItem]
    total: int
    page: int
    limit: int
    total_pages: int


class GuestLinkRequest(BaseModel):
    """Link a guest's screenings to the calling account"""
    guest_identifier: str = Field(..., min_length=1, max_length=36)
    screening_id: Optional[str] = Field(None, description="Screening shown to the guest before registering")


class LinkOutcome(BaseModel):
    patient_id: str
    screening_ids: List[str]


class QuestionOut(BaseModel):
    question_id: int
    symptom: str
    text: str
    description: str
    min_score: int
    max_score: int


class QuestionnaireResponse(BaseModel):
    questions: List[QuestionOut]
    recommendation_table_version: str
