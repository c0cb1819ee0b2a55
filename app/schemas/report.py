"""
Pydantic schemas for the printable ESAS report
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

ABSENT_DISPLAY_TEXT = "Tidak tersedia"


class ReportField(BaseModel):
    """
    Optional report value with an explicit presence flag
    ``ReportField.absent()`` and ``ReportField.of("")`` serialize differently.
    """
    value: Optional[str] = None
    present: bool = False

    @classmethod
    def of(cls, value: Optional[str]) -> "ReportField":
        if value is None:
            return cls.absent()
        return cls(value=str(value), present=True)

    @classmethod
    def absent(cls) -> "ReportField":
        return cls(value=None, present=False)

    def display(self) -> str:
        return self.value if self.present else ABSENT_DISPLAY_TEXT


class PatientIdentity(BaseModel):
    """Report input: who was screened"""
    name: str
    age: int
    gender: str
    facility_name: Optional[str] = None


class ProviderIdentity(BaseModel):
    """Report input: the clinician responsible for the screening"""
    name: str
    title: Optional[str] = None
    license_number: Optional[str] = None


class ReportPatient(BaseModel):
    name: str
    age: int
    gender: str
    gender_label: str
    facility_name: ReportField


class ReportQuestion(BaseModel):
    question_id: int
    symptom: str
    text: str
    score: int
    level: str
    is_primary: bool


class ReportScreening(BaseModel):
    id: str
    date: datetime
    screening_type: str
    screening_type_label: str
    highest_score: int
    primary_question: int
    primary_symptom: str
    risk_level: str
    risk_level_label: str
    priority_rank: int
    action_required: str
    diagnosis: str
    therapy_type: str
    intervention_steps: List[str]
    references: List[str]
    frequency: str


class ReportProvider(BaseModel):
    name: ReportField
    title: ReportField
    license_number: ReportField


class ReportView(BaseModel):
    patient: ReportPatient
    screening: ReportScreening
    questions: List[ReportQuestion] = Field(..., min_length=9, max_length=9)
    provider: ReportProvider
