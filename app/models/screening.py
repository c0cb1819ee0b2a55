"""
Screening Database Models
Accounts (profiles), patients and ESAS screenings
"""

import datetime
import enum
import uuid
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, JSON, Index
from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    NURSE = "nurse"
    PATIENT = "patient"


class SubjectType(str, enum.Enum):
    PATIENT = "patient"  # Self-registered patient
    NURSE_ASSISTED = "nurse_assisted"  # Patient screened by a nurse
    GUEST = "guest"  # Anonymous guest, identified only by guest_identifier


class Profile(Base):
    """
    Account profile
    The id is the subject of the identity provider's tokens.
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.PATIENT.value, index=True)
    title = Column(String(100), nullable=True)  # e.g. "Perawat Paliatif"
    license_number = Column(String(50), nullable=True)  # STR number for nurses

    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=_now)

    def __repr__(self):
        return f"<Profile(id={self.id}, role='{self.role}')>"


class Patient(Base):
    """
    Patient record
    ``user_id`` is the account that owns the record (the nurse, or the patient
    themself); ``account_id`` is set when the record is the account holder's
    own profile, and is unique so an account has at most one.
    """
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, unique=True)
    name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(1), nullable=False)  # 'L' (laki-laki) or 'P' (perempuan)
    facility_name = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=_now)

    def __repr__(self):
        return f"<Patient(id={self.id}, name='{self.name}')>"


class Screening(Base):
    """
    ESAS screening record
    Immutable after creation except for the guest -> patient re-parenting,
    which sets user_id/patient_id and clears guest_identifier exactly once.
    """
    __tablename__ = "screenings"

    id = Column(String(36), primary_key=True, default=_uuid)
    subject_type = Column(String(20), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=True, index=True)
    guest_identifier = Column(String(36), nullable=True, index=True)

    screening_type = Column(String(20), nullable=False, default="initial")  # initial, follow_up
    status = Column(String(20), nullable=False, default="completed")

    # {"identity": {...}, "questions": {"1": {"score", "text", "description"}, ...}}
    esas_data = Column(JSON, nullable=False)
    highest_score = Column(Integer, nullable=False)
    primary_question = Column(Integer, nullable=False)
    risk_level = Column(String(10), nullable=False, index=True)
    priority_rank = Column(Integer, nullable=False)
    # Snapshot of the resolved recommendation at submission time
    recommendation = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=_now)
    linked_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_screenings_guest_state', 'subject_type', 'guest_identifier'),
        CheckConstraint("highest_score BETWEEN 0 AND 10", name='ck_screenings_highest_score'),
        CheckConstraint("primary_question BETWEEN 1 AND 9", name='ck_screenings_primary_question'),
        CheckConstraint("risk_level IN ('low', 'medium', 'high')", name='ck_screenings_risk_level'),
        CheckConstraint(
            "(subject_type = 'guest' AND guest_identifier IS NOT NULL AND user_id IS NULL)"
            " OR (subject_type <> 'guest' AND guest_identifier IS NULL AND user_id IS NOT NULL)",
            name='ck_screenings_ownership_state',
        ),
    )

    @property
    def identity(self) -> dict:
        return (self.esas_data or {}).get("identity") or {}

    @property
    def scores(self) -> dict:
        questions = (self.esas_data or {}).get("questions") or {}
        return {int(qid): item["score"] for qid, item in questions.items()}

    def __repr__(self):
        return f"<Screening(id={self.id}, subject_type='{self.subject_type}', risk_level='{self.risk_level}')>"
