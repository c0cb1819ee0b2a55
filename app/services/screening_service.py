"""
Screening Service
Scores, classifies and stores ESAS screenings, and reads them back
"""

import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.error_handling import NotFoundException
from app.core.storage import guarded
from app.models import Patient, Screening, SubjectType
from app.schemas.screening import (
    ClassificationOut,
    IdentityIn,
    RecommendationOut,
    ScreeningListItem,
    ScreeningListResponse,
    ScreeningResponse,
)
from app.services.esas import (
    Classification,
    Recommendation,
    RecommendationTable,
    ScoreSet,
    Symptom,
    classify,
    validate,
)
from app.services.esas.symptoms import question_text, score_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreeningEvaluation:
    scores: ScoreSet
    classification: Classification
    recommendation: Recommendation


def evaluate(raw_scores: Mapping, table: RecommendationTable) -> ScreeningEvaluation:
    """Validate, classify and resolve a raw score submission. No I/O."""
    scores = validate(raw_scores)
    classification = classify(scores)
    recommendation = table.recommend(
        classification.primary_symptom,
        classification.risk_level,
        classification.highest_score,
    )
    return ScreeningEvaluation(scores=scores, classification=classification, recommendation=recommendation)


def build_esas_data(identity: Dict[str, Any], scores: ScoreSet) -> Dict[str, Any]:
    return {
        "identity": {
            "name": identity.get("name"),
            "age": identity.get("age"),
            "gender": identity.get("gender"),
            "facility_name": identity.get("facility_name"),
        },
        "questions": {
            str(question_id): {
                "score": score,
                "text": question_text(question_id),
                "description": score_level(score).lower(),
            }
            for question_id, score in scores.items()
        },
    }


class ScreeningService:
    """Service for creating and reading ESAS screenings"""

    @staticmethod
    async def create_screening(
        db: AsyncSession,
        table: RecommendationTable,
        raw_scores: Mapping,
        identity: Dict[str, Any],
        subject_type: SubjectType,
        screening_type: str = "initial",
        user_id: Optional[str] = None,
        patient_id: Optional[str] = None,
    ) -> Screening:
        """
        Create a screening after validation

        Guest screenings get a fresh guest identifier and no owner; all other
        subject types must name the owning account and patient.
        """
        evaluation = evaluate(raw_scores, table)
        classification = evaluation.classification

        guest_identifier = None
        if subject_type == SubjectType.GUEST:
            guest_identifier = str(uuid.uuid4())
            user_id = None
            patient_id = None
        elif not user_id or not patient_id:
            raise ValueError("Registered screenings need an owning account and patient")

        screening = Screening(
            subject_type=subject_type.value,
            user_id=user_id,
            patient_id=patient_id,
            guest_identifier=guest_identifier,
            screening_type=screening_type,
            status="completed",
            esas_data=build_esas_data(identity, evaluation.scores),
            highest_score=classification.highest_score,
            primary_question=classification.primary_question,
            risk_level=classification.risk_level.value,
            priority_rank=classification.priority_rank,
            recommendation=evaluation.recommendation.as_dict(),
        )
        db.add(screening)
        await guarded(db.flush(), "create screening")
        await guarded(db.refresh(screening), "reload screening")

        logger.info(
            f"Screening {screening.id} created ({subject_type.value}): "
            f"highest={classification.highest_score} primary=Q{classification.primary_question} "
            f"risk={classification.risk_level.value}"
        )
        return screening

    @staticmethod
    async def get_screening(db: AsyncSession, screening_id: str) -> Screening:
        result = await guarded(db.execute(select(Screening).where(Screening.id == screening_id)), "load screening")
        screening = result.scalar_one_or_none()
        if not screening:
            raise NotFoundException("Screening not found", details={"screening_id": screening_id})
        return screening

    @staticmethod
    async def get_guest_screenings(db: AsyncSession, guest_identifier: str) -> List[Screening]:
        """Screenings still in guest state for a token, newest first"""
        query = (
            select(Screening)
            .where(
                Screening.subject_type == SubjectType.GUEST.value,
                Screening.guest_identifier == guest_identifier,
            )
            .order_by(Screening.created_at.desc())
        )
        result = await guarded(db.execute(query), "load guest screenings")
        return list(result.scalars().all())

    @staticmethod
    async def list_screenings(
        db: AsyncSession,
        user_id: Optional[str] = None,
        account_id: Optional[str] = None,
        patient_id: Optional[str] = None,
        risk_level: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ScreeningListResponse:
        """
        Paginated screening list, newest first

        ``user_id`` restricts to screenings the account submitted or owns,
        ``account_id`` to screenings of the account holder's own patient
        profile; admins pass neither.
        """
        query = select(Screening, Patient.name).outerjoin(Patient, Screening.patient_id == Patient.id)
        if user_id:
            query = query.where(Screening.user_id == user_id)
        if account_id:
            query = query.where(Patient.account_id == account_id)
        if patient_id:
            query = query.where(Screening.patient_id == patient_id)
        if risk_level:
            query = query.where(Screening.risk_level == risk_level)

        count_result = await guarded(
            db.execute(select(func.count()).select_from(query.subquery())),
            "count screenings",
        )
        total = count_result.scalar_one()

        page_query = query.order_by(Screening.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await guarded(db.execute(page_query), "list screenings")
        items = [ScreeningService.to_list_item(screening, name) for screening, name in result.all()]

        return ScreeningListResponse(
            data=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=max(1, math.ceil(total / limit)),
        )

    @staticmethod
    def to_list_item(screening: Screening, patient_name: Optional[str] = None) -> ScreeningListItem:
        return ScreeningListItem(
            id=screening.id,
            subject_type=screening.subject_type,
            patient_id=screening.patient_id,
            patient_name=patient_name or screening.identity.get("name"),
            screening_type=screening.screening_type,
            highest_score=screening.highest_score,
            primary_question=screening.primary_question,
            risk_level=screening.risk_level,
            created_at=screening.created_at,
        )

    @staticmethod
    def to_response(screening: Screening) -> ScreeningResponse:
        return ScreeningResponse(
            id=screening.id,
            subject_type=screening.subject_type,
            patient_id=screening.patient_id,
            user_id=screening.user_id,
            guest_identifier=screening.guest_identifier,
            screening_type=screening.screening_type,
            status=screening.status,
            identity=screening.identity,
            scores=screening.scores,
            classification=ClassificationOut(
                highest_score=screening.highest_score,
                primary_question=screening.primary_question,
                primary_symptom=Symptom.for_question(screening.primary_question).value,
                risk_level=screening.risk_level,
                priority_rank=screening.priority_rank,
            ),
            recommendation=RecommendationOut(**screening.recommendation),
            created_at=screening.created_at,
            linked_at=screening.linked_at,
        )


def identity_from(identity: IdentityIn) -> Dict[str, Any]:
    return identity.model_dump()


def identity_from_patient(patient: Patient) -> Dict[str, Any]:
    return {
        "name": patient.name,
        "age": patient.age,
        "gender": patient.gender,
        "facility_name": patient.facility_name,
    }
