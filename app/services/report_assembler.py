"""
Report Assembler
Merges patient identity, a stored screening and the responsible clinician
into the denormalized view used by the JSON report and the PDF renderer.
"""

from typing import Dict, List, Optional

from app.models import Screening
from app.schemas.report import (
    PatientIdentity,
    ProviderIdentity,
    ReportField,
    ReportPatient,
    ReportProvider,
    ReportQuestion,
    ReportScreening,
    ReportView,
)
from app.services.esas.symptoms import (
    QUESTION_IDS,
    RISK_LEVEL_LABELS,
    RiskLevel,
    Symptom,
    question_text,
    score_level,
)

GENDER_LABELS: Dict[str, str] = {
    "L": "Laki-laki",
    "P": "Perempuan",
}

SCREENING_TYPE_LABELS: Dict[str, str] = {
    "initial": "Screening Awal",
    "follow_up": "Screening Follow-up",
}


def _questions(screening: Screening) -> List[ReportQuestion]:
    scores = screening.scores
    rows = []
    for question_id in QUESTION_IDS:
        score = scores[question_id]
        rows.append(ReportQuestion(
            question_id=question_id,
            symptom=Symptom.for_question(question_id).value,
            text=question_text(question_id),
            score=score,
            level=score_level(score),
            is_primary=question_id == screening.primary_question,
        ))
    return rows


def _provider(provider: Optional[ProviderIdentity]) -> ReportProvider:
    if provider is None:
        return ReportProvider(
            name=ReportField.absent(),
            title=ReportField.absent(),
            license_number=ReportField.absent(),
        )
    return ReportProvider(
        name=ReportField.of(provider.name),
        title=ReportField.of(provider.title),
        license_number=ReportField.of(provider.license_number),
    )


def assemble(
    patient: PatientIdentity,
    screening: Screening,
    provider: Optional[ProviderIdentity] = None,
) -> ReportView:
    """
    Build the printable view of one screening

    Question rows always come out in questionnaire order. The primary
    symptom, risk level and recommendation are read from what was stored at
    submission time, never recomputed.
    """
    recommendation = screening.recommendation or {}
    risk_level = RiskLevel(screening.risk_level)

    return ReportView(
        patient=ReportPatient(
            name=patient.name,
            age=patient.age,
            gender=patient.gender,
            gender_label=GENDER_LABELS.get(patient.gender, patient.gender),
            facility_name=ReportField.of(patient.facility_name),
        ),
        screening=ReportScreening(
            id=screening.id,
            date=screening.created_at,
            screening_type=screening.screening_type,
            screening_type_label=SCREENING_TYPE_LABELS.get(screening.screening_type, screening.screening_type),
            highest_score=screening.highest_score,
            primary_question=screening.primary_question,
            primary_symptom=Symptom.for_question(screening.primary_question).value,
            risk_level=risk_level.value,
            risk_level_label=RISK_LEVEL_LABELS[risk_level],
            priority_rank=screening.priority_rank,
            action_required=recommendation.get("action_required", ""),
            diagnosis=recommendation.get("diagnosis", ""),
            therapy_type=recommendation.get("therapy_type", ""),
            intervention_steps=list(recommendation.get("intervention_steps", [])),
            references=list(recommendation.get("references", [])),
            frequency=recommendation.get("frequency", ""),
        ),
        questions=_questions(screening),
        provider=_provider(provider),
    )
