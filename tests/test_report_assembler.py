"""
Tests for the ESAS report view
"""
import datetime

import pytest

from app.models import Screening, SubjectType
from app.schemas.report import ABSENT_DISPLAY_TEXT, PatientIdentity, ProviderIdentity, ReportField
from app.services.esas import get_recommendation_table
from app.services.report_assembler import assemble
from app.services.screening_service import build_esas_data, evaluate
from tests.conftest import make_scores


def make_screening(scores: dict, identity: dict, screening_type: str = "initial") -> Screening:
    evaluation = evaluate(scores, get_recommendation_table())
    classification = evaluation.classification
    return Screening(
        id="11111111-2222-3333-4444-555555555555",
        subject_type=SubjectType.PATIENT.value,
        user_id="account-1",
        patient_id="patient-1",
        screening_type=screening_type,
        status="completed",
        esas_data=build_esas_data(identity, evaluation.scores),
        highest_score=classification.highest_score,
        primary_question=classification.primary_question,
        risk_level=classification.risk_level.value,
        priority_rank=classification.priority_rank,
        recommendation=evaluation.recommendation.as_dict(),
        created_at=datetime.datetime(2026, 3, 14, 9, 30, tzinfo=datetime.timezone.utc),
    )


@pytest.fixture
def patient_identity(identity) -> PatientIdentity:
    return PatientIdentity(**identity)


@pytest.mark.unit
class TestAssemble:

    def test_questions_in_fixed_order_with_primary_flag(self, identity, patient_identity):
        screening = make_screening(make_scores(q9=2, q3=8, q7=8), identity)
        report = assemble(patient_identity, screening)

        assert [q.question_id for q in report.questions] == list(range(1, 10))
        assert [q.question_id for q in report.questions if q.is_primary] == [3]
        assert report.questions[2].score == 8
        assert report.questions[2].level == "Berat"
        assert report.questions[0].level == "Tidak ada keluhan"
        assert report.questions[8].level == "Ringan"

    def test_classification_and_recommendation(self, identity, patient_identity):
        screening = make_screening(make_scores(q1=9), identity, screening_type="follow_up")
        report = assemble(patient_identity, screening)

        assert report.screening.primary_symptom == "pain"
        assert report.screening.risk_level == "high"
        assert report.screening.risk_level_label == "Tinggi"
        assert report.screening.screening_type_label == "Screening Follow-up"
        assert report.screening.therapy_type == "Akupresur"
        assert report.screening.intervention_steps
        assert report.screening.action_required == screening.recommendation["action_required"]

    def test_patient_labels(self, identity, patient_identity):
        report = assemble(patient_identity, make_screening(make_scores(), identity))
        assert report.patient.gender_label == "Perempuan"
        assert report.patient.facility_name == ReportField(value="Puskesmas Sukajadi", present=True)

    def test_absent_facility_is_marked_absent(self, identity):
        patient = PatientIdentity(name="Budi Santoso", age=70, gender="L")
        report = assemble(patient, make_screening(make_scores(), identity))
        assert report.patient.facility_name.present is False
        assert report.patient.facility_name.value is None
        assert report.patient.facility_name.display() == ABSENT_DISPLAY_TEXT

    def test_blank_value_differs_from_absent(self):
        blank = ReportField.of("")
        assert blank.present is True
        assert blank.display() == ""
        assert blank != ReportField.absent()
        assert blank.model_dump() != ReportField.absent().model_dump()

    def test_without_provider_every_field_absent(self, identity, patient_identity):
        report = assemble(patient_identity, make_screening(make_scores(), identity))
        assert report.provider.name.present is False
        assert report.provider.title.present is False
        assert report.provider.license_number.present is False

    def test_provider_with_partial_details(self, identity, patient_identity):
        provider = ProviderIdentity(name="Ns. Sari Wulandari", title="Perawat Paliatif")
        report = assemble(patient_identity, make_screening(make_scores(), identity), provider)
        assert report.provider.name.display() == "Ns. Sari Wulandari"
        assert report.provider.title.value == "Perawat Paliatif"
        assert report.provider.license_number.display() == ABSENT_DISPLAY_TEXT

    def test_uses_stored_recommendation(self, identity, patient_identity):
        screening = make_screening(make_scores(q5=5), identity)
        screening.recommendation = dict(screening.recommendation, diagnosis="Diagnosa saat pengisian")
        report = assemble(patient_identity, screening)
        assert report.screening.diagnosis == "Diagnosa saat pengisian"
