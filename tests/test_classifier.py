"""
Tests for ESAS risk classification
"""
import pytest

from app.services.esas import RiskLevel, Symptom, classify, validate
from app.services.esas.classifier import risk_level_for
from tests.conftest import make_scores


@pytest.mark.unit
class TestRiskLevel:

    @pytest.mark.parametrize("score,expected", [
        (0, RiskLevel.LOW),
        (1, RiskLevel.LOW),
        (3, RiskLevel.LOW),
        (4, RiskLevel.MEDIUM),
        (6, RiskLevel.MEDIUM),
        (7, RiskLevel.HIGH),
        (10, RiskLevel.HIGH),
    ])
    def test_thresholds(self, score, expected):
        assert risk_level_for(score) == expected


@pytest.mark.unit
class TestClassify:

    def test_single_highest_score(self):
        result = classify(validate(make_scores(q1=2, q6=8, q9=5)))
        assert result.highest_score == 8
        assert result.primary_symptom == Symptom.BREATHLESSNESS
        assert result.primary_question == 6
        assert result.risk_level == RiskLevel.HIGH

    def test_tie_goes_to_lowest_question(self):
        result = classify(validate(make_scores(q2=6, q5=6, q8=6)))
        assert result.primary_symptom == Symptom.FATIGUE
        assert result.risk_level == RiskLevel.MEDIUM

    def test_all_equal_picks_pain(self):
        result = classify(validate({str(q): 5 for q in range(1, 10)}))
        assert result.primary_symptom == Symptom.PAIN
        assert result.priority_rank == 1

    def test_all_zero_is_low_risk(self):
        result = classify(validate(make_scores()))
        assert result.highest_score == 0
        assert result.primary_symptom == Symptom.PAIN
        assert result.risk_level == RiskLevel.LOW

    def test_is_deterministic(self):
        scores = validate(make_scores(q4=9, q7=9))
        assert classify(scores) == classify(scores)
        assert classify(scores).primary_symptom == Symptom.NAUSEA

    def test_priority_rank_follows_question_order(self):
        result = classify(validate(make_scores(q9=3)))
        assert result.primary_symptom == Symptom.WELLBEING
        assert result.priority_rank == 9

    def test_symptoms_bound_to_question_ids(self):
        assert [s.question_id for s in Symptom] == list(range(1, 10))
        assert Symptom.for_question(5) == Symptom.APPETITE_LOSS
        with pytest.raises(ValueError):
            Symptom.for_question(10)
