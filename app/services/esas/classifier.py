"""
ESAS risk classification

Risk thresholds on the highest item score:
    7-10 -> high, 4-6 -> medium, 1-3 -> low, 0 -> low (no complaints)

When several questions share the highest score the lowest question id wins,
so Pain outranks Fatigue, Fatigue outranks Drowsiness and so on.
"""

from dataclasses import dataclass

from app.services.esas.symptoms import QUESTION_IDS, RiskLevel, Symptom
from app.services.esas.validator import ScoreSet

HIGH_RISK_THRESHOLD = 7
MEDIUM_RISK_THRESHOLD = 4


@dataclass(frozen=True)
class Classification:
    highest_score: int
    primary_symptom: Symptom
    risk_level: RiskLevel
    priority_rank: int

    @property
    def primary_question(self) -> int:
        return self.primary_symptom.question_id


def risk_level_for(highest_score: int) -> RiskLevel:
    if highest_score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if highest_score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def classify(scores: ScoreSet) -> Classification:
    highest_score = max(scores.values())
    primary_question = next(q for q in QUESTION_IDS if scores[q] == highest_score)
    return Classification(
        highest_score=highest_score,
        primary_symptom=Symptom.for_question(primary_question),
        risk_level=risk_level_for(highest_score),
        priority_rank=primary_question,
    )
