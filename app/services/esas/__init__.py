"""
ESAS scoring: validation, risk classification and recommendations
"""

from app.services.esas.symptoms import QUESTION_IDS, RiskLevel, Symptom
from app.services.esas.validator import ScoreSet, validate
from app.services.esas.classifier import Classification, classify
from app.services.esas.recommendations import (
    Recommendation,
    RecommendationTable,
    get_recommendation_table,
    recommendation_table_dependency,
)

__all__ = [
    "QUESTION_IDS",
    "RiskLevel",
    "Symptom",
    "ScoreSet",
    "validate",
    "Classification",
    "classify",
    "Recommendation",
    "RecommendationTable",
    "get_recommendation_table",
    "recommendation_table_dependency",
]
