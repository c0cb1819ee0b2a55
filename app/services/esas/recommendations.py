"""
ESAS recommendation table

Maps (primary symptom, risk level) to a nursing diagnosis, complementary
therapy, intervention steps, literature references, the action required and
the recommended frequency.

The table is read once from a versioned JSON file. Each symptom block holds
the shared content and a ``risk_levels`` object with one entry per risk
level; an entry may override any field of its symptom block and otherwise
inherits ``action_required``/``frequency`` from ``defaults``. A risk level
missing from a symptom block is a missing table entry, and loading fails.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from config import settings
from app.core.error_handling import RecommendationNotFound
from app.services.esas.symptoms import RiskLevel, Symptom

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).resolve().parents[2] / "data" / "esas_recommendations.json"

_CONTENT_FIELDS = ("diagnosis", "therapy_type", "intervention_steps", "references", "action_required", "frequency")


@dataclass(frozen=True)
class Recommendation:
    symptom: Symptom
    risk_level: RiskLevel
    diagnosis: str
    therapy_type: str
    intervention_steps: Tuple[str, ...]
    references: Tuple[str, ...]
    action_required: str
    frequency: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "diagnosis": self.diagnosis,
            "therapy_type": self.therapy_type,
            "intervention_steps": list(self.intervention_steps),
            "references": list(self.references),
            "action_required": self.action_required,
            "frequency": self.frequency,
        }


@dataclass
class RecommendationTable:
    version: str
    entries: Dict[Tuple[Symptom, RiskLevel], Recommendation] = field(default_factory=dict)
    # Action for a screening with no symptoms at all (every score 0)
    no_symptom_action: Optional[str] = None

    def resolve(self, primary_symptom: Symptom, risk_level: RiskLevel) -> Recommendation:
        try:
            return self.entries[(primary_symptom, risk_level)]
        except KeyError:
            raise RecommendationNotFound([(primary_symptom.value, risk_level.value)]) from None

    def recommend(self, primary_symptom: Symptom, risk_level: RiskLevel, highest_score: int) -> Recommendation:
        """Recommendation for a classified screening"""
        recommendation = self.resolve(primary_symptom, risk_level)
        if highest_score == 0 and self.no_symptom_action:
            return replace(recommendation, action_required=self.no_symptom_action)
        return recommendation

    def missing_entries(self) -> List[Tuple[Symptom, RiskLevel]]:
        return [
            (symptom, risk_level)
            for symptom in Symptom
            for risk_level in RiskLevel
            if (symptom, risk_level) not in self.entries
        ]

    def verify_complete(self) -> None:
        """Startup self-check: every symptom/risk pair must resolve"""
        missing = self.missing_entries()
        if missing:
            raise RecommendationNotFound([(s.value, r.value) for s, r in missing])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecommendationTable":
        defaults = data.get("defaults", {})
        table = cls(
            version=str(data.get("version", "unversioned")),
            no_symptom_action=defaults.get("action_required_no_symptoms"),
        )

        for symptom_key, block in data.get("symptoms", {}).items():
            try:
                symptom = Symptom(symptom_key)
            except ValueError:
                logger.warning(f"Ignoring unknown symptom '{symptom_key}' in recommendation table")
                continue

            question_id = block.get("question_id")
            if question_id is not None and question_id != symptom.question_id:
                raise ValueError(
                    f"Symptom '{symptom_key}' is bound to question {symptom.question_id}, table says {question_id}"
                )

            for risk_key, overrides in (block.get("risk_levels") or {}).items():
                risk_level = RiskLevel(risk_key)
                content = {
                    "action_required": defaults.get("action_required", {}).get(risk_key),
                    "frequency": defaults.get("frequency", {}).get(risk_key),
                }
                content.update({k: block[k] for k in _CONTENT_FIELDS if k in block})
                content.update({k: v for k, v in (overrides or {}).items() if k in _CONTENT_FIELDS})

                absent = [k for k in _CONTENT_FIELDS if content.get(k) is None]
                if absent:
                    raise ValueError(f"Recommendation {symptom_key}/{risk_key} has no value for: {', '.join(absent)}")

                table.entries[(symptom, risk_level)] = Recommendation(
                    symptom=symptom,
                    risk_level=risk_level,
                    diagnosis=content["diagnosis"],
                    therapy_type=content["therapy_type"],
                    intervention_steps=tuple(content["intervention_steps"]),
                    references=tuple(content["references"]),
                    action_required=content["action_required"],
                    frequency=content["frequency"],
                )

        return table

    @classmethod
    def from_file(cls, path: Path) -> "RecommendationTable":
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        table = cls.from_dict(data)
        table.verify_complete()
        logger.info(f"Loaded recommendation table v{table.version} ({len(table.entries)} entries) from {path}")
        return table


@lru_cache(maxsize=1)
def get_recommendation_table(path: Optional[str] = None) -> RecommendationTable:
    """
    Process-wide read-only table, loaded on first use

    The application lifespan calls it at startup so an incomplete table stops
    the process before serving.
    """
    table_path = Path(path or settings.RECOMMENDATIONS_PATH or DEFAULT_TABLE_PATH)
    return RecommendationTable.from_file(table_path)


def recommendation_table_dependency() -> RecommendationTable:
    return get_recommendation_table()
