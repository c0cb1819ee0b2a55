"""
ESAS questionnaire vocabulary
Symptoms are bound to question identifiers 1..9 by declaration order.
"""

from enum import Enum
from typing import Dict, List, Tuple

QUESTION_IDS: Tuple[int, ...] = tuple(range(1, 10))
MIN_SCORE = 0
MAX_SCORE = 10


class Symptom(str, Enum):
    PAIN = "pain"
    FATIGUE = "fatigue"
    DROWSINESS = "drowsiness"
    NAUSEA = "nausea"
    APPETITE_LOSS = "appetite_loss"
    BREATHLESSNESS = "breathlessness"
    DEPRESSION = "depression"
    ANXIETY = "anxiety"
    WELLBEING = "wellbeing"

    @property
    def question_id(self) -> int:
        return _SYMPTOM_ORDER.index(self) + 1

    @classmethod
    def for_question(cls, question_id: int) -> "Symptom":
        if question_id not in QUESTION_IDS:
            raise ValueError(f"No ESAS symptom for question {question_id}")
        return _SYMPTOM_ORDER[question_id - 1]


_SYMPTOM_ORDER: List[Symptom] = list(Symptom)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


RISK_LEVEL_LABELS: Dict[RiskLevel, str] = {
    RiskLevel.LOW: "Rendah",
    RiskLevel.MEDIUM: "Sedang",
    RiskLevel.HIGH: "Tinggi",
}

# Question text as shown on the screening form
QUESTION_TEXTS: Dict[int, Tuple[str, str]] = {
    1: ("Nyeri", "Keluhan nyeri yang dialami saat ini"),
    2: ("Lelah/Kekurangan Tenaga", "Keluhan lelah atau kekurangan tenaga"),
    3: ("Kantuk/Gangguan Tidur", "Rasa kantuk atau sulit menahan kantuk"),
    4: ("Mual/Nausea", "Keluhan mual atau rasa ingin muntah"),
    5: ("Nafsu Makan", "Penurunan nafsu makan"),
    6: ("Sesak/Pola Napas", "Keluhan sesak saat bernapas"),
    7: ("Sedih/Keputusasaan", "Perasaan sedih, murung, atau kehilangan semangat"),
    8: ("Cemas/Ansietas", "Perasaan cemas atau khawatir"),
    9: ("Perasaan Keseluruhan", "Perasaan keseluruhan saat ini"),
}


def question_text(question_id: int) -> str:
    return QUESTION_TEXTS[question_id][0]


def score_level(score: int) -> str:
    """Per-item severity label used on reports"""
    if score == 0:
        return "Tidak ada keluhan"
    if score <= 3:
        return "Ringan"
    if score <= 6:
        return "Sedang"
    return "Berat"


def questionnaire() -> List[Dict[str, object]]:
    return [
        {
            "question_id": question_id,
            "symptom": Symptom.for_question(question_id).value,
            "text": text,
            "description": description,
            "min_score": MIN_SCORE,
            "max_score": MAX_SCORE,
        }
        for question_id, (text, description) in QUESTION_TEXTS.items()
    ]
