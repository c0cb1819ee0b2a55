"""
ESAS score validation

``validate`` is the only way to obtain a ScoreSet, so everything downstream
can rely on exactly nine integer scores in range.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple

from app.core.error_handling import IncompleteScoreSet, InvalidQuestionId, ScoreOutOfRange
from app.services.esas.symptoms import MAX_SCORE, MIN_SCORE, QUESTION_IDS


@dataclass(frozen=True, eq=False)
class ScoreSet(Mapping):
    """Immutable mapping of question id (1..9) to score (0..10)"""

    scores: Tuple[int, ...]

    def __post_init__(self):
        if len(self.scores) != len(QUESTION_IDS):
            raise ValueError("ScoreSet requires exactly 9 scores")

    def __getitem__(self, question_id: int) -> int:
        if isinstance(question_id, bool) or question_id not in QUESTION_IDS:
            raise KeyError(question_id)
        return self.scores[question_id - 1]

    def __iter__(self) -> Iterator[int]:
        return iter(QUESTION_IDS)

    def __len__(self) -> int:
        return len(self.scores)

    def as_json(self) -> Dict[str, int]:
        """Keys as strings, the form they take in stored JSON"""
        return {str(question_id): score for question_id, score in self.items()}


def _normalize_question_id(key: Any) -> int:
    if isinstance(key, bool):
        raise InvalidQuestionId(key)
    if isinstance(key, int):
        question_id = key
    elif isinstance(key, str) and key.strip().isascii() and key.strip().isdigit():
        try:
            question_id = int(key.strip())
        except ValueError:
            raise InvalidQuestionId(key) from None
    else:
        raise InvalidQuestionId(key)
    if question_id not in QUESTION_IDS:
        raise InvalidQuestionId(key)
    return question_id


def _is_valid_score(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_SCORE <= value <= MAX_SCORE


def validate(raw: Mapping) -> ScoreSet:
    """
    Validate a raw ``scores`` submission

    Raises InvalidQuestionId, IncompleteScoreSet or ScoreOutOfRange, checked
    in that order.
    """
    if not isinstance(raw, Mapping):
        raise IncompleteScoreSet(missing=QUESTION_IDS, present=0)

    normalized: Dict[int, Any] = {}
    for key, value in raw.items():
        question_id = _normalize_question_id(key)
        if question_id in normalized:
            # "1" and 1 in the same submission
            raise InvalidQuestionId(key)
        normalized[question_id] = value

    if len(normalized) != len(QUESTION_IDS):
        missing = [question_id for question_id in QUESTION_IDS if question_id not in normalized]
        raise IncompleteScoreSet(missing=missing, present=len(normalized))

    for question_id in QUESTION_IDS:
        value = normalized[question_id]
        if not _is_valid_score(value):
            raise ScoreOutOfRange(question_id, value)

    return ScoreSet(tuple(normalized[question_id] for question_id in QUESTION_IDS))
