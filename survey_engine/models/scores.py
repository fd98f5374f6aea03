"""
Score variants stored on an attempt.

A simple-sum attempt carries one total; a dimension-average attempt carries one
mean per dimension. Exactly one of the two is persisted for each attempt.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class SingleScore:
    total: float


@dataclass(frozen=True)
class DimensionScores:
    averages: Dict[str, float] = field(default_factory=dict)

    def get(self, dimension: str) -> Optional[float]:
        return self.averages.get(dimension)


AttemptScore = Union[SingleScore, DimensionScores]


def to_columns(score: AttemptScore) -> Dict[str, object]:
    """Map a score variant onto the `total_score` / `dimension_scores` columns."""
    if isinstance(score, SingleScore):
        return {"total_score": score.total, "dimension_scores": None}
    return {"total_score": None, "dimension_scores": dict(score.averages)}


def from_columns(total_score: Optional[float], dimension_scores: Optional[Dict[str, float]]) -> AttemptScore:
    if dimension_scores is not None:
        return DimensionScores(averages={k: float(v) for k, v in dimension_scores.items()})
    if total_score is None:
        raise ValueError("attempt has neither a total score nor dimension scores")
    return SingleScore(total=float(total_score))
