"""
Score-to-band interpretation.

Bands are inclusive ranges. When ranges overlap, the band stored first (lowest
id) wins; registration rejects overlapping or gapped configurations so the
tie-break only matters for data seeded by other means.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol, Sequence
from sqlalchemy import select
from sqlalchemy.orm import Session

from survey_engine.core.database import storage_guard
from survey_engine.core.exceptions import BandConfigurationError
from survey_engine.models.orm import SurveyResult
from survey_engine.models.schemas import BandOut

logger = logging.getLogger(__name__)


class BandRange(Protocol):
    min_score: float
    max_score: float
    label: str


def resolve_band(
    db: Session,
    survey_type_id: int,
    score: float,
    dimension: Optional[str] = None,
) -> Optional[SurveyResult]:
    """Return the first band containing `score`, or None when nothing matches."""
    stmt = select(SurveyResult).where(
        SurveyResult.survey_type_id == survey_type_id,
        SurveyResult.min_score <= score,
        SurveyResult.max_score >= score,
    )
    if dimension is not None:
        stmt = stmt.where(SurveyResult.dimension == dimension)
    stmt = stmt.order_by(SurveyResult.id).limit(1)
    with storage_guard("resolve band"):
        return db.scalar(stmt)


def band_out(band: Optional[SurveyResult]) -> Optional[BandOut]:
    return BandOut.model_validate(band) if band is not None else None


def sum_attainable_scores(question_count: int, min_scale: float, max_scale: float) -> List[float]:
    """Every total reachable with whole-number answers.

    Reverse scoring maps the scale onto itself, so reverse items do not change
    the attainable range.
    """
    lo, hi = math.ceil(min_scale), math.floor(max_scale)
    return [float(t) for t in range(question_count * lo, question_count * hi + 1)]


def average_attainable_scores(block_size: int, min_scale: float, max_scale: float) -> List[float]:
    """Every block mean reachable with whole-number answers."""
    return [s / block_size for s in sum_attainable_scores(block_size, min_scale, max_scale)]


def check_band_coverage(
    bands: Sequence[BandRange],
    attainable_scores: Iterable[float],
    scope: str = "instrument",
) -> None:
    """Fail when bands overlap or an attainable score has no band.

    Raises:
        BandConfigurationError: on an inverted range, an overlap or a gap.
    """
    ordered = sorted(bands, key=lambda b: (b.min_score, b.max_score))
    for band in ordered:
        if band.min_score > band.max_score:
            raise BandConfigurationError(
                f"Band '{band.label}' in {scope} has min_score above max_score",
                {"label": band.label, "min_score": band.min_score, "max_score": band.max_score},
            )
    for prev, cur in zip(ordered, ordered[1:]):
        if cur.min_score <= prev.max_score:
            raise BandConfigurationError(
                f"Bands '{prev.label}' and '{cur.label}' overlap in {scope}",
                {"first": prev.label, "second": cur.label},
            )

    unmapped = [
        s for s in attainable_scores
        if not any(b.min_score <= s <= b.max_score for b in ordered)
    ]
    if unmapped:
        raise BandConfigurationError(
            f"{len(unmapped)} attainable score(s) in {scope} have no band",
            {"unmapped": unmapped[:10]},
        )
    logger.debug(f"Band coverage ok for {scope}: {len(ordered)} bands")


def group_by_dimension(bands: Sequence[BandRange]) -> Dict[Optional[str], List[BandRange]]:
    groups: Dict[Optional[str], List[BandRange]] = {}
    for band in bands:
        groups.setdefault(getattr(band, "dimension", None), []).append(band)
    return groups
