"""
Scoring engine for survey submissions.

Each instrument declares a scoring strategy. The strategy picks a scorer from
SCORERS; the scorer computes the score variant for the answers and resolves
interpretation bands for it. Adding an instrument type means adding a scorer
and a ScoringStrategy member, nothing else.
"""
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from survey_engine.core.database import storage_guard
from survey_engine.core.exceptions import AnswerCountMismatch, AnswerOutOfRange
from survey_engine.models.orm import ScoringStrategy, SurveyQuestion, SurveyResult, SurveyType
from survey_engine.models.schemas import (
    AttemptDetail, DimensionDetailOut, DimensionScoreOut, DimensionScoreResult,
    SimpleScoreResult, SubmissionResult,
)
from survey_engine.models.scores import AttemptScore, DimensionScores, SingleScore
from survey_engine.services import attempts, catalog
from survey_engine.services.bands import band_out, resolve_band
from survey_engine.services.catalog import DimensionBlock

logger = logging.getLogger(__name__)


def reverse_score(answer: float, min_scale: float, max_scale: float) -> float:
    """Reflect an answer across the scale midpoint."""
    return max_scale + min_scale - answer


def validate_answers(instrument: SurveyType, questions: Sequence[SurveyQuestion], answers: Sequence[float]) -> None:
    """Raise before any write when the answers cannot be scored.

    Answers are whole scale points; band coverage is checked against the
    scores whole-number answers can reach.
    """
    if len(answers) != len(questions):
        raise AnswerCountMismatch(expected=len(questions), received=len(answers))
    for position, answer in enumerate(answers, start=1):
        if (
            not math.isfinite(answer)
            or answer != int(answer)
            or not (instrument.min_scale <= answer <= instrument.max_scale)
        ):
            raise AnswerOutOfRange(position, answer, instrument.min_scale, instrument.max_scale)


# ========== Interpretations ==========

@dataclass
class SumInterpretation:
    total: float
    band: Optional[SurveyResult] = None

    def summary(self) -> str:
        return self.band.label if self.band is not None else ""

    def to_result(self, attempt_id: int) -> SimpleScoreResult:
        band = self.band
        return SimpleScoreResult(
            total_score=self.total,
            interpretation=band.label if band else None,
            detail=band.detail if band else None,
            feature=band.feature if band else None,
            advice=band.advice if band else None,
            user_survey_id=attempt_id,
        )

    def detail_fields(self) -> dict:
        return {"result": band_out(self.band), "dimensions": []}


@dataclass
class DimensionReading:
    block: DimensionBlock
    average: float
    band: Optional[SurveyResult] = None


@dataclass
class DimensionInterpretation:
    readings: List[DimensionReading] = field(default_factory=list)

    def summary(self) -> str:
        return ", ".join(f"{r.block.label}: {r.band.label if r.band else ''}" for r in self.readings)

    def to_result(self, attempt_id: int) -> DimensionScoreResult:
        return DimensionScoreResult(
            dimensions=[
                DimensionScoreOut(
                    dimension=r.block.dimension,
                    label=r.block.label,
                    average=r.average,
                    interpretation=r.band.label if r.band else None,
                )
                for r in self.readings
            ],
            interpretation=self.summary(),
            user_survey_id=attempt_id,
        )

    def detail_fields(self) -> dict:
        return {
            "result": None,
            "dimensions": [
                DimensionDetailOut(
                    dimension=r.block.dimension,
                    label=r.block.label,
                    average=r.average,
                    interpretation=r.band.label if r.band else None,
                    band=band_out(r.band),
                )
                for r in self.readings
            ],
        }


# ========== Scorers ==========

class Scorer(ABC):
    """Computes and interprets scores for one scoring strategy."""

    strategy: ScoringStrategy

    @abstractmethod
    def compute(self, instrument: SurveyType, questions: Sequence[SurveyQuestion], answers: Sequence[float]) -> AttemptScore:
        ...

    @abstractmethod
    def interpret(self, db: Session, instrument: SurveyType, score: AttemptScore):
        ...


class WeightedSumScorer(Scorer):
    """Sum of answers, with reverse-keyed items reflected across the scale."""

    strategy = ScoringStrategy.SIMPLE_SUM

    def contribution(self, instrument: SurveyType, question: SurveyQuestion, answer: float) -> float:
        if question.is_reverse:
            return reverse_score(answer, instrument.min_scale, instrument.max_scale)
        return answer

    def compute(self, instrument, questions, answers) -> SingleScore:
        total = sum(self.contribution(instrument, q, a) for q, a in zip(questions, answers))
        return SingleScore(total=float(total))

    def interpret(self, db, instrument, score) -> SumInterpretation:
        if not isinstance(score, SingleScore):
            raise TypeError(f"{self.strategy.value} expects a single score, got {type(score).__name__}")
        return SumInterpretation(total=score.total, band=resolve_band(db, instrument.id, score.total))


class DimensionAverageScorer(Scorer):
    """Mean of each contiguous answer block, interpreted per dimension.

    Answers are used as given; instruments of this kind are registered with
    pre-keyed items only.
    """

    strategy = ScoringStrategy.DIMENSION_AVERAGE

    def __init__(self, blocks: Sequence[DimensionBlock]):
        self.blocks = list(blocks)

    def compute(self, instrument, questions, answers) -> DimensionScores:
        averages = {}
        for block in self.blocks:
            values = block.slice(list(answers))
            averages[block.dimension] = sum(values) / len(values) if values else 0.0
        return DimensionScores(averages=averages)

    def interpret(self, db, instrument, score) -> DimensionInterpretation:
        if not isinstance(score, DimensionScores):
            raise TypeError(f"{self.strategy.value} expects dimension scores, got {type(score).__name__}")
        readings = []
        for block in self.blocks:
            average = score.get(block.dimension)
            if average is None:
                continue
            band = resolve_band(db, instrument.id, average, dimension=block.dimension)
            readings.append(DimensionReading(block=block, average=average, band=band))
        return DimensionInterpretation(readings=readings)


SCORERS: Dict[ScoringStrategy, Callable[[SurveyType], Scorer]] = {
    ScoringStrategy.SIMPLE_SUM: lambda instrument: WeightedSumScorer(),
    ScoringStrategy.DIMENSION_AVERAGE: lambda instrument: DimensionAverageScorer(catalog.dimension_blocks(instrument)),
}


def scorer_for(instrument: SurveyType) -> Scorer:
    strategy = ScoringStrategy(instrument.scoring_strategy)
    return SCORERS[strategy](instrument)


# ========== Engine operations ==========

def submit(db: Session, user_id: str, instrument_code: str, answers: Sequence[float]) -> SubmissionResult:
    """Validate, score, interpret and persist one attempt.

    The attempt insert is committed in the same transaction as the reads; any
    failure rolls it back so no computed-but-unsaved or half-saved state exists.
    """
    instrument = catalog.get_instrument_by_code(db, instrument_code)
    questions = catalog.list_questions(db, instrument.id)
    validate_answers(instrument, questions, answers)

    scorer = scorer_for(instrument)
    score = scorer.compute(instrument, questions, answers)
    interpretation = scorer.interpret(db, instrument, score)

    try:
        attempt = attempts.create(db, user_id, instrument.id, answers, score, interpretation.summary())
        with storage_guard("commit attempt"):
            db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Scored {instrument.code} for user {user_id} with {scorer.strategy.value}: "
        f"{interpretation.summary() or 'no interpretation'}"
    )
    return interpretation.to_result(attempt.id)


def attempt_detail(db: Session, attempt) -> AttemptDetail:
    """Re-interpret a stored attempt from its stored score."""
    instrument = attempt.survey_type
    interpretation = scorer_for(instrument).interpret(db, instrument, attempt.score)
    return AttemptDetail(
        id=attempt.id,
        instrument_code=instrument.code,
        instrument_name=instrument.name,
        strategy=instrument.scoring_strategy,
        total_score=attempt.total_score,
        dimension_scores=attempt.dimension_scores,
        interpretation=attempt.interpretation,
        created_at=attempt.created_at,
        answers=attempt.answers,
        **interpretation.detail_fields(),
    )
