"""
Instrument registration from a definition document.

Every structural rule the scoring engine relies on is checked here, before
anything is written: dense question order, contiguous dimension blocks, and
non-overlapping bands covering every attainable score.
"""
import logging
from typing import List
from sqlalchemy import select
from sqlalchemy.orm import Session

from survey_engine.core.database import storage_guard
from survey_engine.core.exceptions import InstrumentAlreadyExists, InvalidInstrumentDefinition
from survey_engine.models.orm import (
    ScoringStrategy, SurveyCategory, SurveyQuestion, SurveyResult, SurveyType,
)
from survey_engine.models.schemas import InstrumentDefinition, RegisteredInstrument
from survey_engine.services import catalog
from survey_engine.services.bands import (
    average_attainable_scores, check_band_coverage, group_by_dimension, sum_attainable_scores,
)

logger = logging.getLogger(__name__)

def _check_scale(defn: InstrumentDefinition) -> None:
    if not defn.min_scale < defn.max_scale:
        raise InvalidInstrumentDefinition(
            f"min_scale ({defn.min_scale}) must be below max_scale ({defn.max_scale})"
        )

def _check_questions(defn: InstrumentDefinition) -> None:
    if not defn.questions:
        raise InvalidInstrumentDefinition(f"Instrument '{defn.code}' has no questions")
    orders = sorted(q.order for q in defn.questions)
    if orders != list(range(1, len(orders) + 1)):
        raise InvalidInstrumentDefinition(
            "Question orders must run 1..N without gaps or repeats",
            {"orders": orders},
        )

def _check_simple_sum(defn: InstrumentDefinition) -> None:
    if defn.dimensions:
        raise InvalidInstrumentDefinition("simple_sum instruments cannot declare dimensions")
    tagged = [b.label for b in defn.bands if b.dimension is not None]
    if tagged:
        raise InvalidInstrumentDefinition(
            "simple_sum bands cannot carry a dimension", {"labels": tagged}
        )
    check_band_coverage(
        defn.bands,
        sum_attainable_scores(len(defn.questions), defn.min_scale, defn.max_scale),
        scope=defn.code,
    )

def _check_dimension_average(defn: InstrumentDefinition) -> None:
    if not defn.dimensions:
        raise InvalidInstrumentDefinition("dimension_average instruments need at least one dimension block")
    names = [d.dimension for d in defn.dimensions]
    if len(set(names)) != len(names):
        raise InvalidInstrumentDefinition("Dimension names must be unique", {"dimensions": names})

    expected_first = 1
    for block in sorted(defn.dimensions, key=lambda d: d.first_order):
        if block.first_order != expected_first or block.last_order < block.first_order:
            raise InvalidInstrumentDefinition(
                f"Dimension '{block.dimension}' must start at question {expected_first}",
                {"first_order": block.first_order, "last_order": block.last_order},
            )
        expected_first = block.last_order + 1
    if expected_first - 1 != len(defn.questions):
        raise InvalidInstrumentDefinition(
            f"Dimension blocks cover {expected_first - 1} of {len(defn.questions)} questions"
        )

    reverse = [q.order for q in defn.questions if q.is_reverse]
    if reverse:
        raise InvalidInstrumentDefinition(
            "dimension_average instruments take pre-keyed items; reverse flags are not applied",
            {"reverse_orders": reverse},
        )

    groups = group_by_dimension(defn.bands)
    unknown = [d for d in groups if d not in names]
    if unknown:
        raise InvalidInstrumentDefinition("Bands reference unknown dimensions", {"dimensions": unknown})
    for block in defn.dimensions:
        size = block.last_order - block.first_order + 1
        check_band_coverage(
            groups.get(block.dimension, []),
            average_attainable_scores(size, defn.min_scale, defn.max_scale),
            scope=f"{defn.code}/{block.dimension}",
        )

def validate_definition(defn: InstrumentDefinition) -> None:
    """Raises InvalidInstrumentDefinition (or BandConfigurationError) on the first problem."""
    _check_scale(defn)
    _check_questions(defn)
    if defn.strategy == ScoringStrategy.SIMPLE_SUM:
        _check_simple_sum(defn)
    else:
        _check_dimension_average(defn)

def _get_or_create_category(db: Session, code: str, name: str | None) -> SurveyCategory:
    category = db.scalar(select(SurveyCategory).where(SurveyCategory.code == code))
    if category is None:
        category = SurveyCategory(code=code, name=name or code)
        db.add(category)
        db.flush()
    return category

def register_instrument(db: Session, defn: InstrumentDefinition) -> RegisteredInstrument:
    validate_definition(defn)
    if catalog.find_instrument_by_code(db, defn.code) is not None:
        raise InstrumentAlreadyExists(f"Survey type '{defn.code}' already exists")

    try:
        with storage_guard("register instrument"):
            category = _get_or_create_category(db, defn.category_code, defn.category_name)
            instrument = SurveyType(
                code=defn.code,
                category_id=category.id,
                type=defn.type,
                name=defn.name,
                description=defn.description,
                min_scale=defn.min_scale,
                max_scale=defn.max_scale,
                scoring_strategy=defn.strategy,
                dimensions=[d.model_dump() for d in defn.dimensions],
            )
            db.add(instrument)
            db.flush()
            for q in sorted(defn.questions, key=lambda q: q.order):
                db.add(SurveyQuestion(survey_type_id=instrument.id, order=q.order, content=q.content, is_reverse=q.is_reverse))
            # insertion order is the first-match order for band lookup
            for b in defn.bands:
                db.add(SurveyResult(survey_type_id=instrument.id, **b.model_dump()))
            db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Registered {defn.code} ({defn.strategy.value}) with {len(defn.questions)} questions and {len(defn.bands)} bands"
    )
    return RegisteredInstrument(
        id=instrument.id,
        code=instrument.code,
        strategy=instrument.scoring_strategy,
        question_count=len(defn.questions),
        band_count=len(defn.bands),
    )

def register_many(db: Session, definitions: List[InstrumentDefinition], skip_existing: bool = False) -> List[RegisteredInstrument]:
    registered = []
    for defn in definitions:
        if skip_existing and catalog.find_instrument_by_code(db, defn.code) is not None:
            logger.info(f"Skipping {defn.code}: already registered")
            continue
        registered.append(register_instrument(db, defn))
    return registered
