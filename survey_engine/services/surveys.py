"""
Survey operations exposed to callers: history, detail, start and submit.
"""
import logging
from typing import List, Sequence
from sqlalchemy.orm import Session

from survey_engine.core.config import settings
from survey_engine.core.exceptions import Forbidden
from survey_engine.models.schemas import (
    AttemptDetail, AttemptSummary, QuestionOut, StartSurveyResponse, SubmissionResult,
)
from survey_engine.services import attempts, catalog, scoring

logger = logging.getLogger(__name__)

def list_my_surveys(db: Session, user_id: str) -> List[AttemptSummary]:
    rows = attempts.list_by_user(db, user_id, settings.PROFESSIONAL_SURVEY_TYPE)
    return [
        AttemptSummary(
            id=a.id,
            instrument_code=a.survey_type.code,
            instrument_name=a.survey_type.name,
            strategy=a.survey_type.scoring_strategy,
            total_score=a.total_score,
            dimension_scores=a.dimension_scores,
            interpretation=a.interpretation,
            created_at=a.created_at,
        )
        for a in rows
    ]

def get_detail(db: Session, user_id: str, attempt_id: int) -> AttemptDetail:
    attempt = attempts.get_by_id(db, attempt_id)
    if attempt is None or attempt.user_id != user_id:
        logger.warning(f"User {user_id} denied access to attempt {attempt_id}")
        raise Forbidden("You do not have access to this survey result")
    return scoring.attempt_detail(db, attempt)

def start_survey(db: Session, user_id: str, category_code: str) -> StartSurveyResponse:
    instrument = catalog.get_instrument_by_category(db, category_code, settings.PROFESSIONAL_SURVEY_TYPE)
    questions = catalog.list_questions(db, instrument.id)
    logger.info(f"User {user_id} started {instrument.code} ({len(questions)} questions)")
    return StartSurveyResponse(
        instrument_code=instrument.code,
        name=instrument.name,
        description=instrument.description,
        min_scale=instrument.min_scale,
        max_scale=instrument.max_scale,
        strategy=instrument.scoring_strategy,
        questions=[QuestionOut.model_validate(q) for q in questions],
    )

def submit_survey(db: Session, user_id: str, instrument_code: str, answers: Sequence[float]) -> SubmissionResult:
    return scoring.submit(db, user_id, instrument_code, answers)
