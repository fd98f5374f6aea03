"""
Attempt repository: persistence and retrieval of scored submissions.

Ownership is not checked here; callers compare `attempt.user_id` themselves.
"""
import logging
from typing import List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from survey_engine.core.database import storage_guard
from survey_engine.models.orm import SurveyType, UserSurvey
from survey_engine.models.scores import AttemptScore, to_columns

logger = logging.getLogger(__name__)

def create(
    db: Session,
    user_id: str,
    survey_type_id: int,
    answers: Sequence[float],
    score: AttemptScore,
    interpretation: str,
) -> UserSurvey:
    """Insert an attempt and flush so id and created_at are assigned. The caller commits."""
    attempt = UserSurvey(
        user_id=user_id,
        survey_type_id=survey_type_id,
        answers=[float(a) for a in answers],
        interpretation=interpretation,
        **to_columns(score),
    )
    with storage_guard("create attempt"):
        db.add(attempt)
        db.flush()
        db.refresh(attempt)
    logger.info(f"Stored attempt {attempt.id} for user {user_id} on survey type {survey_type_id}")
    return attempt

def list_by_user(db: Session, user_id: str, instrument_type: str) -> List[UserSurvey]:
    stmt = (
        select(UserSurvey)
        .join(SurveyType, SurveyType.id == UserSurvey.survey_type_id)
        .options(joinedload(UserSurvey.survey_type))
        .where(UserSurvey.user_id == user_id, SurveyType.type == instrument_type)
        .order_by(UserSurvey.created_at.desc(), UserSurvey.id.desc())
    )
    with storage_guard("list attempts"):
        return list(db.scalars(stmt).all())

def get_by_id(db: Session, attempt_id: int) -> Optional[UserSurvey]:
    stmt = select(UserSurvey).options(joinedload(UserSurvey.survey_type)).where(UserSurvey.id == attempt_id)
    with storage_guard("get attempt"):
        return db.scalar(stmt)
