import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret"

from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from survey_engine.core.auth import create_token
from survey_engine.core.database import Base, SessionLocal, engine
from survey_engine.models.orm import (
    ScoringStrategy, SurveyCategory, SurveyQuestion, SurveyResult, SurveyType, UserSurvey,
)


@pytest.fixture
def data_dir():
    return Path(__file__).resolve().parent.parent / "data" / "instruments"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_instrument(db):
    """Insert an instrument straight into storage, bypassing registration checks."""
    def _make(
        code="STRESS-3",
        category="stress",
        n_questions=3,
        min_scale=1,
        max_scale=5,
        reverse=(),
        strategy=ScoringStrategy.SIMPLE_SUM,
        dimensions=None,
        bands=(),
        type_tag="professional",
        name=None,
    ):
        cat = db.scalar(select(SurveyCategory).where(SurveyCategory.code == category))
        if cat is None:
            cat = SurveyCategory(code=category, name=category.title())
            db.add(cat)
            db.flush()
        instrument = SurveyType(
            code=code,
            category_id=cat.id,
            type=type_tag,
            name=name or f"{code} survey",
            min_scale=min_scale,
            max_scale=max_scale,
            scoring_strategy=strategy,
            dimensions=dimensions or [],
        )
        db.add(instrument)
        db.flush()
        for order in range(1, n_questions + 1):
            db.add(SurveyQuestion(
                survey_type_id=instrument.id,
                order=order,
                content=f"Question {order}",
                is_reverse=order in reverse,
            ))
        for band in bands:
            db.add(SurveyResult(survey_type_id=instrument.id, **band))
        db.commit()
        return instrument
    return _make


@pytest.fixture
def make_attempt(db):
    def _make(user_id, instrument, total_score=10.0, dimension_scores=None, created_at=None, interpretation=""):
        attempt = UserSurvey(
            user_id=user_id,
            survey_type_id=instrument.id,
            answers=[1.0] * 3,
            total_score=None if dimension_scores is not None else total_score,
            dimension_scores=dimension_scores,
            interpretation=interpretation,
            created_at=created_at or datetime.now(timezone.utc),
        )
        db.add(attempt)
        db.commit()
        return attempt
    return _make


@pytest.fixture
def attachment_instrument(make_instrument):
    return make_instrument(
        code="ASQ-SF",
        category="attachment",
        n_questions=40,
        min_scale=1,
        max_scale=7,
        strategy=ScoringStrategy.DIMENSION_AVERAGE,
        dimensions=[
            {"dimension": "anxiety", "label": "Anxiety", "first_order": 1, "last_order": 20},
            {"dimension": "avoidance", "label": "Avoidance", "first_order": 21, "last_order": 40},
        ],
        bands=[
            {"dimension": "anxiety", "min_score": 1, "max_score": 3.5, "label": "Low anxiety"},
            {"dimension": "anxiety", "min_score": 3.55, "max_score": 7, "label": "High anxiety"},
            {"dimension": "avoidance", "min_score": 1, "max_score": 2.95, "label": "Low avoidance"},
            {"dimension": "avoidance", "min_score": 3, "max_score": 7, "label": "High avoidance"},
        ],
    )


@pytest.fixture
def stress_instrument(make_instrument):
    return make_instrument(
        reverse=(2,),
        bands=[
            {"min_score": 3, "max_score": 7, "label": "Low", "detail": "low detail"},
            {"min_score": 8, "max_score": 12, "label": "Moderate", "detail": "moderate detail",
             "feature": "moderate feature", "advice": "moderate advice", "description": "Stress score"},
            {"min_score": 13, "max_score": 15, "label": "High"},
        ],
    )


@pytest.fixture
def client(db):
    from survey_engine.main import app
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user_id="alice", roles=("user",)):
        return {"Authorization": f"Bearer {create_token(user_id, list(roles))}"}
    return _headers
