from fastapi import APIRouter, Depends, Query
from typing import List
from sqlalchemy.orm import Session
from survey_engine.core.database import get_db
from survey_engine.core.auth import get_current_user, TokenData
from survey_engine.models.schemas import (
    AttemptDetail, AttemptSummary, StartSurveyResponse, SubmitSurveyRequest, SubmissionResult,
)
from survey_engine.services import surveys

router = APIRouter()

@router.get("/mine", response_model=List[AttemptSummary])
def list_mine(user: TokenData = Depends(get_current_user), db: Session = Depends(get_db)):
    return surveys.list_my_surveys(db, user.sub)

@router.get("/start", response_model=StartSurveyResponse)
def start(category: str = Query(..., min_length=1), user: TokenData = Depends(get_current_user), db: Session = Depends(get_db)):
    return surveys.start_survey(db, user.sub, category)

@router.post("/submit", response_model=SubmissionResult, status_code=201)
def submit(payload: SubmitSurveyRequest, user: TokenData = Depends(get_current_user), db: Session = Depends(get_db)):
    return surveys.submit_survey(db, user.sub, payload.instrument_code, payload.answers)

@router.get("/{attempt_id}", response_model=AttemptDetail)
def detail(attempt_id: int, user: TokenData = Depends(get_current_user), db: Session = Depends(get_db)):
    return surveys.get_detail(db, user.sub, attempt_id)
