from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from survey_engine.core.database import get_db
from survey_engine.core.auth import require_roles
from survey_engine.models.schemas import InstrumentDefinition, RegisteredInstrument
from survey_engine.services.registration import register_instrument

router = APIRouter()

@router.post("/instruments", response_model=RegisteredInstrument, status_code=201, dependencies=[Depends(require_roles("admin"))])
def create_instrument(payload: InstrumentDefinition, db: Session = Depends(get_db)):
    return register_instrument(db, payload)
