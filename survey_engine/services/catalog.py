"""
Read access to instrument configuration: categories, instruments, questions.
"""
from dataclasses import dataclass
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from survey_engine.core.exceptions import InstrumentNotFound
from survey_engine.models.orm import SurveyCategory, SurveyQuestion, SurveyType
from survey_engine.core.database import storage_guard


@dataclass(frozen=True)
class DimensionBlock:
    """A contiguous run of questions averaged into one dimension score."""
    dimension: str
    label: str
    first_order: int
    last_order: int

    @property
    def size(self) -> int:
        return self.last_order - self.first_order + 1

    def slice(self, answers: List[float]) -> List[float]:
        return answers[self.first_order - 1:self.last_order]

def find_instrument_by_category(db: Session, category_code: str, type_tag: str) -> Optional[SurveyType]:
    stmt = (
        select(SurveyType)
        .join(SurveyCategory, SurveyCategory.id == SurveyType.category_id)
        .where(SurveyCategory.code == category_code, SurveyType.type == type_tag)
        .order_by(SurveyType.id)
        .limit(1)
    )
    with storage_guard("find instrument by category"):
        return db.scalar(stmt)

def find_instrument_by_code(db: Session, code: str) -> Optional[SurveyType]:
    with storage_guard("find instrument by code"):
        return db.scalar(select(SurveyType).where(SurveyType.code == code))

def get_instrument_by_category(db: Session, category_code: str, type_tag: str) -> SurveyType:
    instrument = find_instrument_by_category(db, category_code, type_tag)
    if instrument is None:
        raise InstrumentNotFound(f"No {type_tag} survey for category '{category_code}'")
    return instrument

def get_instrument_by_code(db: Session, code: str) -> SurveyType:
    instrument = find_instrument_by_code(db, code)
    if instrument is None:
        raise InstrumentNotFound(f"Survey type '{code}' does not exist")
    return instrument

def list_questions(db: Session, instrument_id: int) -> List[SurveyQuestion]:
    stmt = select(SurveyQuestion).where(SurveyQuestion.survey_type_id == instrument_id).order_by(SurveyQuestion.order)
    with storage_guard("list questions"):
        return list(db.scalars(stmt).all())

def dimension_blocks(instrument: SurveyType) -> List[DimensionBlock]:
    blocks = []
    for raw in instrument.dimensions or []:
        blocks.append(DimensionBlock(
            dimension=raw["dimension"],
            label=raw.get("label") or raw["dimension"].capitalize(),
            first_order=int(raw["first_order"]),
            last_order=int(raw["last_order"]),
        ))
    return blocks
