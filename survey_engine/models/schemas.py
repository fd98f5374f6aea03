"""
Request and response models. Fields serialize with camelCase aliases.
"""
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from survey_engine.models.orm import ScoringStrategy


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ========== Start / Submit ==========

class QuestionOut(CamelModel):
    id: int
    order: int
    content: str


class StartSurveyResponse(CamelModel):
    instrument_code: str
    name: str
    description: Optional[str] = None
    min_scale: float
    max_scale: float
    strategy: ScoringStrategy
    questions: List[QuestionOut]


class SubmitSurveyRequest(CamelModel):
    instrument_code: str = Field(min_length=1, max_length=50)
    answers: List[float]


class BandOut(CamelModel):
    label: str
    dimension: Optional[str] = None
    min_score: float
    max_score: float
    description: Optional[str] = None
    detail: Optional[str] = None
    feature: Optional[str] = None
    advice: Optional[str] = None


class SimpleScoreResult(CamelModel):
    strategy: Literal["simple_sum"] = "simple_sum"
    total_score: float
    interpretation: Optional[str] = None
    detail: Optional[str] = None
    feature: Optional[str] = None
    advice: Optional[str] = None
    user_survey_id: int


class DimensionScoreOut(CamelModel):
    dimension: str
    label: str
    average: float
    interpretation: Optional[str] = None


class DimensionScoreResult(CamelModel):
    strategy: Literal["dimension_average"] = "dimension_average"
    dimensions: List[DimensionScoreOut]
    interpretation: str
    user_survey_id: int


SubmissionResult = Annotated[Union[SimpleScoreResult, DimensionScoreResult], Field(discriminator="strategy")]


# ========== History ==========

class AttemptSummary(CamelModel):
    id: int
    instrument_code: str
    instrument_name: str
    strategy: ScoringStrategy
    total_score: Optional[float] = None
    dimension_scores: Optional[Dict[str, float]] = None
    interpretation: str
    created_at: datetime


class DimensionDetailOut(DimensionScoreOut):
    band: Optional[BandOut] = None


class AttemptDetail(AttemptSummary):
    answers: List[float]
    result: Optional[BandOut] = None
    dimensions: List[DimensionDetailOut] = Field(default_factory=list)


# ========== Registration ==========

class DimensionBlockIn(CamelModel):
    dimension: str = Field(min_length=1, max_length=50)
    label: Optional[str] = None
    first_order: int = Field(ge=1)
    last_order: int = Field(ge=1)


class QuestionIn(CamelModel):
    order: int = Field(ge=1)
    content: str = Field(min_length=1)
    is_reverse: bool = False


class BandIn(CamelModel):
    dimension: Optional[str] = None
    min_score: float = Field(allow_inf_nan=False)
    max_score: float = Field(allow_inf_nan=False)
    label: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    detail: Optional[str] = None
    feature: Optional[str] = None
    advice: Optional[str] = None


class InstrumentDefinition(CamelModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category_code: str = Field(min_length=1, max_length=50)
    category_name: Optional[str] = None
    type: str = "professional"
    min_scale: float = Field(allow_inf_nan=False)
    max_scale: float = Field(allow_inf_nan=False)
    strategy: ScoringStrategy = ScoringStrategy.SIMPLE_SUM
    dimensions: List[DimensionBlockIn] = Field(default_factory=list)
    questions: List[QuestionIn]
    bands: List[BandIn] = Field(default_factory=list)


class RegisteredInstrument(CamelModel):
    id: int
    code: str
    strategy: ScoringStrategy
    question_count: int
    band_count: int
