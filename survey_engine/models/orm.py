from sqlalchemy import (
    BigInteger, Integer, String, Text, Boolean, Float,
    ForeignKey, JSON, DateTime, UniqueConstraint, Index,
    CheckConstraint, Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
import enum
from survey_engine.core.database import Base
from survey_engine.models.scores import AttemptScore, from_columns

# sqlite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class ScoringStrategy(str, enum.Enum):
    SIMPLE_SUM = "simple_sum"
    DIMENSION_AVERAGE = "dimension_average"

# ========== Catalog Models ==========

class SurveyCategory(Base):
    __tablename__ = "survey_categories"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    survey_types: Mapped[List["SurveyType"]] = relationship(back_populates="category")

class SurveyType(Base):
    __tablename__ = "survey_types"
    __table_args__ = (
        Index("idx_st_category_type", "category_id", "type"),
        CheckConstraint("min_scale < max_scale", name="ck_survey_type_scale"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("survey_categories.id", ondelete="RESTRICT"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="professional")
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    min_scale: Mapped[float] = mapped_column(Float, nullable=False)
    max_scale: Mapped[float] = mapped_column(Float, nullable=False)
    scoring_strategy: Mapped[ScoringStrategy] = mapped_column(
        SQLEnum(ScoringStrategy, native_enum=False, length=30, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ScoringStrategy.SIMPLE_SUM,
    )
    # [{"dimension": "anxiety", "label": "Anxiety", "first_order": 1, "last_order": 20}, ...]
    dimensions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)

    category: Mapped["SurveyCategory"] = relationship(back_populates="survey_types")
    questions: Mapped[List["SurveyQuestion"]] = relationship(
        back_populates="survey_type", order_by="SurveyQuestion.order"
    )

class SurveyQuestion(Base):
    __tablename__ = "survey_questions"
    __table_args__ = (
        UniqueConstraint("survey_type_id", "order", name="uq_survey_question_order"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    survey_type_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("survey_types.id", ondelete="CASCADE"), nullable=False
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_reverse: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    survey_type: Mapped["SurveyType"] = relationship(back_populates="questions")

class SurveyResult(Base):
    __tablename__ = "survey_results"
    __table_args__ = (
        Index("idx_sr_lookup", "survey_type_id", "dimension", "min_score", "max_score"),
        CheckConstraint("min_score <= max_score", name="ck_survey_result_range"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    survey_type_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("survey_types.id", ondelete="CASCADE"), nullable=False
    )
    dimension: Mapped[Optional[str]] = mapped_column(String(50))
    min_score: Mapped[float] = mapped_column(Float, nullable=False)
    max_score: Mapped[float] = mapped_column(Float, nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    detail: Mapped[Optional[str]] = mapped_column(Text)
    feature: Mapped[Optional[str]] = mapped_column(Text)
    advice: Mapped[Optional[str]] = mapped_column(Text)

# ========== Attempt Models ==========

class UserSurvey(Base):
    __tablename__ = "user_surveys"
    __table_args__ = (
        Index("idx_us_user_created", "user_id", "created_at"),
        CheckConstraint(
            "(total_score IS NULL) <> (dimension_scores IS NULL)",
            name="ck_user_survey_score_variant",
        ),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    survey_type_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("survey_types.id", ondelete="RESTRICT"), nullable=False
    )
    answers: Mapped[List[float]] = mapped_column(JSON, nullable=False)
    total_score: Mapped[Optional[float]] = mapped_column(Float)
    dimension_scores: Mapped[Optional[Dict[str, float]]] = mapped_column(JSON(none_as_null=True))
    interpretation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    survey_type: Mapped["SurveyType"] = relationship()

    @property
    def score(self) -> AttemptScore:
        return from_columns(self.total_score, self.dimension_scores)
