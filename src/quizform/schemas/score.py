"""Pydantic schemas for score reports."""

from pydantic import BaseModel, ConfigDict, Field


class QuestionScore(BaseModel):
    """Credit earned on a single question."""

    model_config = ConfigDict(frozen=True)

    earned_units: int = Field(..., ge=0, description="Scoring units answered correctly")
    total_units: int = Field(..., ge=0, description="Scoring units in the question")
    fully_correct: bool = Field(..., description="Every unit in the question earned")


class ScoreReport(BaseModel):
    """Whole-form score computed once at submission time."""

    model_config = ConfigDict(frozen=True)

    total_units: int = Field(..., ge=0, description="Units across answered questions")
    earned_units: int = Field(..., ge=0, description="Units answered correctly")
    percentage: int = Field(
        ...,
        ge=0,
        le=100,
        description="Rounded share of earned units, 0 when nothing was gradable",
    )
    per_question: dict[str, QuestionScore] = Field(
        default_factory=dict,
        description="Per-question breakdown keyed by question ID",
    )
