"""Question model: the closed set of gradable question types.

Questions are a tagged union discriminated by ``type``. Any code that
branches on question type must match exhaustively and end with
``assert_never`` so that a new variant fails type checking (and raises at
runtime) until it is handled everywhere.
"""

from collections import Counter
from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


def _duplicates(ids: list[str]) -> list[str]:
    return sorted(value for value, count in Counter(ids).items() if count > 1)


class _QuestionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1, description="Question ID, unique in a form")
    title: str = Field(default="", description="Question prompt shown to respondents")
    image: str | None = Field(None, description="URL of an attached image")


class CategorizeQuestion(_QuestionBase):
    """Respondents sort items into categories; no canonical answer is stored."""

    type: Literal["categorize"] = "categorize"
    items: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)


class ClozeBlank(BaseModel):
    """A single blank inside a cloze text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    correct_answer: str


class ClozeQuestion(_QuestionBase):
    """Fill-in-the-blanks text with a shared option pool."""

    type: Literal["cloze"] = "cloze"
    text: str = ""
    blanks: list[ClozeBlank] = Field(default_factory=list)
    options: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_blank_ids(self) -> "ClozeQuestion":
        duplicates = _duplicates([blank.id for blank in self.blanks])
        if duplicates:
            raise ValueError(f"Duplicate blank ids in question {self.id}: {duplicates}")
        return self


class SubQuestion(BaseModel):
    """A multiple-choice question about a comprehension passage."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    question: str = ""
    options: list[str] = Field(default_factory=list)
    correct_option_index: int | None = Field(None, ge=0)


class ComprehensionQuestion(_QuestionBase):
    """A reading passage followed by multiple-choice sub-questions."""

    type: Literal["comprehension"] = "comprehension"
    passage: str = ""
    sub_questions: list[SubQuestion] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_sub_question_ids(self) -> "ComprehensionQuestion":
        duplicates = _duplicates([sub.id for sub in self.sub_questions])
        if duplicates:
            raise ValueError(
                f"Duplicate sub-question ids in question {self.id}: {duplicates}"
            )
        return self


Question = Annotated[
    CategorizeQuestion | ClozeQuestion | ComprehensionQuestion,
    Field(discriminator="type"),
]

# Respondent answer shapes, keyed by question type
CategorizeAnswer = dict[str, list[str]]
ClozeAnswer = dict[str, str]
ComprehensionAnswer = dict[str, int]

# question_id -> raw answer object; shapes are checked unit by unit when scoring
AnswerSet = dict[str, dict[str, Any]]

_question_list_adapter = TypeAdapter(list[Question])


def check_unique_question_ids(questions: list[Question]) -> list[Question]:
    """Reject a question list in which two questions share an id."""
    duplicates = _duplicates([question.id for question in questions])
    if duplicates:
        raise ValueError(f"Duplicate question ids: {duplicates}")
    return questions


def parse_questions(raw: Any) -> list[Question]:
    """Parse stored question data into typed questions.

    Raises:
        ValueError: On an unknown ``type`` tag, a malformed question or
            duplicated ids (pydantic.ValidationError is a ValueError).
    """
    return check_unique_question_ids(_question_list_adapter.validate_python(raw))


def dump_questions(questions: list[Question]) -> list[dict[str, Any]]:
    """Serialize typed questions for JSON storage."""
    return _question_list_adapter.dump_python(questions, mode="json")


def _answer_key_fields(question: Question) -> dict[str, Any] | None:
    match question:
        case ClozeQuestion():
            return {"blanks": {"__all__": {"correct_answer"}}}
        case ComprehensionQuestion():
            return {"sub_questions": {"__all__": {"correct_option_index"}}}
        case CategorizeQuestion():
            return None
        case _:
            assert_never(question)


def dump_public_questions(questions: list[Question]) -> list[dict[str, Any]]:
    """Serialize questions for respondents, leaving out every answer key."""
    return [
        question.model_dump(mode="json", exclude=_answer_key_fields(question))
        for question in questions
    ]
