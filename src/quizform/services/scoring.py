"""Deterministic partial-credit scoring of an answer set against a form.

Every question is split into scoring units (one per cloze blank, one per
comprehension sub-question, one per categorize question). The form
percentage is taken over all units at once, so questions with more units
weigh more.

Scoring is total: malformed or missing per-unit answers earn nothing and
never raise.
"""

from collections.abc import Mapping
from typing import Any, assert_never

from quizform.schemas.question import (
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    Question,
)
from quizform.schemas.score import QuestionScore, ScoreReport


def percentage_of(earned_units: int, total_units: int) -> int:
    """Return ``round(100 * earned / total)`` rounding halves up, 0 if empty."""
    if total_units <= 0:
        return 0
    return (200 * earned_units + total_units) // (2 * total_units)


def _as_mapping(answer: Any) -> Mapping[str, Any]:
    return answer if isinstance(answer, Mapping) else {}


def _score_cloze(question: ClozeQuestion, answer: Mapping[str, Any]) -> QuestionScore:
    earned = 0
    for blank in question.blanks:
        selected = answer.get(blank.id)
        # Exact match only: no case folding, no trimming
        if isinstance(selected, str) and selected == blank.correct_answer:
            earned += 1
    total = len(question.blanks)
    return QuestionScore(
        earned_units=earned, total_units=total, fully_correct=earned == total
    )


def _is_option_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _score_comprehension(
    question: ComprehensionQuestion, answer: Mapping[str, Any]
) -> QuestionScore:
    earned = 0
    for sub_question in question.sub_questions:
        if sub_question.correct_option_index is None:
            # Counted, but can never be earned
            continue
        selected = answer.get(sub_question.id)
        if _is_option_index(selected) and selected == sub_question.correct_option_index:
            earned += 1
    total = len(question.sub_questions)
    return QuestionScore(
        earned_units=earned, total_units=total, fully_correct=earned == total
    )


def _score_categorize(_question: CategorizeQuestion) -> QuestionScore:
    # No correct categorization exists in the data model
    return QuestionScore(earned_units=0, total_units=1, fully_correct=False)


def score_question(question: Question, answer: Any) -> QuestionScore:
    """Grade one question against a present (possibly malformed) answer."""
    match question:
        case ClozeQuestion():
            return _score_cloze(question, _as_mapping(answer))
        case ComprehensionQuestion():
            return _score_comprehension(question, _as_mapping(answer))
        case CategorizeQuestion():
            return _score_categorize(question)
        case _:
            assert_never(question)


def score_answers(
    questions: list[Question],
    answers: Mapping[str, Any] | None,
) -> ScoreReport:
    """Score an answer set against a form's questions.

    Questions without an answer object are skipped entirely and contribute
    to neither side of the ratio. A present answer, even an empty one, is
    graded unit by unit.

    Args:
        questions: The form's questions in display order
        answers: Mapping of question ID to the respondent's raw answer

    Returns:
        Score report with totals, percentage and per-question breakdown
    """
    answer_map = _as_mapping(answers)
    per_question: dict[str, QuestionScore] = {}
    total_units = 0
    earned_units = 0

    for question in questions:
        answer = answer_map.get(question.id)
        if answer is None:
            continue
        question_score = score_question(question, answer)
        per_question[question.id] = question_score
        total_units += question_score.total_units
        earned_units += question_score.earned_units

    return ScoreReport(
        total_units=total_units,
        earned_units=earned_units,
        percentage=percentage_of(earned_units, total_units),
        per_question=per_question,
    )
