"""
Tests for quiz checking and interview grading fallbacks.
"""
import pytest

from mockprep.core.config import settings
from mockprep.core.error_responses import ErrorMessages
from mockprep.core.exceptions import GradingUnavailable
from mockprep.core.grading import (
    QUIZ_CORRECT_SCORE,
    QUIZ_INCORRECT_SCORE,
    SKIPPED_OPTION,
    canonical_option,
    clamp_score,
    grade_interview,
    grade_quiz,
)
from mockprep.models import GradingStatus
from mockprep.services.grading_service import GradingResult

from tests.conftest import FakeGradingService

LETTER_OPTIONS = {"A": "x", "B": "y", "C": "z"}
LIST_OPTIONS = ["Stack", "Queue", "Heap", "Trie"]


class TestCanonicalOption:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("A", "x"),
            ("b", "y"),
            ("y", "y"),
            ("Z", "z"),
        ],
    )
    def test_letter_keyed_options(self, value, expected):
        assert canonical_option(LETTER_OPTIONS, value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("queue", "Queue"),
            ("C", "Heap"),
            ("3", "Trie"),
            ("0", "Stack"),
        ],
    )
    def test_list_options(self, value, expected):
        assert canonical_option(LIST_OPTIONS, value) == expected

    @pytest.mark.parametrize("value", [None, "", "  ", "skipped", "SKIPPED"])
    def test_empty_and_skipped_map_to_none(self, value):
        assert canonical_option(LIST_OPTIONS, value) is None

    def test_unknown_value_returned_unchanged(self):
        assert canonical_option(LIST_OPTIONS, "Graph") == "Graph"
        assert canonical_option(LIST_OPTIONS, "9") == "9"


class TestGradeQuiz:
    def test_correct_answer(self):
        outcome = grade_quiz(LETTER_OPTIONS, "A", "A")

        assert outcome.is_correct is True
        assert outcome.score == QUIZ_CORRECT_SCORE
        assert outcome.selected_option == "x"
        assert outcome.grading_status == GradingStatus.GRADED

    def test_incorrect_answer(self):
        outcome = grade_quiz(LETTER_OPTIONS, "A", "B")

        assert outcome.is_correct is False
        assert outcome.score == QUIZ_INCORRECT_SCORE
        assert outcome.selected_option == "y"

    def test_correct_option_stored_as_value(self):
        outcome = grade_quiz(LIST_OPTIONS, "Heap", "C")
        assert outcome.is_correct is True

    @pytest.mark.parametrize(
        "selected,skip", [(None, False), ("", False), ("A", True), ("skipped", False)]
    )
    def test_skip_records_sentinel(self, selected, skip):
        outcome = grade_quiz(LETTER_OPTIONS, "A", selected, skip=skip)

        assert outcome.is_skipped is True
        assert outcome.is_correct is False
        assert outcome.selected_option == SKIPPED_OPTION
        assert outcome.score == QUIZ_INCORRECT_SCORE
        assert outcome.grading_status == GradingStatus.SKIPPED


@pytest.mark.parametrize(
    "raw,expected", [(-3, 0.0), (0, 0.0), (6.5, 6.5), (10, 10.0), (42, 10.0)]
)
def test_clamp_score(raw, expected):
    assert clamp_score(raw) == expected


class TestGradeInterview:
    async def test_graded_answer(self):
        grader = FakeGradingService()

        outcome = await grade_interview(grader, "What is a heap?", "A tree.", "easy")

        assert outcome.score == 7.5
        assert outcome.grading_status == GradingStatus.GRADED
        assert outcome.answer_text == "A tree."
        assert outcome.feedback == "Clear and mostly complete."
        assert outcome.reference_answer == "An ideal answer."
        assert grader.grade_calls == [("What is a heap?", "A tree.", "easy")]
        assert grader.reference_calls == []

    @pytest.mark.parametrize("answer,skip", [("", False), ("   ", False), ("text", True)])
    async def test_skipped_answer_scores_zero_with_reference(self, answer, skip):
        grader = FakeGradingService(reference="Study this.")

        outcome = await grade_interview(grader, "Q?", answer, "easy", skip=skip)

        assert outcome.score == 0.0
        assert outcome.is_skipped is True
        assert outcome.answer_text == ""
        assert outcome.grading_status == GradingStatus.SKIPPED
        assert outcome.feedback == ErrorMessages.SKIPPED_FEEDBACK
        assert outcome.reference_answer == "Study this."
        assert grader.grade_calls == []

    async def test_skipped_answer_when_reference_fails(self):
        grader = FakeGradingService()
        grader.fail()

        outcome = await grade_interview(grader, "Q?", None, "easy")

        assert outcome.score == 0.0
        assert outcome.reference_answer == ErrorMessages.REFERENCE_ANSWER_UNAVAILABLE

    async def test_service_failure_applies_fallback(self):
        grader = FakeGradingService()
        grader.grade_error = GradingUnavailable("timeout")

        outcome = await grade_interview(grader, "Q?", "My answer", "medium")

        assert outcome.score == settings.GRADING_FALLBACK_SCORE
        assert outcome.grading_status == GradingStatus.FALLBACK
        assert outcome.feedback == ErrorMessages.GRADING_UNAVAILABLE_FEEDBACK
        assert outcome.answer_text == "My answer"
        assert outcome.reference_answer == "A reference answer."

    async def test_unexpected_grader_error_applies_fallback(self):
        grader = FakeGradingService()
        grader.grade_error = KeyError("choices")

        outcome = await grade_interview(grader, "Q?", "My answer", "medium")

        assert outcome.score == settings.GRADING_FALLBACK_SCORE
        assert outcome.grading_status == GradingStatus.FALLBACK
        assert outcome.feedback == ErrorMessages.GRADING_UNAVAILABLE_FEEDBACK
        assert outcome.reference_answer == "A reference answer."

    async def test_score_is_clamped(self):
        grader = FakeGradingService(
            result=GradingResult(score=14, feedback="Great", reference_answer="R")
        )

        outcome = await grade_interview(grader, "Q?", "answer", "hard")

        assert outcome.score == 10.0

    async def test_irrelevant_answer_scores_zero(self):
        grader = FakeGradingService(
            result=GradingResult(
                score=6, feedback=None, reference_answer="R", relevant=False
            )
        )

        outcome = await grade_interview(grader, "Q?", "off topic", "easy")

        assert outcome.score == 0.0
        assert outcome.grading_status == GradingStatus.GRADED
        assert outcome.feedback == ErrorMessages.IRRELEVANT_ANSWER_FEEDBACK

    async def test_missing_score_uses_fallback_but_keeps_feedback(self):
        grader = FakeGradingService(
            result=GradingResult(score=None, feedback="Partial", reference_answer="R")
        )

        outcome = await grade_interview(grader, "Q?", "answer", "easy")

        assert outcome.score == settings.GRADING_FALLBACK_SCORE
        assert outcome.grading_status == GradingStatus.FALLBACK
        assert outcome.feedback == "Partial"
        assert outcome.reference_answer == "R"

    async def test_missing_reference_is_requested_separately(self):
        grader = FakeGradingService(
            result=GradingResult(score=8, feedback="Good", reference_answer=None),
            reference="Separately generated.",
        )

        outcome = await grade_interview(grader, "Q?", "answer", "easy")

        assert outcome.score == 8.0
        assert outcome.reference_answer == "Separately generated."
        assert len(grader.reference_calls) == 1

    async def test_missing_feedback_gets_placeholder(self):
        grader = FakeGradingService(
            result=GradingResult(score=3, feedback=None, reference_answer="R")
        )

        outcome = await grade_interview(grader, "Q?", "answer", "easy")

        assert outcome.feedback == ErrorMessages.MISSING_FEEDBACK
