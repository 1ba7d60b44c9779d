"""Tests for answer grading and test scoring."""

import pytest

from primonotes.application.grading import format_score, grade_answer, score_test
from primonotes.domain.errors import ValidationError
from primonotes.domain.models import PartialCreditMode, Question, QuestionType
from tests.factories import mc_question


def identification(correct, case_sensitive=False, qid="q_id"):
    return Question(
        id=qid,
        type=QuestionType.IDENTIFICATION,
        correct_answer=list(correct),
        question="Capital of France?",
        case_sensitive=case_sensitive,
    )


def true_false(answer, qid="q_tf"):
    return Question(id=qid, type=QuestionType.TRUE_FALSE, correct_answer=[answer])


# ---------- Identification ----------


def test_identification_case_insensitive():
    q = identification(["Paris", "paris"])
    assert grade_answer(q, ["PARIS"]) == 1.0


def test_identification_trims_both_sides():
    q = identification(["  Paris "])
    assert grade_answer(q, ["paris   "]) == 1.0


def test_identification_case_sensitive():
    q = identification(["Paris"], case_sensitive=True)
    assert grade_answer(q, ["Paris"]) == 1.0
    assert grade_answer(q, ["paris"]) == 0.0


@pytest.mark.parametrize("submitted", [[], [""], ["   "]])
def test_identification_empty_scores_zero(submitted):
    assert grade_answer(identification(["Paris"]), submitted) == 0.0


def test_identification_any_accepted_answer():
    q = identification(["Lutetia", "Paris"])
    assert grade_answer(q, ["lutetia"]) == 1.0
    assert grade_answer(q, ["Rome"]) == 0.0


# ---------- True/false and strict multiple choice ----------


def test_true_false():
    q = true_false("True")
    assert grade_answer(q, ["True"]) == 1.0
    assert grade_answer(q, ["False"]) == 0.0
    assert grade_answer(q, []) == 0.0


def test_multiple_choice_set_equality():
    q = mc_question(["A", "C"])
    assert grade_answer(q, ["C", "A"]) == 1.0
    assert grade_answer(q, ["A"]) == 0.0
    assert grade_answer(q, ["A", "B", "C"]) == 0.0


def test_single_answer_ignores_partial_credit_flag():
    q = mc_question(["B"], partial_credit=True)
    assert grade_answer(q, ["B"]) == 1.0
    assert grade_answer(q, ["A"]) == 0.0


# ---------- Partial credit ----------


def test_partial_credit_proportional():
    q = mc_question(["A", "C"], partial_credit=True)
    assert grade_answer(q, ["A"]) == 0.5
    assert grade_answer(q, ["A", "B"]) == 0.0
    assert grade_answer(q, ["A", "C"]) == 1.0
    assert grade_answer(q, []) == 0.0


def test_partial_credit_three_answers():
    q = mc_question(["A", "B", "D"], partial_credit=True)
    assert grade_answer(q, ["D", "B"]) == pytest.approx(2 / 3)


def test_partial_credit_all_or_nothing():
    q = mc_question(
        ["A", "C"], partial_credit=True, partial_credit_mode=PartialCreditMode.ALL_OR_NOTHING
    )
    assert grade_answer(q, ["A"]) == 0.0
    assert grade_answer(q, ["A", "D"]) == 0.0
    assert grade_answer(q, ["C", "A"]) == 1.0


def test_grading_is_pure():
    q = mc_question(["A", "C"], partial_credit=True)
    answer = ["A"]
    assert grade_answer(q, answer) == grade_answer(q, answer)
    assert answer == ["A"]


# ---------- Validation ----------


def test_multiple_choice_without_options_rejected():
    q = Question(id="q", type=QuestionType.MULTIPLE_CHOICE, correct_answer=["A"], options=[])
    with pytest.raises(ValidationError):
        grade_answer(q, ["A"])


def test_correct_letter_outside_options_rejected():
    q = mc_question(["E"])
    with pytest.raises(ValidationError, match="do not match any option"):
        grade_answer(q, ["E"])


def test_question_without_correct_answer_rejected():
    with pytest.raises(ValidationError):
        grade_answer(identification([]), ["Paris"])


def test_true_false_answer_must_be_true_or_false():
    with pytest.raises(ValidationError):
        grade_answer(true_false("yes"), ["yes"])


# ---------- Test scoring ----------


def test_score_test_mean_percentage():
    questions = [
        identification(["Paris"], qid="q1"),
        true_false("False", qid="q2"),
        mc_question(["A", "C"], partial_credit=True, id="q3"),
    ]
    answers = {"q1": ["paris"], "q2": ["True"], "q3": ["C"]}

    score = score_test(questions, answers)

    assert score == pytest.approx(50.0)


def test_score_keeps_full_precision():
    questions = [true_false("True", qid=f"q{i}") for i in range(3)]
    answers = {"q0": ["True"], "q1": ["True"]}  # q2 unanswered

    score = score_test(questions, answers)

    assert score == pytest.approx(200 / 3)
    assert format_score(score) == "66.7%"


def test_score_empty_test_rejected():
    with pytest.raises(ValidationError):
        score_test([], {})
