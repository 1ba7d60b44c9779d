"""
Answer grading for practice tests.

This is a pure computation module with no I/O.
"""

from primonotes.domain.constants import TRUE_FALSE_ANSWERS
from primonotes.domain.errors import ValidationError
from primonotes.domain.models import PartialCreditMode, Question, QuestionType


def grade_answer(question: Question, submitted: list[str]) -> float:
    """
    Score a submitted answer against a question.

    Args:
        question: The question being answered.
        submitted: Submitted answers in order (possibly empty). Identification
            questions only look at the first entry.

    Returns:
        Score in [0, 1].

    Raises:
        ValidationError: If the question itself is malformed.
    """
    validate_question(question)

    if question.type is QuestionType.IDENTIFICATION:
        return _grade_identification(question, submitted)

    correct = set(question.correct_answer)
    chosen = set(submitted)

    if (
        question.type is QuestionType.MULTIPLE_CHOICE
        and question.partial_credit
        and len(correct) > 1
    ):
        return _grade_partial(question, correct, chosen)

    return 1.0 if chosen == correct else 0.0


def _grade_identification(question: Question, submitted: list[str]) -> float:
    if not submitted:
        return 0.0
    answer = submitted[0].strip()
    if not answer:
        return 0.0

    if question.case_sensitive:
        accepted = {a.strip() for a in question.correct_answer}
    else:
        answer = answer.casefold()
        accepted = {a.strip().casefold() for a in question.correct_answer}
    return 1.0 if answer in accepted else 0.0


def _grade_partial(question: Question, correct: set[str], chosen: set[str]) -> float:
    # Any wrong selection disqualifies, whatever the mode
    if chosen - correct:
        return 0.0

    hits = len(chosen & correct)
    if question.partial_credit_mode is PartialCreditMode.ALL_OR_NOTHING:
        return 1.0 if hits == len(correct) else 0.0
    return hits / len(correct)


def validate_question(question: Question) -> None:
    """
    Check the structural invariants grading relies on.
    """
    if not question.correct_answer:
        raise ValidationError(f"Question {question.id} has no correct answer")

    if question.type is QuestionType.MULTIPLE_CHOICE:
        if not question.options:
            raise ValidationError(f"Multiple-choice question {question.id} has no options")
        letters = set(question.option_letters)
        unknown = [a for a in question.correct_answer if a not in letters]
        if unknown:
            raise ValidationError(
                f"Question {question.id}: correct answer(s) {unknown} do not match any option "
                f"(valid: {', '.join(question.option_letters)})"
            )
    elif question.type is QuestionType.TRUE_FALSE:
        if len(question.correct_answer) != 1 or question.correct_answer[0] not in TRUE_FALSE_ANSWERS:
            raise ValidationError(
                f"True/false question {question.id} must have exactly one answer, True or False"
            )


def score_test(questions: list[Question], answers: dict[str, list[str]]) -> float:
    """
    Overall test score as a percentage in [0, 100], kept at full precision.

    Unanswered questions score 0.
    """
    if not questions:
        raise ValidationError("Cannot score a test with no questions")
    total = sum(grade_answer(q, answers.get(q.id, [])) for q in questions)
    return total / len(questions) * 100


def format_score(score: float) -> str:
    """Round a stored score for display only."""
    return f"{score:.1f}%"
