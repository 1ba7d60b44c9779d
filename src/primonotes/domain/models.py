"""
Domain models for cards, decks and practice tests.

These are pure data structures with no I/O or external dependencies.
Record (de)serialization lives in the infrastructure layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .constants import DEFAULT_EASE_FACTOR, DEFAULT_INTERVAL, NEUTRAL_DIFFICULTY, OPTION_LABELS
from .errors import ValidationError


class Rating(str, Enum):
    """Self-assessed recall difficulty given by the reviewer."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: "Rating | str") -> "Rating":
        if isinstance(value, Rating):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(r.value for r in cls)
            raise ValidationError(f"Unknown rating {value!r} (expected one of: {choices})")


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    IDENTIFICATION = "identification"


class PartialCreditMode(str, Enum):
    PROPORTIONAL = "proportional"
    ALL_OR_NOTHING = "all-or-nothing"


@dataclass
class Card:
    """
    A single flashcard with its own scheduling state.

    Attributes:
        interval: Days until next review once graduated.
        ease_factor: Interval growth multiplier (never below 1.3).
        difficulty_score: Smoothed recall difficulty in [0, 1], None until first rated.
        next_review: When the card is due again; None means due immediately.
        review_count: Total ratings ever given, never reset.
    """

    id: str
    deck_id: str
    front: str
    back: str
    subject: str = ""
    tags: list[str] = field(default_factory=list)

    # Scheduling state
    interval: int = DEFAULT_INTERVAL
    ease_factor: float = DEFAULT_EASE_FACTOR
    difficulty_score: float | None = None
    next_review: datetime | None = None
    review_count: int = 0

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def effective_difficulty(self) -> float:
        """Difficulty used for ranking; unrated cards count as neutral."""
        if self.difficulty_score is None:
            return NEUTRAL_DIFFICULTY
        return self.difficulty_score

    def is_due(self, now: datetime) -> bool:
        return self.next_review is None or self.next_review <= now


@dataclass
class Deck:
    id: str
    name: str
    subject: str = ""
    description: str | None = None
    color: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Question:
    """
    A practice test question.

    `correct_answer` is always a list: option letters ("A", "C") for
    multiple-choice, "True"/"False" for true-false, and literal accepted
    strings for identification.
    """

    id: str
    type: QuestionType
    correct_answer: list[str]
    question: str = ""
    options: list[str] | None = None
    case_sensitive: bool = False
    partial_credit: bool = False
    partial_credit_mode: PartialCreditMode = PartialCreditMode.PROPORTIONAL
    explanation: str | None = None
    subject: str = ""
    tags: list[str] = field(default_factory=list)

    @property
    def option_letters(self) -> list[str]:
        """Positional letter labels for the options (A, B, C, ...)."""
        return list(OPTION_LABELS[: len(self.options or [])])


@dataclass
class Test:
    __test__ = False  # Not a pytest test class

    id: str
    title: str
    questions: list[Question] = field(default_factory=list)
    subject: str = ""
    description: str | None = None
    time_limit: int | None = None  # Minutes
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TestResult:
    """
    Outcome of one submitted test attempt. Never mutated after creation.

    Attributes:
        answers: Question id -> submitted answer list.
        score: Percentage in [0, 100], stored with full precision.
    """

    __test__ = False  # Not a pytest test class

    id: str
    test_id: str
    answers: dict[str, list[str]]
    score: float
    total_questions: int
    completed_at: datetime
