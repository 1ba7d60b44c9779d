"""
Mapping between domain models and persisted records.

Records use the camelCase keys and epoch-millisecond timestamps of the
original browser storage format, so existing exports load unchanged.
Legacy shapes are migrated here on read; domain code only ever sees the
current shapes.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from primonotes.domain.constants import DEFAULT_EASE_FACTOR, DEFAULT_INTERVAL, MIN_EASE_FACTOR
from primonotes.domain.models import (
    Card,
    Deck,
    PartialCreditMode,
    Question,
    QuestionType,
    Test,
    TestResult,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]


# ---------- Timestamps ----------


def to_millis(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def from_millis(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _drop_none(record: Record) -> Record:
    return {k: v for k, v in record.items() if v is not None}


# ---------- Cards ----------


def card_to_record(card: Card) -> Record:
    return _drop_none(
        {
            "id": card.id,
            "deckId": card.deck_id,
            "front": card.front,
            "back": card.back,
            "subject": card.subject,
            "tags": list(card.tags),
            "interval": card.interval,
            "easeFactor": card.ease_factor,
            "difficultyScore": card.difficulty_score,
            "nextReview": to_millis(card.next_review),
            "reviewCount": card.review_count,
            "createdAt": to_millis(card.created_at),
            "updatedAt": to_millis(card.updated_at),
        }
    )


def clamp_progress(card: Card) -> Card:
    """
    Pull a card's scheduling fields back inside their valid ranges, in place.

    Applied wherever cards enter from outside (stored records, text imports).
    """
    before = (card.interval, card.ease_factor, card.difficulty_score, card.review_count)
    card.interval = max(0, card.interval)
    card.ease_factor = max(MIN_EASE_FACTOR, card.ease_factor)
    card.review_count = max(0, card.review_count)
    if card.difficulty_score is not None:
        card.difficulty_score = max(0.0, min(1.0, card.difficulty_score))
    if before != (card.interval, card.ease_factor, card.difficulty_score, card.review_count):
        logger.debug(f"Clamped out-of-range scheduling state on card {card.id}")
    return card


def card_from_record(record: Record) -> Card:
    difficulty = record.get("difficultyScore")
    card = Card(
        id=str(record["id"]),
        deck_id=str(record.get("deckId", "")),
        front=record.get("front", ""),
        back=record.get("back", ""),
        subject=record.get("subject", "") or "",
        tags=list(record.get("tags") or []),
        interval=int(record.get("interval") or DEFAULT_INTERVAL),
        ease_factor=float(record.get("easeFactor") or DEFAULT_EASE_FACTOR),
        difficulty_score=None if difficulty is None else float(difficulty),
        next_review=from_millis(record.get("nextReview")),
        review_count=int(record.get("reviewCount") or 0),
        created_at=from_millis(record.get("createdAt")),
        updated_at=from_millis(record.get("updatedAt")),
    )
    return clamp_progress(card)


# ---------- Decks ----------


def deck_to_record(deck: Deck) -> Record:
    return _drop_none(
        {
            "id": deck.id,
            "name": deck.name,
            "description": deck.description,
            "subject": deck.subject,
            "color": deck.color,
            "createdAt": to_millis(deck.created_at),
            "updatedAt": to_millis(deck.updated_at),
        }
    )


def deck_from_record(record: Record) -> Deck:
    return Deck(
        id=str(record["id"]),
        name=record.get("name", ""),
        subject=record.get("subject", "") or "",
        description=record.get("description"),
        color=record.get("color"),
        created_at=from_millis(record.get("createdAt")),
        updated_at=from_millis(record.get("updatedAt")),
    )


# ---------- Questions & tests ----------


def as_string_list(value: Any) -> list[str]:
    """
    Coerce a string-or-list value to a list of strings.

    Legacy records stored correctAnswer (and submitted answers) as a bare string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


def question_to_record(question: Question) -> Record:
    record = {
        "id": question.id,
        "type": question.type.value,
        "question": question.question,
        "options": list(question.options) if question.options is not None else None,
        "correctAnswer": list(question.correct_answer),
        "explanation": question.explanation,
        "subject": question.subject,
        "tags": list(question.tags),
    }
    if question.type is QuestionType.IDENTIFICATION:
        record["caseSensitive"] = question.case_sensitive
    if question.partial_credit:
        record["partialCredit"] = True
        record["partialCreditMode"] = question.partial_credit_mode.value
    return _drop_none(record)


def question_from_record(record: Record) -> Question:
    raw_answer = record.get("correctAnswer")
    if isinstance(raw_answer, str):
        logger.debug(f"Migrating legacy string correctAnswer on question {record.get('id')}")
    options = record.get("options")
    return Question(
        id=str(record["id"]),
        type=QuestionType(record["type"]),
        correct_answer=as_string_list(raw_answer),
        question=record.get("question", ""),
        options=list(options) if options is not None else None,
        case_sensitive=bool(record.get("caseSensitive", False)),
        partial_credit=bool(record.get("partialCredit", False)),
        partial_credit_mode=PartialCreditMode(
            record.get("partialCreditMode") or PartialCreditMode.PROPORTIONAL.value
        ),
        explanation=record.get("explanation"),
        subject=record.get("subject", "") or "",
        tags=list(record.get("tags") or []),
    )


def practice_test_to_record(test: Test) -> Record:
    return _drop_none(
        {
            "id": test.id,
            "title": test.title,
            "description": test.description,
            "subject": test.subject,
            "questions": [question_to_record(q) for q in test.questions],
            "timeLimit": test.time_limit,
            "createdAt": to_millis(test.created_at),
            "updatedAt": to_millis(test.updated_at),
        }
    )


def practice_test_from_record(record: Record) -> Test:
    time_limit = record.get("timeLimit")
    return Test(
        id=str(record["id"]),
        title=record.get("title", ""),
        questions=[question_from_record(q) for q in record.get("questions") or []],
        subject=record.get("subject", "") or "",
        description=record.get("description"),
        time_limit=int(time_limit) if time_limit else None,
        created_at=from_millis(record.get("createdAt")),
        updated_at=from_millis(record.get("updatedAt")),
    )


def result_to_record(result: TestResult) -> Record:
    return {
        "id": result.id,
        "testId": result.test_id,
        "answers": {qid: list(values) for qid, values in result.answers.items()},
        "score": result.score,
        "totalQuestions": result.total_questions,
        "completedAt": to_millis(result.completed_at),
    }


def result_from_record(record: Record) -> TestResult:
    answers = record.get("answers") or {}
    return TestResult(
        id=str(record["id"]),
        test_id=str(record.get("testId", "")),
        answers={qid: as_string_list(v) for qid, v in answers.items()},
        score=float(record.get("score", 0.0)),
        total_questions=int(record.get("totalQuestions", 0)),
        completed_at=from_millis(record.get("completedAt")),
    )
