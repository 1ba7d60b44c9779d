"""
Queue builder for study sessions.

Builds ordered study queues in one of two modes:
1. Due-date: only cards whose next review has passed, earliest first
2. Priority: every card in the deck, hardest first

The queue is a snapshot; it is not re-sorted while the session runs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from primonotes.application.scheduling import PolicyKind
from primonotes.domain.models import Card

logger = logging.getLogger(__name__)


class StudyMode(str, Enum):
    DUE_DATE = "due-date"
    PRIORITY = "priority"

    @property
    def policy_kind(self) -> PolicyKind:
        """Scheduling policy a session in this mode uses by default."""
        return "fixed" if self is StudyMode.DUE_DATE else "adaptive"


class QueueStatus(str, Enum):
    READY = "ready"
    NOTHING_DUE = "nothing-due"  # Due-date mode, no card is due
    NOTHING_TO_STUDY = "nothing-to-study"  # Priority mode, deck is empty


@dataclass
class QueueBuildResult:
    """Result of queue building operation."""

    mode: StudyMode
    status: QueueStatus
    cards: list[Card] = field(default_factory=list)  # Ordered snapshot

    @property
    def is_empty(self) -> bool:
        return self.status is not QueueStatus.READY


def build_study_queue(
    cards: list[Card],
    mode: StudyMode | str,
    now: datetime,
    study_ahead: bool = False,
    deck_id: str | None = None,
) -> QueueBuildResult:
    """
    Select and order the cards to present in a session.

    Args:
        cards: The card collection (any order).
        mode: Due-date or priority ordering.
        now: Reference time for due-date filtering.
        study_ahead: Due-date mode only; include cards that are not yet due.
        deck_id: Restrict the queue to a single deck.

    Returns:
        QueueBuildResult with the ordered snapshot and a status. An empty
        queue is reported through the status, never raised.
    """
    mode = StudyMode(mode)
    pool = [c for c in cards if deck_id is None or c.deck_id == deck_id]

    if mode is StudyMode.DUE_DATE:
        ordered = _due_date_order(pool, now, study_ahead)
        empty_status = QueueStatus.NOTHING_DUE
    else:
        ordered = _priority_order(pool)
        empty_status = QueueStatus.NOTHING_TO_STUDY

    status = QueueStatus.READY if ordered else empty_status
    logger.debug(
        f"[queue] mode={mode.value} deck={deck_id} pool={len(pool)} "
        f"queued={len(ordered)} status={status.value}"
    )
    return QueueBuildResult(mode=mode, status=status, cards=ordered)


def _due_date_order(cards: list[Card], now: datetime, study_ahead: bool) -> list[Card]:
    """
    Filter to due cards (unless studying ahead) and sort by next review.

    Unscheduled cards sort first; sorted() is stable so ties keep input order.
    """
    selected = cards if study_ahead else [c for c in cards if c.is_due(now)]
    return sorted(
        selected,
        key=lambda c: (
            c.next_review is not None,
            c.next_review.timestamp() if c.next_review else 0.0,
        ),
    )


def _priority_order(cards: list[Card]) -> list[Card]:
    """
    Sort hardest first. Unrated cards rank as neutral (0.5).
    """
    return sorted(cards, key=lambda c: c.effective_difficulty, reverse=True)
