"""
Study session runner.

A finite linear walk over a queue snapshot. Each rating replaces the
current card with its rescheduled version and advances; the session
ends when the last card is rated or the reviewer exits early.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from primonotes.application.scheduling import SchedulingPolicy
from primonotes.domain.errors import SessionClosedError, ValidationError
from primonotes.domain.interfaces import Clock
from primonotes.domain.models import Card, Rating

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    EXITED = "exited"


@dataclass
class SessionResult:
    """
    Snapshot emitted after every rating and on exit.

    `cards` holds the full queue (rated cards updated, others unchanged);
    `rated_ids` names exactly the cards whose state changed.
    """

    state: SessionState
    cards: list[Card]
    rated_ids: list[str] = field(default_factory=list)

    @property
    def terminal(self) -> bool:
        return self.state is not SessionState.IN_PROGRESS

    @property
    def changed_cards(self) -> list[Card]:
        rated = set(self.rated_ids)
        return [c for c in self.cards if c.id in rated]


class StudySession:
    """
    Steps a reviewer through a queue one card at a time.

    The policy is fixed at construction; the runner has no knowledge of
    which study mode produced the queue.
    """

    def __init__(self, queue: list[Card], policy: SchedulingPolicy, clock: Clock):
        if not queue:
            raise ValidationError("Cannot start a study session with an empty queue")
        self._queue = list(queue)
        self._policy = policy
        self._clock = clock
        self._rated: list[str] = []
        self.current_index = 0
        self.state = SessionState.IN_PROGRESS

    @property
    def policy(self) -> SchedulingPolicy:
        return self._policy

    @property
    def total(self) -> int:
        return len(self._queue)

    @property
    def current_card(self) -> Card | None:
        if self.state is not SessionState.IN_PROGRESS:
            return None
        return self._queue[self.current_index]

    @property
    def progress(self) -> float:
        """Fraction of the queue reached, counting the card on screen."""
        return min(self.current_index + 1, self.total) / self.total

    def rate(self, rating: Rating | str) -> SessionResult:
        """
        Apply the active policy to the current card and advance.

        Rating the last card completes the session.

        Raises:
            SessionClosedError: If the session already completed or exited.
            ValidationError: If the rating is unknown (the session is unchanged).
        """
        self._ensure_open()
        rating = Rating.parse(rating)

        card = self._queue[self.current_index]
        self._queue[self.current_index] = self._policy.apply(card, rating, self._clock.now())
        if card.id not in self._rated:
            self._rated.append(card.id)

        if self.current_index + 1 == len(self._queue):
            self.state = SessionState.COMPLETED
            logger.debug(f"[session] completed after {len(self._queue)} cards")
        else:
            self.current_index += 1

        return self._result()

    def exit(self) -> SessionResult:
        """
        End the session early, emitting the snapshot as-is.
        """
        self._ensure_open()
        self.state = SessionState.EXITED
        logger.debug(
            f"[session] exited at card {self.current_index + 1}/{len(self._queue)}, "
            f"{len(self._rated)} rated"
        )
        return self._result()

    def _ensure_open(self) -> None:
        if self.state is not SessionState.IN_PROGRESS:
            raise SessionClosedError(f"Study session already {self.state.value}")

    def _result(self) -> SessionResult:
        return SessionResult(state=self.state, cards=list(self._queue), rated_ids=list(self._rated))


def merge_cards(collection: list[Card], updated: list[Card]) -> list[Card]:
    """
    Replace cards in `collection` by id with their updated versions.

    Cards absent from `updated` are left untouched and collection order is kept.
    Updated cards whose id is not in the collection are ignored.
    """
    by_id = {c.id: c for c in updated}
    return [by_id.get(c.id, c) for c in collection]
