"""
Study service: application layer orchestrator.

Coordinates the collection store with the queue builder, session runner,
review policies and test attempts.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from primonotes.application.attempt import TestAttempt
from primonotes.application.grading import validate_question
from primonotes.application.id_service import IdGenerator, generate_id
from primonotes.application.queue_builder import QueueBuildResult, StudyMode, build_study_queue
from primonotes.application.scheduling import PolicyKind, get_policy
from primonotes.application.session import SessionResult, StudySession, merge_cards
from primonotes.domain.errors import ValidationError
from primonotes.domain.interfaces import Clock, CollectionStore
from primonotes.domain.models import Card, Deck, Test, TestResult
from primonotes.infrastructure.clock import SystemClock
from primonotes.infrastructure.records import (
    card_from_record,
    card_to_record,
    clamp_progress,
    deck_from_record,
    deck_to_record,
    practice_test_from_record,
    practice_test_to_record,
    result_from_record,
    result_to_record,
)
from primonotes.infrastructure.text_format import export_deck_to_text, import_deck_from_text

logger = logging.getLogger(__name__)


@dataclass
class SessionStart:
    """Outcome of asking to start a session: the queue, and a session if anything is queued."""

    queue: QueueBuildResult
    session: StudySession | None = None

    @property
    def started(self) -> bool:
        return self.session is not None


class StudyService:
    """
    Application service for decks, cards, study sessions and test attempts.

    Depends on the CollectionStore abstraction, not a concrete adapter.
    """

    def __init__(
        self,
        store: CollectionStore,
        clock: Clock | None = None,
        id_factory: IdGenerator | None = None,
    ):
        """
        Args:
            store: The repository (port) for persisted collections.
            clock: Source of "now"; wall clock if not provided.
            id_factory: Source of opaque ids; ULID if not provided.
        """
        self._store = store
        self._clock = clock or SystemClock()
        self._new_id = id_factory or generate_id

    @property
    def clock(self) -> Clock:
        return self._clock

    # ---------- Decks ----------

    def list_decks(self) -> list[Deck]:
        return [deck_from_record(r) for r in self._store.load("decks")]

    def get_deck(self, deck_id: str) -> Deck:
        for deck in self.list_decks():
            if deck.id == deck_id:
                return deck
        raise ValidationError(f"Deck {deck_id} not found")

    def create_deck(
        self,
        name: str,
        subject: str = "",
        description: str | None = None,
        color: str | None = None,
    ) -> Deck:
        if not name.strip():
            raise ValidationError("Deck name must not be empty")
        now = self._clock.now()
        deck = Deck(
            id=f"deck_{self._new_id()}",
            name=name.strip(),
            subject=subject,
            description=description,
            color=color,
            created_at=now,
            updated_at=now,
        )
        records = self._store.load("decks")
        records.append(deck_to_record(deck))
        self._store.save("decks", records)
        logger.info(f"Created deck {deck.id} ({deck.name})")
        return deck

    def delete_deck(self, deck_id: str) -> int:
        """
        Delete a deck and every card it owns. Returns the number of cards removed.
        """
        self.get_deck(deck_id)
        decks = [r for r in self._store.load("decks") if r.get("id") != deck_id]
        cards = self._store.load("flashcards")
        kept = [r for r in cards if r.get("deckId") != deck_id]

        self._store.save("flashcards", kept)
        self._store.save("decks", decks)
        removed = len(cards) - len(kept)
        logger.info(f"Deleted deck {deck_id} and {removed} card(s)")
        return removed

    # ---------- Cards ----------

    def list_cards(self, deck_id: str | None = None) -> list[Card]:
        cards = [card_from_record(r) for r in self._store.load("flashcards")]
        if deck_id is None:
            return cards
        return [c for c in cards if c.deck_id == deck_id]

    def create_card(
        self,
        deck_id: str,
        front: str,
        back: str,
        subject: str = "",
        tags: list[str] | None = None,
    ) -> Card:
        """
        Create a card with default scheduling state in an existing deck.
        """
        card = self._new_card(deck_id, front, back, subject, tags)
        records = self._store.load("flashcards")
        records.append(card_to_record(card))
        self._store.save("flashcards", records)
        return card

    def delete_card(self, card_id: str) -> bool:
        records = self._store.load("flashcards")
        kept = [r for r in records if r.get("id") != card_id]
        if len(kept) == len(records):
            return False
        self._store.save("flashcards", kept)
        return True

    def _new_card(
        self,
        deck_id: str,
        front: str,
        back: str,
        subject: str = "",
        tags: list[str] | None = None,
    ) -> Card:
        if not front.strip() or not back.strip():
            raise ValidationError("Card front and back must not be empty")
        self.get_deck(deck_id)
        now = self._clock.now()
        return Card(
            id=f"card_{self._new_id()}",
            deck_id=deck_id,
            front=front,
            back=back,
            subject=subject,
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
        )

    # ---------- Study sessions ----------

    def build_queue(
        self,
        mode: StudyMode | str,
        deck_id: str | None = None,
        study_ahead: bool = False,
    ) -> QueueBuildResult:
        return build_study_queue(
            self.list_cards(),
            mode,
            self._clock.now(),
            study_ahead=study_ahead,
            deck_id=deck_id,
        )

    def start_session(
        self,
        mode: StudyMode | str,
        deck_id: str | None = None,
        study_ahead: bool = False,
        policy: PolicyKind | None = None,
    ) -> SessionStart:
        """
        Build the queue and, if it is not empty, start a session over it.

        Args:
            mode: Due-date or priority ordering.
            deck_id: Restrict to one deck.
            study_ahead: Due-date mode only; also queue cards not yet due.
            policy: Scheduling policy; defaults to the one paired with `mode`.

        Returns:
            SessionStart whose `session` is None when nothing is queued.
        """
        queue = self.build_queue(mode, deck_id=deck_id, study_ahead=study_ahead)
        if queue.is_empty:
            logger.info(f"No session started: {queue.status.value}")
            return SessionStart(queue=queue)

        scheduler = get_policy(policy or queue.mode.policy_kind)
        session = StudySession(queue.cards, scheduler, self._clock)
        logger.debug(f"Started {queue.mode.value} session ({scheduler.kind}) over {len(queue.cards)} cards")
        return SessionStart(queue=queue, session=session)

    def commit_session(self, result: SessionResult) -> list[Card]:
        """
        Merge a session's emitted cards back into the stored collection by id.

        Returns the cards that changed.
        """
        changed = result.changed_cards
        if not changed:
            return []
        collection = self.list_cards()
        merged = merge_cards(collection, changed)
        self._store.save("flashcards", [card_to_record(c) for c in merged])
        logger.info(f"Committed {len(changed)} reviewed card(s) ({result.state.value})")
        return changed

    # ---------- Tests ----------

    def list_tests(self) -> list[Test]:
        return [practice_test_from_record(r) for r in self._store.load("tests")]

    def get_test(self, test_id: str) -> Test:
        for test in self.list_tests():
            if test.id == test_id:
                return test
        raise ValidationError(f"Test {test_id} not found")

    def save_test(self, test: Test) -> Test:
        """
        Insert or replace a test after validating each question.
        """
        for question in test.questions:
            validate_question(question)
        records = [r for r in self._store.load("tests") if r.get("id") != test.id]
        records.append(practice_test_to_record(test))
        self._store.save("tests", records)
        return test

    def start_attempt(
        self,
        test_id: str,
        on_auto_submit: Callable[[TestResult], None] | None = None,
        timer_factory: Callable | None = None,
    ) -> TestAttempt:
        """
        Start a (possibly timed) attempt. Auto-submitted results are recorded
        before `on_auto_submit` is called.
        """
        test = self.get_test(test_id)

        def _auto_submitted(result: TestResult) -> None:
            self.record_result(result)
            if on_auto_submit:
                on_auto_submit(result)

        kwargs = {"timer_factory": timer_factory} if timer_factory else {}
        attempt = TestAttempt(
            test,
            self._clock,
            on_auto_submit=_auto_submitted,
            id_factory=lambda: f"result_{self._new_id()}",
            **kwargs,
        )
        attempt.start()
        return attempt

    def record_result(self, result: TestResult) -> None:
        """Append a result to the result log."""
        records = self._store.load("testResults")
        records.append(result_to_record(result))
        self._store.save("testResults", records)

    def list_results(self, test_id: str | None = None) -> list[TestResult]:
        results = [result_from_record(r) for r in self._store.load("testResults")]
        if test_id is None:
            return results
        return [r for r in results if r.test_id == test_id]

    # ---------- Import / export ----------

    def export_deck(self, deck_id: str, include_progress: bool = False) -> str:
        deck = self.get_deck(deck_id)
        return export_deck_to_text(deck, self.list_cards(deck_id), include_progress)

    def import_deck(self, text: str) -> tuple[Deck, list[Card]]:
        """
        Create a new deck (and its cards) from a plain-text deck export.
        """
        parsed = import_deck_from_text(text)
        deck = self.create_deck(parsed.name, subject=parsed.subject, description=parsed.description or None)

        cards: list[Card] = []
        for item in parsed.cards:
            card = self._new_card(deck.id, item.front, item.back, item.subject, item.tags)
            card.interval = item.interval
            card.ease_factor = item.ease_factor
            card.review_count = item.review_count
            card.difficulty_score = item.difficulty_score
            card.next_review = item.next_review
            cards.append(clamp_progress(card))

        records = self._store.load("flashcards")
        records.extend(card_to_record(c) for c in cards)
        self._store.save("flashcards", records)
        logger.info(f"Imported deck {deck.name} with {len(cards)} card(s)")
        return deck, cards
