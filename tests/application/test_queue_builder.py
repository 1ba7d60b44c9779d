"""Tests for due-date and priority study queues."""

from datetime import timedelta

from primonotes.application.queue_builder import QueueStatus, StudyMode, build_study_queue
from tests.factories import NOW, make_card


def ids(result):
    return [c.id for c in result.cards]


class TestDueDateMode:
    def test_unscheduled_cards_sort_first(self):
        cards = [
            make_card("t1", next_review=NOW - timedelta(days=2)),
            make_card("new"),
            make_card("t3", next_review=NOW - timedelta(hours=1)),
        ]
        result = build_study_queue(cards, StudyMode.DUE_DATE, NOW)

        assert ids(result) == ["new", "t1", "t3"]
        assert result.status is QueueStatus.READY

    def test_future_cards_filtered_out(self):
        cards = [
            make_card("later", next_review=NOW + timedelta(minutes=10)),
            make_card("now", next_review=NOW),
        ]
        result = build_study_queue(cards, "due-date", NOW)
        assert ids(result) == ["now"]

    def test_study_ahead_includes_everything(self):
        cards = [
            make_card("week", next_review=NOW + timedelta(days=7)),
            make_card("day", next_review=NOW + timedelta(days=1)),
            make_card("new"),
        ]
        result = build_study_queue(cards, StudyMode.DUE_DATE, NOW, study_ahead=True)
        assert ids(result) == ["new", "day", "week"]

    def test_ties_keep_input_order(self):
        cards = [make_card("b"), make_card("a"), make_card("c")]
        result = build_study_queue(cards, StudyMode.DUE_DATE, NOW)
        assert ids(result) == ["b", "a", "c"]

    def test_nothing_due(self):
        cards = [make_card("later", next_review=NOW + timedelta(days=1))]
        result = build_study_queue(cards, StudyMode.DUE_DATE, NOW)

        assert result.cards == []
        assert result.status is QueueStatus.NOTHING_DUE
        assert result.is_empty


class TestPriorityMode:
    def test_hardest_first(self):
        cards = [
            make_card("easy", difficulty_score=0.2),
            make_card("hard", difficulty_score=0.9),
            make_card("mid", difficulty_score=0.5),
        ]
        result = build_study_queue(cards, StudyMode.PRIORITY, NOW)
        assert [c.difficulty_score for c in result.cards] == [0.9, 0.5, 0.2]

    def test_unrated_rank_as_neutral(self):
        cards = [
            make_card("low", difficulty_score=0.3),
            make_card("unrated"),
            make_card("high", difficulty_score=0.6),
        ]
        result = build_study_queue(cards, StudyMode.PRIORITY, NOW)
        assert ids(result) == ["high", "unrated", "low"]

    def test_ignores_due_dates(self):
        cards = [make_card("future", next_review=NOW + timedelta(days=30))]
        result = build_study_queue(cards, StudyMode.PRIORITY, NOW)
        assert ids(result) == ["future"]

    def test_empty_deck(self):
        result = build_study_queue([], StudyMode.PRIORITY, NOW)
        assert result.status is QueueStatus.NOTHING_TO_STUDY


def test_deck_filter():
    cards = [make_card("a", deck_id="d1"), make_card("b", deck_id="d2"), make_card("c", deck_id="d1")]

    assert ids(build_study_queue(cards, StudyMode.PRIORITY, NOW, deck_id="d1")) == ["a", "c"]
    assert ids(build_study_queue(cards, StudyMode.DUE_DATE, NOW, deck_id="d2")) == ["b"]
    assert build_study_queue(cards, StudyMode.PRIORITY, NOW, deck_id="nope").is_empty


def test_modes_pair_with_policies():
    assert StudyMode.DUE_DATE.policy_kind == "fixed"
    assert StudyMode.PRIORITY.policy_kind == "adaptive"
