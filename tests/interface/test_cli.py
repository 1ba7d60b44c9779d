"""Tests for CLI commands against a throwaway data directory."""

import json
import logging

import pytest
from typer.testing import CliRunner

from primonotes.application.study_service import StudyService
from primonotes.domain.models import Question, QuestionType, Test
from primonotes.infrastructure.store import YamlCollectionStore
from primonotes.interface.cli import _finish_attempt, app
from tests.factories import FakeTimer

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the user's config file and PRIMONOTES_* variables out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in ("DATA_DIR", "STUDY_AHEAD", "DEFAULT_MODE", "VERBOSE"):
        monkeypatch.delenv(f"PRIMONOTES_{name}", raising=False)


@pytest.fixture(autouse=True)
def restore_log_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def invoke(data_dir):
    def _invoke(*args, input=None):
        return runner.invoke(app, ["--data-dir", str(data_dir), *args], input=input)

    return _invoke


@pytest.fixture
def deck_with_card(invoke):
    deck_id = invoke("deck", "create", "Biology", "--subject", "Science").stdout.strip()
    invoke("card", "add", deck_id, "Mitochondria", "Powerhouse", "--tag", "cells")
    return deck_id


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "flashcards with spaced repetition" in result.stdout
    assert "study" in result.stdout
    assert "take" in result.stdout


# --- Decks & cards ---


def test_deck_and_card_commands(invoke, deck_with_card):
    assert deck_with_card.startswith("deck_")

    result = invoke("deck", "list")
    assert f"{deck_with_card}  Biology" in result.stdout

    result = invoke("due")
    assert result.exit_code == 0
    assert "Biology: 1 due / 1 cards" in result.stdout


def test_card_add_to_missing_deck_fails(invoke):
    result = invoke("card", "add", "deck_missing", "front", "back")
    assert result.exit_code == 1
    assert "Deck deck_missing not found" in result.output


def test_deck_delete_force(invoke, deck_with_card):
    result = invoke("deck", "delete", deck_with_card, "--force")
    assert result.exit_code == 0
    assert "(1 card(s))" in result.stdout
    assert invoke("deck", "list").stdout == ""


# --- Study ---


def test_study_session_reschedules_card(invoke, deck_with_card):
    result = invoke("study", deck_with_card, input="\ng\n")

    assert result.exit_code == 0
    assert "due-date session: 1 card(s), policy=fixed" in result.stdout
    assert "[1/1 100%] Mitochondria" in result.stdout
    assert "Powerhouse" in result.stdout
    assert "Session completed. 1 card(s) rescheduled." in result.stdout

    result = invoke("study", deck_with_card)
    assert "Nothing due" in result.stdout


def test_study_quit_keeps_schedule(invoke, deck_with_card):
    result = invoke("study", deck_with_card, "--mode", "priority", input="\nq\n")

    assert result.exit_code == 0
    assert "policy=adaptive" in result.stdout
    assert "Session exited. 0 card(s) rescheduled." in result.stdout
    assert "1 due / 1 cards" in invoke("due").stdout


def test_study_rejects_unknown_rating_then_accepts(invoke, deck_with_card):
    result = invoke("study", deck_with_card, input="\nmaybe\ne\n")
    assert "Unknown rating 'maybe'" in result.stdout
    assert "1 card(s) rescheduled" in result.stdout


def test_study_empty_deck(invoke):
    deck_id = invoke("deck", "create", "Empty").stdout.strip()
    result = invoke("study", deck_id, "--mode", "priority")
    assert "Nothing to study" in result.stdout


# --- Tests ---


def test_take_untimed_test(invoke, data_dir):
    service = StudyService(YamlCollectionStore(data_dir))
    service.save_test(
        Test(
            id="t1",
            title="Capitals",
            questions=[
                Question(
                    id="q1",
                    type=QuestionType.IDENTIFICATION,
                    question="Capital of France?",
                    correct_answer=["Paris"],
                ),
                Question(
                    id="q2",
                    type=QuestionType.MULTIPLE_CHOICE,
                    question="Pick the French cities",
                    options=["Paris", "Rome", "Lyon"],
                    correct_answer=["A", "C"],
                    partial_credit=True,
                ),
            ],
        )
    )

    result = invoke("take", "t1", input="paris\na\n")

    assert result.exit_code == 0
    assert "C. Lyon" in result.stdout
    assert "Score: 75.0%" in result.stdout
    assert "Time left" not in result.stdout
    assert "t1  75.0%" in invoke("results").stdout


def test_take_timed_test_shows_countdown(invoke, data_dir):
    StudyService(YamlCollectionStore(data_dir)).save_test(
        Test(
            id="t2",
            title="Quick",
            time_limit=5,
            questions=[Question(id="q1", type=QuestionType.TRUE_FALSE, correct_answer=["True"])],
        )
    )

    result = invoke("take", "t2", input="true\n")

    assert result.exit_code == 0
    assert "Time limit: 5 minute(s)" in result.stdout
    assert "Time left: 0" in result.stdout
    assert "Score: 100.0%" in result.stdout


def test_finish_attempt_after_timer_already_submitted(service):
    service.save_test(
        Test(
            id="t3",
            title="Race",
            time_limit=1,
            questions=[Question(id="q1", type=QuestionType.TRUE_FALSE, correct_answer=["True"])],
        )
    )
    attempt = service.start_attempt("t3", timer_factory=FakeTimer)
    attempt.answer("q1", ["True"])
    real_submit = attempt.submit

    def submit_after_expiry():
        # The expiry timer wins the race to submit
        attempt.submit = real_submit
        FakeTimer.instances[0].fire()
        return real_submit()

    attempt.submit = submit_after_expiry

    result = _finish_attempt(service, attempt)

    assert result is attempt.result
    assert result.score == 100.0
    assert service.list_results("t3") == [result]


def test_take_unknown_test(invoke):
    result = invoke("take", "nope")
    assert result.exit_code == 1
    assert "Test nope not found" in result.output


# --- Import / export ---


def test_export_then_import(invoke, deck_with_card, tmp_path):
    export_file = tmp_path / "biology.txt"
    result = invoke("export", deck_with_card, "--output", str(export_file))
    assert result.exit_code == 0
    assert export_file.read_text(encoding="utf-8").startswith("DECK: Biology\nSUBJECT: Science\n")

    result = invoke("import", str(export_file))
    assert result.exit_code == 0
    assert "Imported 'Biology'" in result.stdout
    assert "with 1 card(s)" in result.stdout
    assert len(invoke("deck", "list").stdout.splitlines()) == 2


def test_import_rejects_non_export(invoke, tmp_path):
    bogus = tmp_path / "notes.txt"
    bogus.write_text("just some notes\n", encoding="utf-8")

    result = invoke("import", str(bogus))

    assert result.exit_code == 1
    assert "missing 'DECK:' header" in result.output


# --- Config ---


def test_config_show_reflects_data_dir(invoke, data_dir):
    result = invoke("config", "show")
    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["data_dir"] == str(data_dir.resolve())
    assert config["default_mode"] == "due-date"


def test_config_show_reads_environment(invoke, monkeypatch):
    monkeypatch.setenv("PRIMONOTES_DEFAULT_MODE", "priority")
    config = json.loads(invoke("config", "show").stdout)
    assert config["default_mode"] == "priority"


def test_verbose_flag_sets_log_level(invoke):
    result = invoke("-vv", "config", "show")

    assert json.loads(result.stdout)["verbose"] == 2
    assert logging.getLogger().level == logging.DEBUG


def test_verbosity_from_environment(invoke, monkeypatch):
    monkeypatch.setenv("PRIMONOTES_VERBOSE", "1")
    invoke("deck", "list")
    assert logging.getLogger().level == logging.INFO

    monkeypatch.delenv("PRIMONOTES_VERBOSE")
    invoke("deck", "list")
    assert logging.getLogger().level == logging.WARNING
