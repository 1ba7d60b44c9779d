"""PrimoNotes command-line interface."""

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import typer

from primonotes.application.attempt import TestAttempt
from primonotes.application.config import AppConfig, config_file_path, resolve_config
from primonotes.application.grading import format_score
from primonotes.application.queue_builder import QueueStatus, StudyMode
from primonotes.application.session import StudySession
from primonotes.application.study_service import StudyService
from primonotes.domain.errors import PrimonotesError, SessionClosedError
from primonotes.domain.models import Question, QuestionType, Rating, TestResult
from primonotes.infrastructure.store import YamlCollectionStore

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="primonotes: flashcards with spaced repetition, and practice tests.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

deck_app = typer.Typer(help="Create, list and delete decks.", no_args_is_help=True)
app.add_typer(deck_app, name="deck")

card_app = typer.Typer(help="Add and remove flashcards.", no_args_is_help=True)
app.add_typer(card_app, name="card")

config_app = typer.Typer(help="Manage primonotes configuration.", no_args_is_help=True)
app.add_typer(config_app, name="config")

RATING_KEYS = {"a": Rating.AGAIN, "h": Rating.HARD, "g": Rating.GOOD, "e": Rating.EASY}


# ---------------------------------------------------------------------------
# Global callback & helpers
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Annotated[
        Path | None, typer.Option("--data-dir", help="Directory holding the collection files.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for primonotes."""
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["verbose"] = verbose


def _config(ctx: typer.Context) -> AppConfig:
    obj = ctx.obj or {}
    # A bare invocation (no -v) leaves verbosity to the config file or environment
    config = resolve_config(
        {"data_dir": obj.get("data_dir"), "verbose": obj.get("verbose") or None}
    )
    _set_log_level(config.verbose)
    return config


def _set_log_level(verbose: int) -> None:
    if verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger().setLevel(logging.INFO)
    else:
        logging.getLogger().setLevel(logging.WARNING)


def _service(ctx: typer.Context) -> StudyService:
    config = _config(ctx)
    return StudyService(YamlCollectionStore(config.data_dir))


def _fail(e: Exception) -> typer.Exit:
    typer.secho(f"Error: {e}", fg="red", err=True)
    return typer.Exit(1)


# ---------------------------------------------------------------------------
# Study
# ---------------------------------------------------------------------------


@app.command()
def study(
    ctx: typer.Context,
    deck_id: Annotated[str | None, typer.Argument(help="Deck to study. Defaults to all decks.")] = None,
    mode: Annotated[
        StudyMode | None,
        typer.Option("--mode", "-m", help="Queue order. Defaults to 'default_mode' in config."),
    ] = None,
    study_ahead: Annotated[
        bool | None,
        typer.Option(
            "--study-ahead/--due-only",
            help="Due-date mode: also include cards that are not due yet.",
        ),
    ] = None,
    policy: Annotated[
        str | None,
        typer.Option(
            "--policy",
            help="Scheduling policy. Defaults to 'fixed' for due-date and 'adaptive' for priority.",
        ),
    ] = None,
):
    """[bold green]Study[/bold green] flashcards one at a time and rate your recall."""
    config = _config(ctx)
    service = StudyService(YamlCollectionStore(config.data_dir))
    mode = mode or StudyMode(config.default_mode)
    ahead = config.study_ahead if study_ahead is None else study_ahead

    try:
        start = service.start_session(mode, deck_id=deck_id, study_ahead=ahead, policy=policy)
    except PrimonotesError as e:
        raise _fail(e)

    if not start.started:
        if start.queue.status is QueueStatus.NOTHING_DUE:
            typer.secho("Nothing due. Come back later or use --study-ahead.", fg="yellow")
        else:
            typer.secho("Nothing to study: the deck has no cards.", fg="yellow")
        return

    session = start.session
    typer.echo(f"{mode.value} session: {session.total} card(s), policy={session.policy.kind}")
    try:
        result = _run_session(session)
    except typer.Abort:
        result = session.exit()

    changed = service.commit_session(result)
    typer.secho(f"Session {result.state.value}. {len(changed)} card(s) rescheduled.", fg="green")


def _run_session(session: StudySession):
    while True:
        card = session.current_card
        typer.echo(
            f"\n[{session.current_index + 1}/{session.total} {session.progress:.0%}] {card.front}"
        )
        typer.prompt("Press Enter to reveal", default="", show_default=False)
        typer.echo(f"  -> {card.back}")

        while True:
            choice = typer.prompt("Rate [a]gain/[h]ard/[g]ood/[e]asy, [q]uit").strip().lower()
            if choice in ("q", "quit"):
                return session.exit()
            try:
                rating = RATING_KEYS.get(choice) or Rating.parse(choice)
            except PrimonotesError as e:
                typer.secho(str(e), fg="yellow")
                continue
            break

        result = session.rate(rating)
        if result.terminal:
            return result


@app.command()
def due(ctx: typer.Context):
    """Show how many cards are due in each deck."""
    service = _service(ctx)
    try:
        decks = service.list_decks()
        cards = service.list_cards()
    except PrimonotesError as e:
        raise _fail(e)

    now = service.clock.now()
    if not decks:
        typer.echo("No decks yet. Create one with 'primonotes deck create'.")
        return
    for deck in decks:
        owned = [c for c in cards if c.deck_id == deck.id]
        due_count = sum(1 for c in owned if c.is_due(now))
        typer.echo(f"{deck.id}  {deck.name}: {due_count} due / {len(owned)} cards")


# ---------------------------------------------------------------------------
# Practice tests
# ---------------------------------------------------------------------------


def _ask(question: Question, number: int) -> list[str]:
    typer.echo(f"\nQ{number}. {question.question}")
    if question.type is QuestionType.MULTIPLE_CHOICE:
        for letter, option in zip(question.option_letters, question.options or []):
            typer.echo(f"  {letter}. {option}")
        raw = typer.prompt("Answer (letters, comma separated)", default="", show_default=False)
        return [a.strip().upper() for a in raw.split(",") if a.strip()]
    if question.type is QuestionType.TRUE_FALSE:
        raw = typer.prompt("True or False", default="", show_default=False).strip()
        return [raw.capitalize()] if raw else []
    raw = typer.prompt("Answer", default="", show_default=False)
    return [raw] if raw.strip() else []


@app.command()
def take(
    ctx: typer.Context,
    test_id: Annotated[str, typer.Argument(help="Test to take.")],
):
    """Take a practice test. Timed tests submit automatically when time runs out."""
    service = _service(ctx)
    try:
        attempt = service.start_attempt(
            test_id,
            on_auto_submit=lambda r: typer.secho("\nTime is up, test submitted.", fg="yellow"),
        )
    except PrimonotesError as e:
        raise _fail(e)

    test = attempt.test
    typer.secho(test.title, bold=True)
    if test.time_limit:
        typer.echo(f"Time limit: {test.time_limit} minute(s)")

    try:
        for number, question in enumerate(test.questions, start=1):
            remaining = attempt.time_remaining()
            if remaining is not None:
                typer.echo(f"Time left: {_format_remaining(remaining)}")
            values = _ask(question, number)
            if attempt.closed:
                break
            try:
                attempt.answer(question.id, values)
            except SessionClosedError:
                break
        result = _finish_attempt(service, attempt)
    except (KeyboardInterrupt, typer.Abort):
        attempt.cancel()
        typer.secho("\nTest abandoned.", fg="yellow")
        raise typer.Exit(1)
    except PrimonotesError as e:
        attempt.cancel()
        raise _fail(e)

    typer.secho(f"Score: {format_score(result.score)}", fg="green")


def _finish_attempt(service: StudyService, attempt: TestAttempt) -> TestResult:
    """Submit and record the attempt, unless the expiry timer already did."""
    if attempt.result is not None:
        return attempt.result
    try:
        result = attempt.submit()
    except SessionClosedError:
        # The timer submitted (and recorded) between the check and our submit
        if attempt.result is None:
            raise
        return attempt.result
    service.record_result(result)
    return result


def _format_remaining(remaining: timedelta) -> str:
    minutes, seconds = divmod(int(remaining.total_seconds()), 60)
    return f"{minutes:02d}:{seconds:02d}"


@app.command()
def results(
    ctx: typer.Context,
    test_id: Annotated[str | None, typer.Argument(help="Only show results of this test.")] = None,
):
    """List recorded test results."""
    service = _service(ctx)
    try:
        rows = service.list_results(test_id)
    except PrimonotesError as e:
        raise _fail(e)
    for r in rows:
        typer.echo(f"{r.completed_at:%Y-%m-%d %H:%M}  {r.test_id}  {format_score(r.score)}")


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck to export.")],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to this file instead of stdout.")
    ] = None,
    progress: Annotated[
        bool, typer.Option("--progress", help="Include scheduling progress.")
    ] = False,
):
    """Export a deck to the plain-text exchange format."""
    service = _service(ctx)
    try:
        text = service.export_deck(deck_id, include_progress=progress)
    except PrimonotesError as e:
        raise _fail(e)

    if output is None:
        typer.echo(text, nl=False)
    else:
        output.write_text(text, encoding="utf-8")
        typer.secho(f"Exported to {output}", fg="green")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Plain-text deck export to import.")],
):
    """Import a deck from the plain-text exchange format."""
    service = _service(ctx)
    try:
        deck, cards = service.import_deck(path.read_text(encoding="utf-8"))
    except (OSError, PrimonotesError) as e:
        raise _fail(e)
    typer.secho(f"Imported '{deck.name}' ({deck.id}) with {len(cards)} card(s).", fg="green")


# ---------------------------------------------------------------------------
# Deck & card subgroups
# ---------------------------------------------------------------------------


@deck_app.command("create")
def deck_create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Deck name.")],
    subject: Annotated[str, typer.Option(help="Subject label.")] = "",
    description: Annotated[str | None, typer.Option(help="Short description.")] = None,
):
    """Create an empty deck."""
    try:
        deck = _service(ctx).create_deck(name, subject=subject, description=description)
    except PrimonotesError as e:
        raise _fail(e)
    typer.echo(deck.id)


@deck_app.command("list")
def deck_list(ctx: typer.Context):
    """List decks."""
    try:
        decks = _service(ctx).list_decks()
    except PrimonotesError as e:
        raise _fail(e)
    for deck in decks:
        typer.echo(f"{deck.id}  {deck.name}")


@deck_app.command("delete")
def deck_delete(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck to delete.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Delete a deck and all of its cards."""
    if not force:
        typer.confirm(f"Delete deck {deck_id} and all of its cards?", abort=True)
    try:
        removed = _service(ctx).delete_deck(deck_id)
    except PrimonotesError as e:
        raise _fail(e)
    typer.secho(f"Deleted deck {deck_id} ({removed} card(s)).", fg="green")


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Owning deck.")],
    front: Annotated[str, typer.Argument(help="Prompt side.")],
    back: Annotated[str, typer.Argument(help="Answer side.")],
    tag: Annotated[list[str] | None, typer.Option("--tag", "-t", help="Tag (repeatable).")] = None,
):
    """Add a flashcard to a deck."""
    try:
        card = _service(ctx).create_card(deck_id, front, back, tags=tag)
    except PrimonotesError as e:
        raise _fail(e)
    typer.echo(card.id)


@card_app.command("delete")
def card_delete(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to delete.")],
):
    """Delete a single flashcard."""
    try:
        deleted = _service(ctx).delete_card(card_id)
    except PrimonotesError as e:
        raise _fail(e)
    if not deleted:
        typer.secho(f"Card {card_id} not found.", fg="yellow")
        raise typer.Exit(1)
    typer.secho(f"Deleted card {card_id}.", fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@config_app.command("path")
def config_path():
    """Print the location of the config file."""
    typer.echo(str(config_file_path()))
