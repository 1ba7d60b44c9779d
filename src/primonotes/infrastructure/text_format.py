"""
Plain-text deck import/export.

Format:

    DECK: Biology
    SUBJECT: Science
    DESCRIPTION: Cells and such
    CREATED: 2024-05-01T10:00:00+00:00
    (d)-

    CARD 1
    FRONT: Mitochondria
    BACK: Powerhouse of the cell
    SUBJECT: Science
    TAGS: cells, organelles
    PROGRESS: interval=3, easeFactor=2.5, reviewCount=2, nextReview=1714557600000
    (c)-

The PROGRESS line is only written when progress export is requested.
"""

from dataclasses import dataclass, field
from datetime import datetime

from primonotes.domain.constants import DEFAULT_EASE_FACTOR, DEFAULT_INTERVAL
from primonotes.domain.errors import ImportFormatError
from primonotes.domain.models import Card, Deck
from primonotes.infrastructure.records import from_millis, to_millis

DECK_END = "(d)-"
CARD_END = "(c)-"


@dataclass
class ImportedCard:
    """Card content and optional progress parsed from text, before ids are assigned."""

    front: str = ""
    back: str = ""
    subject: str = ""
    tags: list[str] = field(default_factory=list)
    interval: int = DEFAULT_INTERVAL
    ease_factor: float = DEFAULT_EASE_FACTOR
    review_count: int = 0
    difficulty_score: float | None = None
    next_review: datetime | None = None


@dataclass
class ImportedDeck:
    name: str = ""
    subject: str = ""
    description: str = ""
    cards: list[ImportedCard] = field(default_factory=list)


# ---------- Export ----------


def _card_block(index: int, card: Card, include_progress: bool) -> str:
    out = f"CARD {index}\n"
    out += f"FRONT: {card.front}\n"
    out += f"BACK: {card.back}\n"
    out += f"SUBJECT: {card.subject}\n"
    if card.tags:
        out += f"TAGS: {', '.join(card.tags)}\n"

    if include_progress:
        parts = [
            f"interval={card.interval}",
            f"easeFactor={card.ease_factor}",
            f"reviewCount={card.review_count}",
        ]
        if card.difficulty_score is not None:
            parts.append(f"difficultyScore={card.difficulty_score}")
        if card.next_review is not None:
            parts.append(f"nextReview={to_millis(card.next_review)}")
        out += f"PROGRESS: {', '.join(parts)}\n"

    out += f"{CARD_END}\n\n"
    return out


def export_deck_to_text(deck: Deck, cards: list[Card], include_progress: bool = False) -> str:
    out = f"DECK: {deck.name}\n"
    out += f"SUBJECT: {deck.subject}\n"
    if deck.description:
        out += f"DESCRIPTION: {deck.description}\n"
    if deck.created_at:
        out += f"CREATED: {deck.created_at.isoformat()}\n"
    out += f"{DECK_END}\n\n"

    for i, card in enumerate(cards, start=1):
        out += _card_block(i, card, include_progress)
    return out


# ---------- Import ----------


def import_deck_from_text(text: str) -> ImportedDeck:
    """
    Parse a deck export. Cards missing a front or back are skipped.

    Raises:
        ImportFormatError: If the text has no `DECK:` header.
    """
    lines = text.lstrip("\ufeff").split("\n")
    deck = ImportedDeck()

    i = 0
    while i < len(lines) and lines[i].strip() != DECK_END:
        line = lines[i].strip()
        if line.startswith("DECK: "):
            deck.name = line[len("DECK: ") :]
        elif line.startswith("SUBJECT: "):
            deck.subject = line[len("SUBJECT: ") :]
        elif line.startswith("DESCRIPTION: "):
            deck.description = line[len("DESCRIPTION: ") :]
        i += 1

    if not deck.name:
        raise ImportFormatError("Not a deck export: missing 'DECK:' header")

    deck.cards = _parse_cards(lines, i + 1)
    return deck


def _parse_cards(lines: list[str], start: int) -> list[ImportedCard]:
    cards: list[ImportedCard] = []
    i = start

    while i < len(lines):
        if not lines[i].strip().startswith("CARD "):
            i += 1
            continue

        card = ImportedCard()
        i += 1
        while i < len(lines) and lines[i].strip() != CARD_END:
            line = lines[i].strip()
            if line.startswith("FRONT: "):
                card.front = line[len("FRONT: ") :]
            elif line.startswith("BACK: "):
                card.back = line[len("BACK: ") :]
            elif line.startswith("SUBJECT: "):
                card.subject = line[len("SUBJECT: ") :]
            elif line.startswith("TAGS: "):
                card.tags = [t.strip() for t in line[len("TAGS: ") :].split(",") if t.strip()]
            elif line.startswith("PROGRESS: "):
                _apply_progress(card, line[len("PROGRESS: ") :], line_no=i + 1)
            i += 1

        if card.front and card.back:
            cards.append(card)
        i += 1  # Skip the (c)- separator

    return cards


def _apply_progress(card: ImportedCard, progress: str, line_no: int) -> None:
    for part in progress.split(","):
        key, _, value = (s.strip() for s in part.partition("="))
        try:
            if key == "interval":
                card.interval = int(value)
            elif key == "easeFactor":
                card.ease_factor = float(value)
            elif key == "reviewCount":
                card.review_count = int(value)
            elif key == "difficultyScore":
                card.difficulty_score = float(value)
            elif key == "nextReview":
                card.next_review = from_millis(value)
        except ValueError:
            raise ImportFormatError(f"Line {line_no}: invalid value for {key!r}: {value!r}")
