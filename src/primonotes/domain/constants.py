"""Centralized constants for the PrimoNotes study core.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

from datetime import timedelta

# ---------- Card defaults ----------
DEFAULT_INTERVAL = 0
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
NEUTRAL_DIFFICULTY = 0.5  # Used when a card has never been rated

# ---------- Fixed-Interval policy ----------
FIXED_OFFSETS = {
    "again": timedelta(minutes=10),
    "hard": timedelta(days=1),
    "good": timedelta(days=3),
    "easy": timedelta(days=7),
}

# ---------- Adaptive-Ease policy ----------
RELEARN_DELAY = timedelta(minutes=10)
AGAIN_EASE_PENALTY = 0.2
DIFFICULTY_WEIGHT = 0.3
DIFFICULTY_RAW_SCORES = {
    "again": 1.0,
    "hard": 0.7,
    "good": 0.4,
    "easy": 0.1,
}
SM2_QUALITY = {
    "hard": 3,
    "good": 4,
    "easy": 5,
}
HARD_MULTIPLIER = 1.2
EASY_BONUS = 1.3
MAX_INTERVAL_DAYS = 365

# ---------- Tests ----------
OPTION_LABELS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
TRUE_FALSE_ANSWERS = ("True", "False")

# ---------- Storage ----------
STORE_KINDS = ("notes", "flashcards", "decks", "tests", "testResults")
