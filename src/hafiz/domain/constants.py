"""Centralized constants for hafiz.

Storage keys, scheduling bounds and configuration defaults live here so every
layer imports from a single source of truth.
"""

# ---------- Storage keys ----------
PROGRESS_STORAGE_KEY = "hafiz.memorization_progress"
CARDS_STORAGE_KEY = "hafiz.memorization_cards"

# ---------- Spaced repetition ----------
DEFAULT_EASINESS = 2.5
MIN_EASINESS = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
MIN_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 365
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6

# Quality at or above this counts as a successful review.
DEFAULT_SUCCESS_THRESHOLD = 3

# Reference ladder of the retired quality-bucket scheduler. Not consulted.
LEGACY_INTERVAL_LADDER = (1, 3, 7, 14, 30, 60, 90)

# ---------- Persistence ----------
STORAGE_TIMEOUT = 5.0  # seconds
