"""Centralized tuning constants for the two-pass SFX classifier.

All scoring weights, thresholds, and similarity parameters should be
defined here and referenced by the classifiers and engine (single source
of truth).
"""

from __future__ import annotations

import copy
from typing import Any, Dict

# ---------------------------------------------------------------------------
# Rule-based pass
PREFIX_CONFIDENCE = 0.92
PREFIX_MIN_LENGTH = 3

# Stepped mapping from winning bucket score to confidence (checked in order)
CONFIDENCE_STEPS = (
    (80.0, 0.95),
    (55.0, 0.88),
    (35.0, 0.78),
    (22.0, 0.65),
)
CONFIDENCE_FLOOR_STEP = 0.45

MARGIN_PENALTIES: Dict[str, float] = {
    "narrow_margin": 6.0,
    "narrow_penalty": 0.12,
    "tight_margin": 2.0,
    "tight_penalty": 0.18,
}

SCORED_CONFIDENCE_MIN = 0.10
SCORED_CONFIDENCE_MAX = 0.98

FOLDER_FALLBACK_CONFIDENCE = 0.15
EMPTY_FALLBACK_CONFIDENCE = 0.0

PARENT_FOLDER_LEVELS_TO_SCAN = 6
USER_HINT_WEIGHT = 20.0

# ---------------------------------------------------------------------------
# Tokenizer
NGRAM_MIN = 3
NGRAM_MAX = 5

# ---------------------------------------------------------------------------
# Similarity pass
NORM_EPSILON = 1e-6
TOP_K = 9
MIN_SIMILARITY = 0.18
MIN_CENTROID_SIMILARITY = 0.15
MIN_CORPUS_SIZE = 200

# Items at or above this confidence are trusted as training documents;
# items below it (or Unsorted) are re-queried.
TRAINING_MIN_CONFIDENCE = 0.50
LOW_CONFIDENCE_THRESHOLD = 0.50

SIMILARITY_CONFIDENCE_SCALE = 1.25
SIMILARITY_CONFIDENCE_MIN = 0.10
SIMILARITY_CONFIDENCE_MAX = 0.98

# ---------------------------------------------------------------------------
# Engine scheduling
CHUNK_SIZE = 300
PARALLEL_WORKERS_DEFAULT = 1

# Constants that are probabilities/similarities and must stay within [0, 1]
UNIT_INTERVAL_KEYS = frozenset(
    {
        "PREFIX_CONFIDENCE",
        "CONFIDENCE_FLOOR_STEP",
        "SCORED_CONFIDENCE_MIN",
        "SCORED_CONFIDENCE_MAX",
        "FOLDER_FALLBACK_CONFIDENCE",
        "EMPTY_FALLBACK_CONFIDENCE",
        "MIN_SIMILARITY",
        "MIN_CENTROID_SIMILARITY",
        "TRAINING_MIN_CONFIDENCE",
        "LOW_CONFIDENCE_THRESHOLD",
        "SIMILARITY_CONFIDENCE_MIN",
        "SIMILARITY_CONFIDENCE_MAX",
    }
)

_DEFAULTS: Dict[str, Any] = {
    key: copy.deepcopy(value)
    for key, value in list(globals().items())
    if key.isupper() and key != "UNIT_INTERVAL_KEYS"
}


def reset_defaults() -> None:
    """Restore every tuning constant to its shipped value."""
    module_globals = globals()
    for key, value in _DEFAULTS.items():
        module_globals[key] = copy.deepcopy(value)


def apply_overrides(data: Dict[str, Any]) -> None:
    """Merge numeric/dict tuning overrides into module globals (best-effort).

    Out-of-range values for the ``UNIT_INTERVAL_KEYS`` constants are
    skipped with a warning.  Dict overrides replace the module dict with a
    merged copy, so ``reset_defaults`` always has pristine values to restore.
    """
    if not isinstance(data, dict):
        return

    module_globals = globals()
    for key, value in data.items():
        if key not in module_globals or key not in _DEFAULTS:
            continue
        current = module_globals[key]
        if isinstance(current, bool) or isinstance(value, bool):
            continue
        if isinstance(current, dict) and isinstance(value, dict):
            merged = dict(current)
            merged.update(value)
            module_globals[key] = merged
        elif isinstance(current, (int, float)) and isinstance(value, (int, float)):
            if key in UNIT_INTERVAL_KEYS and not 0.0 <= float(value) <= 1.0:
                print(f"Warning: ignoring tuning override {key}={value}: expected a value in [0, 1]")
                continue
            module_globals[key] = value
