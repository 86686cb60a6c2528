"""Path normalization and tokenization shared by both classifier passes.

Everything here is a pure function of its input: the same path or text
always produces the same cleaned string and the same token sets, which is
what allows the rule pass to run on many threads and the similarity index
to tokenize queries exactly the way it tokenized its documents.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from . import tuning
from .rules import STOPWORDS, SYNONYMS

# Reserved marker for character n-grams.  Word tokens are purely
# alphanumeric, so the two feature namespaces can never overlap.
NGRAM_PREFIX = "#"

_SEPARATOR_RE = re.compile(r"[\\/]+")
_PUNCT_RE = re.compile(r"[_\-,.()]")
_SPACE_RE = re.compile(r"\s+")
_WORD_SPLIT_RE = re.compile(r"[\W_]+")

_TYPOGRAPHIC = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "‚": "'",
        "‛": "'",
        "“": '"',
        "”": '"',
        "„": '"',
        "‐": "-",
        "‑": "-",
        "‒": "-",
        "–": "-",
        "—": "-",
        "―": "-",
        "−": "-",
    }
)


def split_path(path: object) -> Tuple[List[str], str]:
    """Return ``(parent_segments, filename_stem)`` for a path.

    Both ``/`` and ``\\`` count as separators so Windows paths split the
    same way on every platform.  Blank segments are dropped.
    """
    try:
        text = os.fspath(path) if path is not None else ""
    except TypeError:
        text = str(path)
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")

    parts = [p for p in _SEPARATOR_RE.split(text) if p.strip()]
    if not parts:
        return [], ""
    stem, _ext = os.path.splitext(parts[-1])
    return parts[:-1], stem


def clean_text(text: str) -> str:
    """Lowercase, map typographic punctuation to ASCII and collapse separators."""
    lowered = (text or "").lower().translate(_TYPOGRAPHIC)
    spaced = _PUNCT_RE.sub(" ", lowered)
    return _SPACE_RE.sub(" ", spaced).strip()


@dataclass(frozen=True)
class ClassifiableText:
    """Cleaned folder + filename text for one file."""

    parents: Tuple[str, ...]
    stem: str
    text: str

    @classmethod
    def from_path(cls, path: object, levels: Optional[int] = None) -> "ClassifiableText":
        parents, stem = split_path(path)
        depth = int(levels if levels is not None else tuning.PARENT_FOLDER_LEVELS_TO_SCAN)
        recent = parents[-depth:] if depth > 0 else []
        text = clean_text(" ".join([*recent, stem]))
        return cls(parents=tuple(parents), stem=stem, text=text)

    @property
    def last_folder(self) -> str:
        return self.parents[-1].strip() if self.parents else ""


def normalize(path: object) -> str:
    """Return the cleaned classifiable text for a path."""
    return ClassifiableText.from_path(path).text


def _is_bad_token(token: str) -> bool:
    if len(token) <= 2:
        return True
    if token in STOPWORDS:
        return True
    digits = sum(1 for ch in token if ch.isdigit())
    return digits >= len(token) - 1


def word_tokens(text: str) -> List[str]:
    """Word tokens in order of appearance, repetitions kept."""
    out: List[str] = []
    for raw in _WORD_SPLIT_RE.split(clean_text(text)):
        if not raw or _is_bad_token(raw):
            continue
        token = SYNONYMS.get(raw, raw)
        if token != raw and _is_bad_token(token):
            continue
        out.append(token)
    return out


def char_ngrams(text: str, min_n: Optional[int] = None, max_n: Optional[int] = None) -> List[str]:
    """Prefixed character n-grams over the cleaned text, repetitions kept."""
    lo = max(1, int(min_n if min_n is not None else tuning.NGRAM_MIN))
    hi = int(max_n if max_n is not None else tuning.NGRAM_MAX)
    joined = clean_text(text).replace(" ", "_")
    out: List[str] = []
    for n in range(lo, hi + 1):
        for i in range(len(joined) - n + 1):
            out.append(NGRAM_PREFIX + joined[i : i + n])
    return out


def tokenize_words(text: str) -> Set[str]:
    return set(word_tokens(text))


def tokenize_char_ngrams(text: str, min_n: Optional[int] = None, max_n: Optional[int] = None) -> Set[str]:
    return set(char_ngrams(text, min_n, max_n))


def extract_terms(text: str) -> List[str]:
    """All features for the vector model: word tokens followed by n-grams."""
    return word_tokens(text) + char_ngrams(text)
