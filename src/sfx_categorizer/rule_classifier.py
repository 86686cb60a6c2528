"""Deterministic naming-convention classifier (first pass).

:class:`RuleBasedClassifier` labels a single file from its path alone.
It runs the prefix table first; a prefix hit is returned immediately with
a fixed confidence.  Otherwise vendor regexes, phrases and word tokens
add weighted votes to ``(tier1, tier2)`` buckets and the winning score is
mapped onto a stepped confidence, penalised when the runner-up is close.
Files no rule recognises fall back to their parent folder under
``Unsorted``.

The classifier holds only read-only tables, so a single instance can be
shared by any number of worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from . import tuning
from .rules import (
    PHRASE_RULES,
    PREFIX_RULES,
    TOKEN_RULES,
    VENDOR_RULES,
    PhraseRule,
    TokenRule,
    VendorRule,
)
from .tokenizer import ClassifiableText, clean_text, tokenize_words

UNSORTED = "Unsorted"
GENERAL = "General"


def _clamp(val: float, min_val: float, max_val: float) -> float:
    """Clamp val between min_val and max_val."""
    return max(min_val, min(max_val, val))


@dataclass(frozen=True)
class Classification:
    """A two-level category with a confidence in [0, 1]."""

    tier1: str
    tier2: str
    confidence: float

    @property
    def category(self) -> str:
        """Effective category string (``tier1`` or ``tier1/tier2``)."""
        tier2 = (self.tier2 or "").strip()
        if not tier2 or tier2 == GENERAL:
            return self.tier1
        return f"{self.tier1}/{tier2}"

    @property
    def is_unsorted(self) -> bool:
        return self.tier1 == UNSORTED


def split_category(category: str) -> Tuple[str, str]:
    """Split ``"Tier1/Tier2/..."`` into ``(tier1, rest)``; rest defaults to General."""
    parts = [p.strip() for p in (category or "").split("/") if p.strip()]
    if not parts:
        return UNSORTED, UNSORTED
    tier2 = "/".join(parts[1:]) or GENERAL
    return parts[0], tier2


def prefix_token(stem: str) -> str:
    """Return the filename segment before the first underscore (or the whole stem)."""
    underscore = stem.find("_")
    if underscore > 0:
        return stem[:underscore]
    return stem


@dataclass
class RuleBasedClassifier:
    """Table-driven single-pass classifier for one file path."""

    prefix_rules: Mapping[str, Tuple[str, str]] = field(default_factory=lambda: PREFIX_RULES)
    vendor_rules: Sequence[VendorRule] = field(default_factory=lambda: VENDOR_RULES)
    phrase_rules: Sequence[PhraseRule] = field(default_factory=lambda: PHRASE_RULES)
    token_rules: Sequence[TokenRule] = field(default_factory=lambda: TOKEN_RULES)
    # Additive user keywords: {"Tier1/Tier2": ["phrase", ...]}
    category_hints: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._prefix_lookup: Dict[str, Tuple[str, str]] = {
            str(token).lower(): pair for token, pair in self.prefix_rules.items()
        }
        self._vendor_rules: Tuple[VendorRule, ...] = tuple(self.vendor_rules)
        self._phrase_rules: Tuple[PhraseRule, ...] = tuple(self.phrase_rules) + self._hint_rules(self.category_hints)
        self._token_rules: Tuple[TokenRule, ...] = tuple(self.token_rules)

    def _hint_rules(self, hints: Any) -> Tuple[PhraseRule, ...]:
        """Turn user category hints into phrase rules and ignore malformed entries."""
        if not isinstance(hints, dict):
            return ()
        rules: List[PhraseRule] = []
        for category, values in hints.items():
            if not isinstance(category, str) or not category.strip():
                continue
            if not isinstance(values, list):
                continue
            tier1, tier2 = split_category(category)
            if tier1 == UNSORTED:
                continue
            seen: set[str] = set()
            phrases: List[str] = []
            for value in values:
                if not isinstance(value, str):
                    continue
                phrase = clean_text(value)
                if not phrase or phrase in seen:
                    continue
                seen.add(phrase)
                phrases.append(phrase)
            if phrases:
                rules.append(PhraseRule(tier1, tier2, tuple(phrases), float(tuning.USER_HINT_WEIGHT)))
        return tuple(rules)

    # ------------------------------------------------------------------
    # Prefix pass
    def _lookup_prefix(self, token: str) -> Optional[Tuple[Tuple[str, str], str]]:
        """Exact lookup, then progressively shorter prefixes down to the minimum length."""
        key = token.lower()
        hit = self._prefix_lookup.get(key)
        if hit is not None:
            return hit, key
        for length in range(len(key) - 1, int(tuning.PREFIX_MIN_LENGTH) - 1, -1):
            sub = key[:length]
            hit = self._prefix_lookup.get(sub)
            if hit is not None:
                return hit, sub
        return None

    # ------------------------------------------------------------------
    # Scoring helpers
    def _score_to_confidence(self, best: float, runner_up: float) -> float:
        confidence = float(tuning.CONFIDENCE_FLOOR_STEP)
        for threshold, value in tuning.CONFIDENCE_STEPS:
            if best >= threshold:
                confidence = float(value)
                break

        margin = best - runner_up
        if margin <= tuning.MARGIN_PENALTIES["tight_margin"]:
            confidence -= tuning.MARGIN_PENALTIES["tight_penalty"]
        elif margin <= tuning.MARGIN_PENALTIES["narrow_margin"]:
            confidence -= tuning.MARGIN_PENALTIES["narrow_penalty"]

        return _clamp(confidence, tuning.SCORED_CONFIDENCE_MIN, tuning.SCORED_CONFIDENCE_MAX)

    def _classify(self, path: object) -> Tuple[Classification, Dict[str, Any]]:
        """Return (classification, reason_dict)."""
        ctext = ClassifiableText.from_path(path)
        token = prefix_token(ctext.stem)
        reason: Dict[str, Any] = {
            "text": ctext.text,
            "prefix_token": token,
            "stage": "",
            "matches": [],
            "scores": {},
            "top_candidates": [],
            "margin": 0.0,
        }

        prefix_hit = self._lookup_prefix(token)
        if prefix_hit is not None:
            (tier1, tier2), matched = prefix_hit
            reason["stage"] = "prefix"
            reason["matches"].append(
                {"stage": "prefix", "category": f"{tier1}/{tier2}", "pattern": matched, "added": 0.0}
            )
            return Classification(tier1, tier2, _clamp(float(tuning.PREFIX_CONFIDENCE), 0.0, 1.0)), reason

        scores: Dict[Tuple[str, str], float] = {}
        matches: List[Dict[str, Any]] = reason["matches"]

        def _add(stage: str, tier1: str, tier2: str, pattern: str, amount: float) -> None:
            bucket = (tier1, tier2)
            scores[bucket] = scores.get(bucket, 0.0) + float(amount)
            matches.append(
                {"stage": stage, "category": f"{tier1}/{tier2}", "pattern": pattern, "added": float(amount)}
            )

        for vendor in self._vendor_rules:
            if vendor.pattern.match(ctext.stem):
                _add("vendor", vendor.tier1, vendor.tier2, vendor.pattern.pattern, vendor.weight)

        for phrase_rule in self._phrase_rules:
            for phrase in phrase_rule.phrases:
                if phrase and phrase in ctext.text:
                    _add("phrase", phrase_rule.tier1, phrase_rule.tier2, phrase, phrase_rule.weight_per_hit)

        words = tokenize_words(ctext.text)
        for token_rule in self._token_rules:
            hit_tokens = [t for t in token_rule.tokens if t in words]
            if hit_tokens:
                _add(
                    "token",
                    token_rule.tier1,
                    token_rule.tier2,
                    ",".join(hit_tokens),
                    len(hit_tokens) * token_rule.weight_per_hit,
                )

        positive = [(bucket, score) for bucket, score in scores.items() if score > 0]
        if positive:
            # Stable sort: equal scores keep the order in which buckets first scored.
            ranked = sorted(positive, key=lambda kv: kv[1], reverse=True)
            (tier1, tier2), best = ranked[0]
            runner_up = ranked[1][1] if len(ranked) > 1 else 0.0
            reason["stage"] = "scored"
            reason["scores"] = {f"{t1}/{t2}": float(s) for (t1, t2), s in ranked}
            reason["top_candidates"] = [{"category": f"{t1}/{t2}", "score": float(s)} for (t1, t2), s in ranked[:3]]
            reason["margin"] = float(best - runner_up)
            return Classification(tier1, tier2, self._score_to_confidence(best, runner_up)), reason

        last_folder = ctext.last_folder
        reason["stage"] = "fallback"
        if last_folder:
            confidence = _clamp(float(tuning.FOLDER_FALLBACK_CONFIDENCE), 0.0, 1.0)
            return Classification(UNSORTED, last_folder, confidence), reason
        return Classification(UNSORTED, UNSORTED, _clamp(float(tuning.EMPTY_FALLBACK_CONFIDENCE), 0.0, 1.0)), reason

    # ------------------------------------------------------------------
    # Public API
    def infer(self, path: object) -> Classification:
        """Classify one path.  Never raises; worst case is a low-confidence fallback."""
        classification, _reason = self._classify(path)
        return classification

    def explain(self, path: object) -> Dict[str, Any]:
        """Return the classification together with every rule that fired."""
        classification, reason = self._classify(path)
        return {
            "path": str(path),
            "tier1": classification.tier1,
            "tier2": classification.tier2,
            "category": classification.category,
            "confidence": float(classification.confidence),
            **reason,
        }
