"""
Scenario tests for the deterministic rule pass.

Covers the prefix table (exact and progressive shortening), additive
vendor/phrase/token scoring with margin penalties, the folder fallback,
user category hints and the explain() report.
"""

import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sfx_categorizer import tuning
from sfx_categorizer.rules import PREFIX_RULES, VENDOR_RULES
from sfx_categorizer.rule_classifier import (
    Classification,
    RuleBasedClassifier,
    prefix_token,
    split_category,
)


@pytest.fixture
def classifier() -> RuleBasedClassifier:
    return RuleBasedClassifier()


# ============================================================================
# PREFIX PASS
# ============================================================================

def test_prefix_hit_urban_ambience(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("AMBUrbn_NightTraffic_01.wav")
    assert result == Classification("Ambient", "Ambience/Urban", 0.92)


@pytest.mark.parametrize(
    "name",
    [
        "AMBUrbn_anything.wav",
        "AMBUrbn_Gunshot_Rifle_Footsteps.wav",
        "/deep/folder/Weapons/AMBUrbn_x.flac",
    ],
)
def test_prefix_confidence_ignores_suffix(classifier: RuleBasedClassifier, name: str) -> None:
    result = classifier.infer(name)
    assert (result.tier1, result.tier2) == ("Ambient", "Ambience/Urban")
    assert result.confidence == pytest.approx(0.92)


def test_prefix_lookup_is_case_insensitive(classifier: RuleBasedClassifier) -> None:
    upper = classifier.infer("AMB_Wind.wav")
    lower = classifier.infer("amb_wind.wav")
    assert upper == lower
    assert upper == Classification("Ambient", "Ambience", 0.92)


def test_prefix_progressive_shortening_prefers_longest(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("AMBUrbnXYZ_foo.wav")
    assert (result.tier1, result.tier2) == ("Ambient", "Ambience/Urban")

    result = classifier.infer("RAINVegeHeavy_01.wav")
    assert (result.tier1, result.tier2) == ("Weather", "Rain")


def test_prefix_token_rules() -> None:
    assert prefix_token("AMBUrbn_NightTraffic_01") == "AMBUrbn"
    assert prefix_token("NoUnderscore") == "NoUnderscore"
    # A leading underscore does not start a prefix token
    assert prefix_token("_AMBUrbn") == "_AMBUrbn"


def test_leading_underscore_is_not_a_prefix_hit(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("_AMBUrbn.wav")
    assert result.confidence != pytest.approx(0.92)
    assert result == Classification("Unsorted", "Unsorted", 0.0)


# ============================================================================
# SCORED PASS
# ============================================================================

def test_scored_path_combines_vendor_phrase_and_tokens(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("/SFX/Foley/Footsteps_Gravel_Run_01.wav")
    # vendor 35 + phrase 25 + tokens 3*13 = 99 -> top step, no penalty
    assert (result.tier1, result.tier2) == ("Foley", "Footsteps")
    assert result.confidence == pytest.approx(0.95)


def test_tie_goes_to_first_bucket_and_is_penalised(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("x/thing_door_car.wav")
    # "car" (Vehicles/Cars) and "door" (Doors) both score 14; Vehicles/Cars is earlier in the table
    assert (result.tier1, result.tier2) == ("Vehicles", "Cars")
    assert result.confidence == pytest.approx(0.45 - 0.18)


def test_user_category_hints_extend_phrases() -> None:
    classifier = RuleBasedClassifier(category_hints={"Gore/Squish": ["Squelch", "squelch", 7], "": ["x"], "Bad": "nope"})
    result = classifier.infer("/a/wet_squelch_07.wav")
    assert (result.tier1, result.tier2) == ("Gore", "Squish")
    assert result.confidence == pytest.approx(0.45)


# ============================================================================
# FALLBACK
# ============================================================================

def test_unknown_file_falls_back_to_parent_folder(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("/lib/Explosions/Big/Xk92_misc.wav")
    assert result == Classification("Unsorted", "Big", 0.15)


def test_windows_paths_fall_back_the_same_way(classifier: RuleBasedClassifier) -> None:
    result = classifier.infer("C:\\lib\\Explosions\\Big\\Xk92_misc.wav")
    assert result == Classification("Unsorted", "Big", 0.15)


def test_no_parent_folder_gives_zero_confidence(classifier: RuleBasedClassifier) -> None:
    assert classifier.infer("Xk92_misc.wav") == Classification("Unsorted", "Unsorted", 0.0)
    assert classifier.infer("") == Classification("Unsorted", "Unsorted", 0.0)


def test_unicode_names_do_not_fail(classifier: RuleBasedClassifier) -> None:
    assert classifier.infer("Été/Pluie_forte_01.wav") == Classification("Unsorted", "Été", 0.15)


@pytest.mark.parametrize(
    "path",
    [
        "",
        "/",
        "a",
        "_",
        "___.wav",
        "AMBUrbn_NightTraffic_01.wav",
        "/lib/Explosions/Big/Xk92_misc.wav",
        "Weapons/Guns/gunshot_rifle_close_01.wav",
        "x/thing_door_car.wav",
        "C:\\SFX\\Rain\\heavy rain on roof.wav",
        "\u00e9\u00e8\u00ea/\u4e2d\u6587_\u58f0\u97f3.wav",
        "whoosh_swoosh_swish_riser_whoosh.wav",
    ],
)
def test_confidence_always_within_unit_interval(classifier: RuleBasedClassifier, path: str) -> None:
    result = classifier.infer(path)
    assert 0.0 <= result.confidence <= 1.0, f"{path!r} -> {result}"


def test_scored_confidence_is_clamped(classifier: RuleBasedClassifier) -> None:
    for path in ["Weapons/Guns/gunshot_rifle_close_01.wav", "x/thing_door_car.wav", "/SFX/Foley/Footsteps_Gravel_Run_01.wav"]:
        result = classifier.infer(path)
        assert 0.10 <= result.confidence <= 0.98, f"{path!r} -> {result}"


# ============================================================================
# EXPLAIN / CATEGORY HELPERS
# ============================================================================

def test_explain_lists_fired_rules(classifier: RuleBasedClassifier) -> None:
    report = classifier.explain("/SFX/Foley/Footsteps_Gravel_Run_01.wav")
    assert report["stage"] == "scored"
    assert report["category"] == "Foley/Footsteps"
    assert report["top_candidates"][0] == {"category": "Foley/Footsteps", "score": 99.0}
    assert report["margin"] == pytest.approx(88.0)
    stages = {m["stage"] for m in report["matches"]}
    assert stages == {"vendor", "phrase", "token"}


def test_explain_prefix_and_fallback_stages(classifier: RuleBasedClassifier) -> None:
    assert classifier.explain("AMBUrbn_NightTraffic_01.wav")["stage"] == "prefix"
    fallback = classifier.explain("/lib/Explosions/Big/Xk92_misc.wav")
    assert fallback["stage"] == "fallback"
    assert fallback["matches"] == []


def test_category_property() -> None:
    assert Classification("UI", "General", 0.5).category == "UI"
    assert Classification("UI", "", 0.5).category == "UI"
    assert Classification("Ambient", "Ambience/Urban", 0.92).category == "Ambient/Ambience/Urban"


def test_split_category() -> None:
    assert split_category("Weapons/Guns/Rifle") == ("Weapons", "Guns/Rifle")
    assert split_category("Doors") == ("Doors", "General")
    assert split_category(" / ") == ("Unsorted", "Unsorted")


@pytest.mark.parametrize(
    "name, value, path",
    [
        ("PREFIX_CONFIDENCE", 1.7, "AMBUrbn_NightTraffic_01.wav"),
        ("FOLDER_FALLBACK_CONFIDENCE", -0.4, "/lib/Explosions/Big/Xk92_misc.wav"),
        ("EMPTY_FALLBACK_CONFIDENCE", 3.0, "Xk92.wav"),
    ],
)
def test_confidence_stays_in_unit_interval_with_extreme_tuning(monkeypatch, name, value, path) -> None:
    monkeypatch.setattr(tuning, name, value)
    result = RuleBasedClassifier().infer(path)
    assert 0.0 <= result.confidence <= 1.0, f"{name}={value} leaked into confidence {result.confidence}"


# ============================================================================
# VENDOR TABLE
# ============================================================================

def test_vendor_rules_skip_stems_claimed_by_prefix_table() -> None:
    for key in PREFIX_RULES:
        stem = f"{key.lower()}_01"
        hits = [rule.pattern.pattern for rule in VENDOR_RULES if rule.pattern.search(stem)]
        assert hits == [], f"{stem} is resolved by the prefix table but also matches {hits}"


@pytest.mark.parametrize(
    "path, category",
    [
        ("/lib/handgun_close_01.wav", "Weapons/Guns"),
        ("/lib/swoosh_fast_01.wav", "Design/Whooshes"),
        ("/lib/downpour_roof_01.wav", "Weather/Rain"),
        ("/lib/gate_metal_01.wav", "Doors/General"),
        ("/lib/ui-click 01.wav", "UI/General"),
    ],
)
def test_vendor_rules_fire_when_prefix_misses(classifier: RuleBasedClassifier, path: str, category: str) -> None:
    report = classifier.explain(path)
    assert report["stage"] == "scored"
    vendor_hits = [m["category"] for m in report["matches"] if m["stage"] == "vendor"]
    assert vendor_hits == [category]
