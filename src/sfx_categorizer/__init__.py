"""SFX categorizer package

This package contains the two-pass classification engine, its services
and a command-line interface for organising large sound-effects
libraries into ``Tier1/Tier2`` categories.  Public classes are
re-exported here for convenience.
"""

from .engine import CategorizerEngine, SoundItem  # noqa: F401
from .rule_classifier import Classification, RuleBasedClassifier  # noqa: F401
from .similarity import SimilarityClassifier, SimilarityIndex, TfidfVector  # noqa: F401
from .config_service import ConfigService  # noqa: F401
from .overrides_service import OverridesStore  # noqa: F401
from .category_tree import CategoryNode, build_category_tree  # noqa: F401

__all__ = [
    "CategorizerEngine",
    "SoundItem",
    "Classification",
    "RuleBasedClassifier",
    "SimilarityClassifier",
    "SimilarityIndex",
    "TfidfVector",
    "ConfigService",
    "OverridesStore",
    "CategoryNode",
    "build_category_tree",
]
