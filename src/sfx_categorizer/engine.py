"""Two-pass categorization engine.

The :class:`CategorizerEngine` scans a sound-effects library, labels
every audio file and returns a JSON-serialisable report.

Pipeline per run:

1. Enumerate audio files under the library root (or take explicit paths).
2. Manual overrides win outright (confidence 1.0, source ``override``).
3. Everything else goes through :class:`RuleBasedClassifier` on a thread
   pool; results are reassembled in input order.
4. Confidently labelled items form a training corpus.  When it is large
   enough, a :class:`SimilarityIndex` is built from it and every
   ``Unsorted`` or low-confidence item (never an overridden one) is
   re-queried through :class:`SimilarityClassifier`.
5. The report carries per-item entries, counts, similarity-pass stats
   and the category tree.

The engine never moves, renames or writes audio files.  Cancellation is
cooperative: ``should_cancel`` is polled between chunks of
``tuning.CHUNK_SIZE`` items.
"""

from __future__ import annotations

import datetime
import json
import os
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypedDict, TypeVar

from . import tuning
from .category_tree import build_category_tree, category_options
from .overrides_service import OVERRIDES_FILENAME, OverridesStore
from .rule_classifier import UNSORTED, Classification, RuleBasedClassifier
from .similarity import SimilarityClassifier, SimilarityIndex
from .tokenizer import normalize

AUDIO_EXTENSIONS = frozenset({".wav", ".mp3", ".flac", ".ogg", ".aiff", ".aif", ".aac", ".m4a"})
UNCATEGORIZED_VENDOR = "(Uncategorized)"

SOURCE_OVERRIDE = "override"
SOURCE_RULES = "rules"
SOURCE_SIMILARITY = "similarity"
SOURCE_FALLBACK = "fallback"

T = TypeVar("T")
R = TypeVar("R")


class ItemEntry(TypedDict, total=False):
    path: str
    key: str
    vendor: str
    category: str
    confidence: float
    source: str
    manual_category: Optional[str]
    rule_category: str
    rule_confidence: float
    low_confidence: bool
    error: str


class SimilarityStats(TypedDict, total=False):
    enabled: bool
    skipped: bool
    skip_reason: str
    corpus_size: int
    min_corpus_size: int
    targets: int
    updated: int
    cancelled: bool
    index: Dict[str, int]


def _clamp(val: float, min_val: float, max_val: float) -> float:
    """Clamp val between min_val and max_val."""
    return max(min_val, min(max_val, val))


@dataclass
class SoundItem:
    """One audio file and its classification state."""

    path: Path
    key: str
    vendor: str
    # Path text the classifiers see: "<root name>/<key>" inside the library
    label_path: str = ""
    rule: Optional[Classification] = None
    smart_category: Optional[str] = None
    smart_confidence: float = 0.0
    source: str = SOURCE_FALLBACK
    manual_category: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_manual(self) -> bool:
        return bool(self.manual_category)

    @property
    def effective_category(self) -> str:
        return self.manual_category or self.smart_category or UNSORTED

    @property
    def effective_confidence(self) -> float:
        return 1.0 if self.is_manual else float(self.smart_confidence)

    @property
    def text(self) -> str:
        return normalize(self.label_path or str(self.path))

    def to_entry(self) -> ItemEntry:
        entry: ItemEntry = {
            "path": str(self.path),
            "key": self.key,
            "vendor": self.vendor,
            "category": self.effective_category,
            "confidence": round(self.effective_confidence, 4),
            "source": self.source,
            "manual_category": self.manual_category,
            "low_confidence": (not self.is_manual) and self.effective_confidence < tuning.LOW_CONFIDENCE_THRESHOLD,
        }
        if self.rule is not None:
            entry["rule_category"] = self.rule.category
            entry["rule_confidence"] = round(float(self.rule.confidence), 4)
        if self.error:
            entry["error"] = self.error
        return entry


@dataclass
class CategorizerEngine:
    """Scan a library and classify each file with overrides, rules and similarity."""

    library_root: Path
    config: Dict[str, Any] = field(default_factory=dict)
    overrides: Optional[OverridesStore] = None
    rule_classifier: Optional[RuleBasedClassifier] = None
    similarity_classifier: Optional[SimilarityClassifier] = None
    min_corpus_size: Optional[int] = None
    ignore_rules: Iterable[str] = field(default_factory=lambda: ["__MACOSX", ".DS_Store", "._"])

    _tuning_loaded: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        self.library_root = Path(self.library_root)
        if not isinstance(self.config, dict):
            self.config = {}
        # Tuning first: classifier defaults below read from it.
        self._load_tuning_overrides()
        cfg = self.config
        if self.rule_classifier is None:
            self.rule_classifier = RuleBasedClassifier(category_hints=cfg.get("category_hints") or {})
        if self.similarity_classifier is None:
            self.similarity_classifier = SimilarityClassifier(
                top_k=int(cfg.get("top_k", tuning.TOP_K)),
                min_similarity=float(cfg.get("min_similarity", tuning.MIN_SIMILARITY)),
                min_centroid_similarity=float(cfg.get("min_centroid_similarity", tuning.MIN_CENTROID_SIMILARITY)),
            )
        if self.min_corpus_size is None:
            self.min_corpus_size = int(cfg.get("min_corpus_size", tuning.MIN_CORPUS_SIZE))
        if self.overrides is None:
            self.overrides = OverridesStore(self.library_root)

    def _load_tuning_overrides(self) -> None:
        """Load overrides from tuning.json (config dir first, then library root).

        Tuning always starts from the shipped defaults so one library's
        tuning.json never carries over to the next engine.
        """
        if self._tuning_loaded:
            return

        tuning.reset_defaults()
        tuning_paths: List[Path] = []
        config_dir = self.config.get("config_dir")
        if config_dir:
            tuning_paths.append(Path(config_dir) / "tuning.json")
        tuning_path = self.config.get("tuning_path")
        if tuning_path:
            tuning_path_obj = Path(tuning_path)
            tuning_paths.append(
                tuning_path_obj if tuning_path_obj.suffix.lower() == ".json" else (tuning_path_obj / "tuning.json")
            )
        tuning_paths.append(self.library_root / "tuning.json")

        for path in tuning_paths:
            try:
                if path.exists():
                    data = json.loads(path.read_text(encoding="utf-8"))
                    if isinstance(data, dict):
                        tuning.apply_overrides(data)
                    self._tuning_loaded = True
                    return
            except (OSError, ValueError) as exc:
                print(f"Warning: ignoring tuning file {path}: {exc}")
                continue

    # ------------------------------------------------------------------
    # Discovery / ignore logic
    def _should_ignore(self, name: str) -> bool:
        if name == OVERRIDES_FILENAME:
            return True
        for rule in self.ignore_rules:
            if name == rule or name.startswith(rule):
                return True
        return False

    def _collect_audio_files(self) -> List[Path]:
        """Collect audio files under the library root in deterministic order."""
        if not self.library_root.is_dir():
            return []
        found: List[Path] = []
        for root, dirs, files in os.walk(self.library_root):
            dirs[:] = sorted([d for d in dirs if not self._should_ignore(d)])
            for fname in sorted(files):
                if self._should_ignore(fname):
                    continue
                if os.path.splitext(fname)[1].lower() not in AUDIO_EXTENSIONS:
                    continue
                found.append(Path(root) / fname)
        return found

    def override_key(self, path: Path) -> str:
        """Root-relative, ``/``-separated key for a file (absolute path when outside the root)."""
        path = Path(path)
        try:
            return path.resolve().relative_to(self.library_root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    def _make_item(self, path: Path) -> SoundItem:
        key = self.override_key(path)
        if os.path.isabs(key):
            vendor = UNCATEGORIZED_VENDOR
            label_path = key
        else:
            parts = [p for p in key.split("/") if p.strip()]
            vendor = parts[0] if len(parts) > 1 else UNCATEGORIZED_VENDOR
            label_path = f"{self.library_root.resolve().name}/{key}"
        return SoundItem(
            path=Path(path),
            key=key,
            vendor=vendor,
            label_path=label_path,
            manual_category=self.overrides.get_manual(key),
        )

    # ------------------------------------------------------------------
    # Classification
    def _classify_item(self, item: SoundItem) -> SoundItem:
        """Apply override precedence, otherwise the rule pass.  Never raises."""
        if item.is_manual:
            item.smart_category = item.manual_category
            item.smart_confidence = 1.0
            item.source = SOURCE_OVERRIDE
            return item
        try:
            result = self.rule_classifier.infer(item.label_path or item.path)
        except Exception as exc:
            item.error = f"{type(exc).__name__}: {exc}"
            result = Classification(UNSORTED, UNSORTED, float(tuning.EMPTY_FALLBACK_CONFIDENCE))
        item.rule = result
        item.smart_category = result.category
        item.smart_confidence = float(result.confidence)
        item.source = SOURCE_FALLBACK if result.is_unsorted else SOURCE_RULES
        return item

    def _map_in_order(self, func: Callable[[T], R], values: Sequence[T], workers: int) -> List[R]:
        """Apply ``func`` to every value, in parallel when requested, preserving input order."""
        worker_count = max(1, int(workers))
        if worker_count <= 1 or len(values) <= 1:
            return [func(v) for v in values]

        results: List[Optional[R]] = [None] * len(values)
        with ThreadPoolExecutor(max_workers=worker_count) as executor:
            futures = {executor.submit(func, value): idx for idx, value in enumerate(values)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return results  # type: ignore[return-value]

    def classify_paths(self, paths: Sequence[Path], workers: int = 1) -> List[SoundItem]:
        """Run overrides and the rule pass over ``paths``; output order matches input."""
        items = [self._make_item(Path(p)) for p in paths]
        return self._map_in_order(self._classify_item, items, workers)

    def _is_training_item(self, item: SoundItem) -> bool:
        if item.effective_category.startswith(UNSORTED):
            return False
        return item.effective_confidence >= tuning.TRAINING_MIN_CONFIDENCE

    def _is_similarity_target(self, item: SoundItem) -> bool:
        if item.is_manual:
            return False
        return item.effective_category.startswith(UNSORTED) or item.smart_confidence < tuning.LOW_CONFIDENCE_THRESHOLD

    def run_similarity_pass(
        self,
        items: Sequence[SoundItem],
        workers: int = 1,
        should_cancel: Optional[Callable[[], bool]] = None,
        log: Optional[Callable[[str], None]] = None,
    ) -> SimilarityStats:
        """Re-label unresolved items by similarity to the confidently labelled ones (in place)."""
        emit = log or (lambda _msg: None)
        corpus = [(item.text, item.effective_category) for item in items if self._is_training_item(item)]
        targets = [item for item in items if self._is_similarity_target(item)]
        stats: SimilarityStats = {
            "enabled": True,
            "skipped": False,
            "corpus_size": len(corpus),
            "min_corpus_size": int(self.min_corpus_size),
            "targets": len(targets),
            "updated": 0,
            "cancelled": False,
        }

        if len(corpus) < int(self.min_corpus_size):
            stats["skipped"] = True
            stats["skip_reason"] = "corpus_too_small"
            emit(f"Similarity pass skipped: corpus={len(corpus)} < min={self.min_corpus_size}")
            return stats
        if not targets:
            stats["skipped"] = True
            stats["skip_reason"] = "no_targets"
            emit("Similarity pass skipped: nothing to re-label")
            return stats

        index = SimilarityIndex.build(corpus)
        stats["index"] = index.stats()
        emit(
            f"Similarity index: docs={index.size} vocab={len(index.idf)} "
            f"categories={len(index.categories)} targets={len(targets)}"
        )

        classifier = self.similarity_classifier
        chunk_size = max(1, int(tuning.CHUNK_SIZE))
        for start in range(0, len(targets), chunk_size):
            if should_cancel is not None and should_cancel():
                stats["cancelled"] = True
                emit("Similarity pass cancelled")
                break
            chunk = targets[start : start + chunk_size]
            answers = self._map_in_order(lambda it: classifier.infer(it.text, index), chunk, workers)
            for item, (category, sim) in zip(chunk, answers):
                if category is None:
                    continue
                item.smart_category = category
                item.smart_confidence = _clamp(
                    sim * tuning.SIMILARITY_CONFIDENCE_SCALE,
                    tuning.SIMILARITY_CONFIDENCE_MIN,
                    tuning.SIMILARITY_CONFIDENCE_MAX,
                )
                item.source = SOURCE_SIMILARITY
                stats["updated"] += 1
            emit(f"Similarity progress: {min(start + chunk_size, len(targets))}/{len(targets)}")
        return stats

    # ------------------------------------------------------------------
    # Public API
    def run(
        self,
        paths: Optional[Sequence[Path]] = None,
        workers: Optional[int] = None,
        similarity_enabled: Optional[bool] = None,
        log_callback: Optional[Callable[[str], None]] = None,
        log_to_console: bool = True,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, Any]:
        """Execute a run and return the report dict.

        ``paths`` defaults to every audio file under the library root.
        ``workers`` and ``similarity_enabled`` default to the config
        values, then to the tuning defaults.
        """
        cfg = self.config
        worker_count = max(
            1,
            int(workers if workers is not None else cfg.get("workers", tuning.PARALLEL_WORKERS_DEFAULT) or 1),
        )
        if similarity_enabled is None:
            similarity_enabled = bool(cfg.get("similarity_enabled", True))

        def _emit_log(msg: str) -> None:
            if log_to_console:
                print(msg)
            if log_callback is not None:
                try:
                    log_callback(msg)
                except Exception:
                    pass

        def _cancelled() -> bool:
            if should_cancel is None:
                return False
            try:
                return bool(should_cancel())
            except Exception:
                return False

        run_id = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_") + uuid.uuid4().hex[:8]
        report: Dict[str, Any] = {
            "run_id": run_id,
            "timestamp": datetime.datetime.now().isoformat(),
            "library_root": str(self.library_root.resolve()),
            "workers": worker_count,
            "files_found": 0,
            "files_processed": 0,
            "overridden": 0,
            "classified_by_rules": 0,
            "classified_by_similarity": 0,
            "unsorted": 0,
            "low_confidence": 0,
            "failed": 0,
            "cancelled": False,
            "similarity": {"enabled": bool(similarity_enabled), "skipped": True},
            "items": [],
        }

        file_paths = [Path(p) for p in paths] if paths is not None else self._collect_audio_files()
        report["files_found"] = len(file_paths)
        _emit_log(f"SFX categorizer run_id={run_id}")
        _emit_log(f"Library root: {self.library_root}")
        _emit_log(f"Audio files found: {len(file_paths)}")

        items: List[SoundItem] = []
        chunk_size = max(1, int(tuning.CHUNK_SIZE))
        for start in range(0, len(file_paths), chunk_size):
            if _cancelled():
                report["cancelled"] = True
                _emit_log("Run cancelled during rule pass")
                break
            chunk = file_paths[start : start + chunk_size]
            items.extend(self.classify_paths(chunk, workers=worker_count))
            _emit_log(f"Rule pass progress: {len(items)}/{len(file_paths)}")

        if similarity_enabled and not report["cancelled"]:
            stats = self.run_similarity_pass(items, workers=worker_count, should_cancel=_cancelled, log=_emit_log)
            report["similarity"] = stats
            report["cancelled"] = bool(stats.get("cancelled", False))
        elif not similarity_enabled:
            _emit_log("Similarity pass disabled")

        for item in items:
            entry = item.to_entry()
            report["items"].append(entry)
            report["files_processed"] += 1
            if item.error:
                report["failed"] += 1
            if item.source == SOURCE_OVERRIDE:
                report["overridden"] += 1
            elif item.source == SOURCE_RULES:
                report["classified_by_rules"] += 1
            elif item.source == SOURCE_SIMILARITY:
                report["classified_by_similarity"] += 1
            if item.effective_category.startswith(UNSORTED):
                report["unsorted"] += 1
            if entry.get("low_confidence"):
                report["low_confidence"] += 1

        tree = build_category_tree(item.effective_category for item in items)
        report["tree"] = tree.to_dict()
        report["categories"] = category_options(tree)

        _emit_log(
            f"Done. processed={report['files_processed']} "
            f"rules={report['classified_by_rules']} similarity={report['classified_by_similarity']} "
            f"overridden={report['overridden']} unsorted={report['unsorted']} failed={report['failed']}"
        )
        return report
