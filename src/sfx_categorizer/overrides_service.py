"""Manual category overrides stored alongside the library.

Users can pin any file to a category by hand.  Overrides live in
``.sfx_overrides.json`` at the library root so they travel with the
library, and they take hard precedence over both classifier passes.

Structure of ``.sfx_overrides.json``::

    {
      "VendorA/Rain/RAIN_Heavy_01.wav": "Weather/Rain",
      "Misc/untitled_07.wav": "Foley/Cloth"
    }

Keys are root-relative paths with ``/`` separators and are matched
case-insensitively.  The file is validated against
``overrides.schema.json``; a missing or invalid file loads as empty.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from .config_service import _save_json, validate_overrides

OVERRIDES_FILENAME = ".sfx_overrides.json"


def normalize_key(key: str) -> str:
    """Canonical lookup form of a root-relative key."""
    return str(key or "").replace("\\", "/").strip().strip("/").lower()


@dataclass
class OverridesStore:
    """Case-insensitive key -> manual category map persisted at the library root."""

    root: Path
    filename: str = OVERRIDES_FILENAME
    autosave: bool = True
    # normalized key -> (original key, category)
    _map: Dict[str, Tuple[str, str]] = field(init=False, default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.load()

    @property
    def path(self) -> Path:
        return self.root / self.filename

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._map

    def load(self) -> Dict[str, str]:
        """(Re)load overrides from disk (best-effort)."""
        self._map = {}
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            validate_overrides(data)
        except (OSError, json.JSONDecodeError, ValueError) as exc:
            print(f"Warning: ignoring overrides file {self.path}: {exc}")
            return {}
        for key, category in data.items():
            norm = normalize_key(key)
            category = category.strip()
            if norm and category:
                self._map[norm] = (key, category)
        return self.as_dict()

    def save(self) -> None:
        """Write the current overrides; an empty map removes the file."""
        data = self.as_dict()
        validate_overrides(data)
        if not data:
            if self.path.exists():
                self.path.unlink()
            return
        _save_json(data, self.path)

    def _maybe_save(self) -> None:
        if self.autosave:
            self.save()

    def as_dict(self) -> Dict[str, str]:
        return {original: category for original, category in self._map.values()}

    def get_manual(self, key: str) -> Optional[str]:
        entry = self._map.get(normalize_key(key))
        return entry[1] if entry else None

    def set_manual(self, key: str, category: Optional[str]) -> None:
        """Pin ``key`` to ``category``; a blank category clears the override."""
        norm = normalize_key(key)
        if not norm:
            return
        text = (category or "").strip()
        if text:
            self._map[norm] = (key, text)
        else:
            self._map.pop(norm, None)
        self._maybe_save()

    def bulk_set_manual(self, keys: Iterable[str], category: str) -> int:
        text = (category or "").strip()
        if not text:
            return self.bulk_clear_manual(keys)
        changed = 0
        for key in keys:
            norm = normalize_key(key)
            if norm:
                self._map[norm] = (key, text)
                changed += 1
        self._maybe_save()
        return changed

    def bulk_clear_manual(self, keys: Iterable[str]) -> int:
        removed = 0
        for key in keys:
            if self._map.pop(normalize_key(key), None) is not None:
                removed += 1
        self._maybe_save()
        return removed

    def replace_all(self, overrides: Dict[str, str]) -> None:
        self._map = {}
        for key, category in (overrides or {}).items():
            norm = normalize_key(key)
            text = str(category or "").strip()
            if norm and text:
                self._map[norm] = (key, text)
        self._maybe_save()
