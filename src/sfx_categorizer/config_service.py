"""Configuration management for the SFX categorizer.

This module centralises all logic related to finding and loading
configuration files.  It supports both AppData and portable
installation modes, resolves the appropriate configuration
directory, and exposes helper functions to read/write JSON
configuration files with JSON schema validation.

Portable mode is controlled via a ``portable.flag`` file located
alongside the application (the library root when driven from the CLI)
or by passing ``--portable`` to the CLI.  The flag file takes precedence
over the command line.

Example usage::

    from sfx_categorizer.config_service import ConfigService

    config_service = ConfigService(app_dir=Path("D:/SFX"))
    cfg = config_service.load_config()
    cfg["top_k"] = 11
    config_service.save_config(cfg)

"""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema

APP_NAME = "SFXCategorizer"
PACKAGE_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"


def _get_appdata_root(app_name: str = APP_NAME) -> Path:
    """Return the platform-specific base directory for config files."""
    system = platform.system().lower()
    if system == "windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / app_name
        # Fallback to user profile
        return Path.home() / f"AppData/Roaming/{app_name}"
    # On Linux/macOS use XDG_CONFIG_HOME or ~/.config
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / app_name
    return Path.home() / ".config" / app_name


def _load_json(path: Path) -> Any:
    if not path.exists():
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _save_json(data: Any, file_path: Path) -> None:
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, indent=2)


def _validate_json(data: Any, schema_path: Path) -> None:
    """Validate JSON against a schema file; raise ValueError on mismatch."""
    try:
        schema = _load_json(schema_path)
        if schema:
            jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc.message}") from exc


def validate_overrides(data: Any) -> None:
    """Validate an overrides payload against the bundled schema."""
    _validate_json(data, PACKAGE_SCHEMA_DIR / "overrides.schema.json")


@dataclass
class ConfigService:
    """Resolve and manage categorizer configuration."""

    app_dir: Path
    portable_flag_filename: str = "portable.flag"
    config_filename: str = "config.json"
    schema_dir: Path = PACKAGE_SCHEMA_DIR
    schema_names: Tuple[str, str] = (
        "config.schema.json",
        "overrides.schema.json",
    )
    _cached_mode: Optional[bool] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.app_dir = Path(self.app_dir)
        self.schema_dir = Path(self.schema_dir)

    def _portable_flag_exists(self) -> bool:
        return (self.app_dir / self.portable_flag_filename).exists()

    def detect_mode(self, cli_portable: bool = False) -> bool:
        """Return ``True`` if portable mode should be used.

        Portable mode is selected if any of the following conditions hold
        (checked in order):

        1. A ``portable.flag`` file exists in the application directory.
        2. ``cli_portable`` is truthy.

        When the flag file is present it always forces portable mode,
        regardless of CLI arguments.  The result is cached for
        subsequent calls.
        """
        if self._cached_mode is None:
            if self._portable_flag_exists():
                self._cached_mode = True
            else:
                self._cached_mode = bool(cli_portable)
        return self._cached_mode

    def get_config_dir(self, cli_portable: bool = False) -> Path:
        """Return the resolved configuration directory."""
        if self.detect_mode(cli_portable=cli_portable):
            # In portable mode configuration lives alongside the app
            return self.app_dir
        return _get_appdata_root()

    def get_config_path(self, cli_portable: bool = False) -> Path:
        return self.get_config_dir(cli_portable) / self.config_filename

    def get_schema_path(self, schema_name: str) -> Path:
        return self.schema_dir / schema_name

    def load_config(self, cli_portable: bool = False) -> Dict[str, Any]:
        """Load configuration from the resolved path, validating against schema.

        A missing file yields an empty dict.  Invalid JSON or a schema
        mismatch prints a warning and falls back to defaults.
        """
        cfg_path = self.get_config_path(cli_portable)
        cfg: Dict[str, Any] = {}
        try:
            data = _load_json(cfg_path)
        except (OSError, json.JSONDecodeError) as exc:
            print(f"Warning: could not read {cfg_path}: {exc}. Falling back to defaults.")
            data = None
        if data is not None:
            cfg = data
        schema_path = self.get_schema_path(self.schema_names[0])
        if schema_path.exists():
            try:
                _validate_json(cfg, schema_path)
            except ValueError as exc:
                # Provide a friendly message and default to empty config
                print(f"Warning: {exc}. Falling back to defaults.")
                cfg = {}
        cfg.setdefault("config_dir", str(self.get_config_dir(cli_portable)))
        return cfg

    def save_config(self, config: Dict[str, Any], cli_portable: bool = False) -> None:
        """Write configuration to disk, validating against the schema first."""
        payload = {k: v for k, v in config.items() if k != "config_dir"}
        schema_path = self.get_schema_path(self.schema_names[0])
        if schema_path.exists():
            _validate_json(payload, schema_path)
        _save_json(payload, self.get_config_path(cli_portable))

    def is_portable_mode(self) -> bool:
        """Portable mode is enabled when portable.flag exists in app_dir."""
        return self._portable_flag_exists()
