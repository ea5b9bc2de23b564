"""
Scanner settings: pointing mode, export folder and aggregation behaviour.

Settings live in a small JSON file (the desktop stand-in for the app's
preferences) and can be overridden from the environment:

    HORIZON_SETTINGS   path of the JSON file (default: ~/.horizon_scanner.json)
    HORIZON_MODE       phone | camera
    HORIZON_FOLDER     export folder
    HORIZON_POLICY     first | consecutive
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from typing import Optional

from horizon.orientation import PointingMode
from horizon.sweep import AggregationPolicy

log = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "~/.horizon_scanner.json"
BOOL_FIELDS = ("auto_stop_on_wrap", "include_header", "unique_names")


@dataclass(frozen=True)
class ScannerSettings:
    pointing_mode: PointingMode = PointingMode.PHONE
    destination: Optional[str] = None  # export folder, None until the user picks one
    policy: AggregationPolicy = AggregationPolicy.FIRST_WRITE_WINS
    auto_stop_on_wrap: bool = True
    include_header: bool = False
    unique_names: bool = True

    def __post_init__(self):
        # accept the string forms used in JSON, env and CLI
        object.__setattr__(self, "pointing_mode", PointingMode.parse(self.pointing_mode))
        object.__setattr__(self, "policy", AggregationPolicy.parse(self.policy))
        if self.destination is not None and not str(self.destination).strip():
            object.__setattr__(self, "destination", None)
        for name in BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be true or false, got {value!r}")

    def with_overrides(self, **overrides) -> "ScannerSettings":
        """Copy with the given fields replaced. None values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["pointing_mode"] = self.pointing_mode.value
        d["policy"] = self.policy.value
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "ScannerSettings":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        unknown = set(data) - set(known)
        if unknown:
            log.warning("Ignoring unknown settings: %s", ", ".join(sorted(unknown)))
        return cls(**known)


def settings_path(path: Optional[str] = None) -> str:
    return os.path.expanduser(path or os.environ.get("HORIZON_SETTINGS", DEFAULT_SETTINGS_PATH))


def load_settings(path: Optional[str] = None) -> ScannerSettings:
    """
    Read settings from disk and apply environment overrides.

    A missing file gives the defaults. A file that is not valid JSON, or
    holds invalid values, raises ValueError.
    """
    path = settings_path(path)
    data = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Settings file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must hold a JSON object")
        log.debug("Loaded settings from %s", path)

    settings = ScannerSettings.from_dict(data)
    return settings.with_overrides(
        pointing_mode=os.environ.get("HORIZON_MODE"),
        destination=os.environ.get("HORIZON_FOLDER"),
        policy=os.environ.get("HORIZON_POLICY"),
    )


def save_settings(settings: ScannerSettings, path: Optional[str] = None) -> str:
    path = settings_path(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
    log.info("Settings saved to %s", path)
    return path
