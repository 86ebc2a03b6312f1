import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Single source of truth for connection settings
SETTINGS_PATH = ".scratch/settings.json"

DEFAULTS: Dict[str, Any] = {"server": "", "timeout": 10.0, "verify": True}


def _env_flag(value: str) -> bool:
    return value.strip().lower() not in {"0", "false", "no"}


def read_settings(path: str | None = None) -> Dict[str, Any]:
    """Return the saved settings merged over DEFAULTS (no env overrides)."""
    path = path or SETTINGS_PATH
    data: Dict[str, Any] = dict(DEFAULTS)
    try:
        if os.path.exists(path):
            with open(path, "r") as f:
                saved = json.load(f)
                if isinstance(saved, dict):
                    data.update(saved)
    except (OSError, ValueError):
        logger.warning("Could not read settings from %s", path, exc_info=True)
    return data


def load_settings(path: str | None = None) -> Dict[str, Any]:
    """Saved settings with SCRATCH_BROWSER_* environment overrides applied."""
    data = read_settings(path)
    url = os.getenv("SCRATCH_BROWSER_URL")
    if url:
        data["server"] = url.strip()
    timeout = os.getenv("SCRATCH_BROWSER_TIMEOUT")
    if timeout:
        try:
            data["timeout"] = float(timeout)
        except ValueError:
            logger.warning("Ignoring invalid SCRATCH_BROWSER_TIMEOUT=%r", timeout)
    verify = os.getenv("SCRATCH_BROWSER_VERIFY")
    if verify:
        data["verify"] = _env_flag(verify)
    return data


def save_settings(updates: Dict[str, Any], path: str | None = None) -> None:
    path = path or SETTINGS_PATH
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        # Read-modify-write to preserve other fields
        data = read_settings(path)
        data.update(updates)
        with open(path, "w") as f:
            json.dump(data, f)
    except OSError:
        logger.exception("Failed to save settings to %s", path)
