"""
orion/config.py
Application config. Persists to orion_config.json in the project root.
Missing or unreadable file → defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "orion_config.json"

DEFAULT_CONFIG = {
    "store_path": "orion-reports.json",
    "host": "127.0.0.1",
    "port": 8770,
    # Simulated "thinking" time of the assistant, milliseconds
    "typing_delay_min_ms": 1000,
    "typing_delay_max_ms": 2000,
    "success_delay_ms": 1500,
    "cancel_delay_ms": 1000,
    # Pause between the success message and the confirmation view
    "redirect_delay_ms": 2000,
    # Confirmation view returns home on its own after this many seconds
    "confirmation_timeout_s": 5,
}


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from orion_config.json. Returns defaults if missing."""
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return {**DEFAULT_CONFIG, **data}
            logger.warning(f"Config load failed: {path} is not a JSON object")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")
    return dict(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to orion_config.json."""
    path = _config_path(project_root)
    path.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return path


def resolve_store_path(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """store_path from config, made absolute against the project root."""
    store_path = Path(config.get("store_path") or DEFAULT_CONFIG["store_path"])
    if not store_path.is_absolute():
        store_path = (project_root or Path.cwd()) / store_path
    return store_path
