from __future__ import annotations

"""Configuration loading and validation for RecallTrainer.

This module loads YAML configuration, applies defaults, and validates
that enumerations and numeric knobs are sane. Bad values never abort a
session: they are replaced by a valid fallback with a warning.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import sys

import yaml


ALLOWED_SPEECH_BACKENDS = {"console", "gtts"}
ALLOWED_ASSET_LOADERS = {"path", "http", "none"}
ALLOWED_SINKS = {"parquet", "json", "memory", "none"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or package defaults.

    A user file is layered over the defaults one section deep, so a file
    that only sets `results.sink` keeps every other default.
    """
    default_path = Path(__file__).with_name("defaults.yml")
    cfg = _load_yaml(default_path)
    if path:
        user = _load_yaml(Path(path))
        for section, values in user.items():
            if isinstance(values, dict) and isinstance(cfg.get(section), dict):
                cfg[section] = {**cfg[section], **values}
            else:
                cfg[section] = values
    return cfg


def _non_negative_int(section: Dict[str, Any], key: str, default: int) -> None:
    try:
        section[key] = max(0, int(section.get(key, default)))
    except (TypeError, ValueError):
        print(f"WARNING: Invalid value for '{key}', using {default}.")
        section[key] = default


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    cfg.setdefault("session", {})
    cfg.setdefault("speech", {})
    cfg.setdefault("assets", {})
    cfg.setdefault("results", {})
    cfg.setdefault("ui", {})
    if not isinstance(cfg.get("trials"), dict):
        cfg["trials"] = {}

    session = cfg["session"]
    speech = cfg["speech"]
    assets = cfg["assets"]
    results = cfg["results"]
    ui = cfg["ui"]

    session.setdefault("seed", None)
    session.setdefault("settle_delay_ms", 500)
    session.setdefault("image_grace_ms", 500)
    session.setdefault("spoken_lead_in_ms", 1000)

    speech.setdefault("backend", "console")
    speech.setdefault("lang", "en")
    speech.setdefault("cache_dir", "./.speech_cache")

    assets.setdefault("loader", "path")
    assets.setdefault("root", "./public")
    assets.setdefault("max_workers", 8)
    assets.setdefault("timeout_s", 10)

    results.setdefault("sink", "parquet")
    results.setdefault("data_dir", "./storage/data")
    results.setdefault("json_path", "./trial_history.json")

    ui.setdefault("show_comparison", True)
    ui.setdefault("show_summary", True)

    # Numeric knobs
    _non_negative_int(session, "settle_delay_ms", 500)
    _non_negative_int(session, "image_grace_ms", 500)
    _non_negative_int(session, "spoken_lead_in_ms", 1000)
    _non_negative_int(assets, "timeout_s", 10)
    _non_negative_int(assets, "max_workers", 8)
    if assets["max_workers"] < 1:
        assets["max_workers"] = 1

    seed = session.get("seed")
    if seed is not None:
        try:
            session["seed"] = int(seed)
        except (TypeError, ValueError):
            print(f"WARNING: Invalid seed '{seed}', ignoring.")
            session["seed"] = None

    # Enum validations
    backend = speech.get("backend")
    if backend not in ALLOWED_SPEECH_BACKENDS:
        print(f"WARNING: Unsupported speech backend '{backend}', falling back to 'console'.")
        speech["backend"] = "console"

    loader = assets.get("loader")
    if loader not in ALLOWED_ASSET_LOADERS:
        print(f"WARNING: Unsupported asset loader '{loader}', using 'path'.")
        assets["loader"] = "path"

    sink = results.get("sink")
    if sink not in ALLOWED_SINKS:
        print(f"WARNING: Unsupported result sink '{sink}', using 'parquet'.")
        results["sink"] = "parquet"

    return cfg
