"""Configuration loader for lexmerge.

Loads defaults from config.json at project root, with hardcoded fallbacks.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

# Hardcoded fallback defaults
FALLBACK_DEFAULTS = {
    "encoding": "utf-8",
    "line_separator": None,     # None -> os.linesep
    "locale": None,             # None -> code point order, "" -> environment
    "max_tmp_files": 1024,
    "max_memory": 64 * 1024 * 1024,
    "tmp_dir": None,
    "dedup": False,
    "max_word_bytes": 256,
    "engine": "hunspell",
}

_config: dict[str, Any] | None = None


def _find_config() -> Path | None:
    """Find config.json by walking up from current file."""
    paths = [
        Path(__file__).parent.parent.parent / "config.json",  # python/lexmerge -> root
        Path.cwd() / "config.json",
        Path.cwd().parent / "config.json",
    ]
    env_path = os.environ.get("LEXMERGE_CONFIG")
    if env_path:
        paths.insert(0, Path(env_path))
    for path in paths:
        if path.exists():
            return path
    return None


def load() -> dict[str, Any]:
    """Load configuration from config.json or use fallbacks."""
    global _config
    if _config is not None:
        return _config

    config_path = _find_config()
    if config_path:
        try:
            with open(config_path, encoding="utf-8") as f:
                _config = json.load(f)
                return _config
        except (json.JSONDecodeError, OSError):
            pass

    # Fallback
    _config = {"defaults": FALLBACK_DEFAULTS}
    return _config


def reset() -> None:
    """Forget the cached configuration so the next load() re-reads it."""
    global _config
    _config = None


def get_default(key: str, fallback: Any = None) -> Any:
    """Get a default value from config."""
    cfg = load()
    return cfg.get("defaults", {}).get(key, fallback)


# Convenience accessors
def default_encoding() -> str:
    return get_default("encoding", FALLBACK_DEFAULTS["encoding"])


def default_line_separator() -> str:
    return get_default("line_separator") or os.linesep


def default_locale() -> Optional[str]:
    return get_default("locale", FALLBACK_DEFAULTS["locale"])


def default_max_tmp_files() -> int:
    return get_default("max_tmp_files", FALLBACK_DEFAULTS["max_tmp_files"])


def default_max_memory() -> int:
    return get_default("max_memory", FALLBACK_DEFAULTS["max_memory"])


def default_tmp_dir() -> Optional[str]:
    return get_default("tmp_dir", FALLBACK_DEFAULTS["tmp_dir"])


def default_dedup() -> bool:
    return get_default("dedup", FALLBACK_DEFAULTS["dedup"])


def default_max_word_bytes() -> int:
    return get_default("max_word_bytes", FALLBACK_DEFAULTS["max_word_bytes"])


def default_engine() -> str:
    return get_default("engine", FALLBACK_DEFAULTS["engine"])
