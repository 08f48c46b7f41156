"""YAML configuration loader with environment variable overrides.

Layers, later overriding earlier:

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file          -- local overrides (not committed)
  3. Environment variables  -- set by the worker deployment

``load_config`` reads the YAML file, then deep-merges the Settings-backed
values on top.  Keys only present in YAML (e.g. extra per-format tuning)
survive the merge.
"""

from pathlib import Path

import yaml

from plugrag.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is treated
              as empty.
        settings: Pre-built Settings; constructed from the environment when None.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "validation": {
            "max_upload_bytes": settings.max_upload_bytes,
            "large_file_warning_bytes": settings.large_file_warning_bytes,
        },
        "chunking": {
            "max_chunk_size": settings.default_max_chunk_size,
            "overlap": settings.default_overlap,
            "respect_structure": settings.default_respect_structure,
        },
        "tokenizer": {
            "embedding_model": settings.embedding_model,
        },
        "fetch": {
            "timeout": settings.url_timeout_seconds,
            "max_content_length": settings.url_max_content_length,
            "user_agent": settings.fetch_user_agent,
        },
        "extraction": {
            "min_recovery_ratio": settings.min_recovery_ratio,
            "csv_max_rows": settings.csv_max_rows,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
