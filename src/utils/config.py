"""
Configuration loading for the Compliance Deadline Service.
Values come from config/api_config.yaml; environment variables win.
"""

import os
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "api_config.yaml"
DEFAULT_DATABASE_URL = "sqlite:///./deadlines.db"


def load_api_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the API configuration file.

    Args:
        config_path: Path to the YAML file (default: CONFIG_PATH env or config/api_config.yaml)

    Returns:
        Parsed configuration dictionary
    """
    path = config_path or os.getenv("CONFIG_PATH") or DEFAULT_CONFIG_PATH
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def get_config_value(section: Dict[str, Any], key: str, default: Any) -> Any:
    """Read a key, treating unresolved ``${VAR}`` placeholders as missing."""
    val = section.get(key, default)
    if val is None or (isinstance(val, str) and val.startswith('${')):
        return default
    return val


@lru_cache(maxsize=1)
def get_api_config() -> Dict[str, Any]:
    """Return the cached API configuration."""
    return load_api_config()


def get_database_url(config: Optional[Dict[str, Any]] = None) -> str:
    config = config if config is not None else get_api_config()
    db_config = config.get('database', {})
    return os.getenv("DATABASE_URL", get_config_value(db_config, 'url', DEFAULT_DATABASE_URL))


def get_recurrence_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Resolve recurrence settings.

    Returns:
        Dict with ``lookahead_cap`` (int) and ``grouping`` (str)
    """
    config = config if config is not None else get_api_config()
    rec_config = config.get('recurrence', {})
    cap = int(os.getenv("RECURRENCE_LOOKAHEAD_CAP", get_config_value(rec_config, 'lookahead_cap', 3)))
    grouping = os.getenv("RECURRENCE_GROUPING", get_config_value(rec_config, 'grouping', 'per_call'))
    return {"lookahead_cap": cap, "grouping": str(grouping).lower()}


def get_app_version() -> str:
    return str(get_api_config().get('api', {}).get('version', '1.0.0'))
