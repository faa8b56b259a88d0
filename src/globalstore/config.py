"""
Global Store Configuration
Settings resolution from a JSON config file and GLOBALSTORE_* environment variables
"""

import os
import json
import logging
import sys
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "GLOBALSTORE_"
DEFAULT_CONFIG_FILE = "/etc/globalstore/config.json"
_TRUTHY = ('true', '1', 'yes', 'on')


@dataclass
class GlobalStoreConfig:
    """Resolved coordinator settings"""
    debug_mode: bool = False
    console_logging: bool = False
    log_level: str = "WARNING"

    @classmethod
    def load(cls, config_file: Optional[str] = None) -> "GlobalStoreConfig":
        """
        Resolve settings: defaults, then config file, then environment

        Args:
            config_file: Explicit JSON file path; falls back to GLOBALSTORE_CONFIG
        """
        values: Dict[str, Any] = {}
        values.update(load_from_file(config_file or os.getenv(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_FILE)))
        values.update(load_from_environment())
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_from_file(config_path: str) -> Dict[str, Any]:
    """Load settings from a JSON object file; missing or invalid files yield {}"""
    if not os.path.exists(config_path):
        logger.debug(f"Global store config file not found: {config_path}")
        return {}

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load global store config from {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Global store config in {config_path} must be a JSON object")
        return {}
    logger.info(f"Loaded global store config from {config_path}")
    return data


def load_from_environment() -> Dict[str, Any]:
    """Load settings from GLOBALSTORE_* environment variables"""
    config: Dict[str, Any] = {}

    for key in ('debug_mode', 'console_logging'):
        env_value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            config[key] = env_value.lower() in _TRUTHY

    log_level = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
    if log_level:
        config['log_level'] = log_level.upper()

    return config


def configure_logging(level: str = "WARNING", stream: Any = None) -> logging.Logger:
    """
    Attach a stream handler to the ``globalstore`` logger namespace

    Reconfiguring replaces the previous handler instead of stacking another one.
    """
    root = logging.getLogger("globalstore")
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    return root
