"""
Configuration handling for the Wiki Agent.
"""

import os
import json
from typing import Dict, Any, Optional

from dotenv import load_dotenv

from .logger import get_logger
from .profiles import DEFAULT_SITE

logger = get_logger(__name__)

DEFAULTS: Dict[str, Any] = {
    "site": DEFAULT_SITE,
    "max_results": 5,
    "timeout": 10.0,
}

# Environment variable -> config key
ENV_KEYS = {
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "WIKI_SITE": "site",
    "WIKI_BASE_URL": "base_url",
    "WIKI_SEARCH_ENDPOINT": "search_endpoint",
    "WIKI_MAX_RESULTS": "max_results",
    "WIKI_TIMEOUT": "timeout",
    "WIKI_MODEL": "model",
}

NUMERIC_KEYS = {"max_results": int, "timeout": float}

REQUIRED_KEYS = ["anthropic_api_key"]

def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a .env file, a JSON config file and environment
    variables, in increasing order of precedence.

    Args:
        config_file: Optional path to JSON config file; keys may be either the
            environment variable names or the config keys

    Returns:
        Dictionary with configuration
    """
    load_dotenv()
    config = dict(DEFAULTS)

    if config_file:
        if os.path.exists(config_file):
            try:
                with open(config_file, 'r') as f:
                    file_config = json.load(f)
                for key, value in file_config.items():
                    config[ENV_KEYS.get(key, key)] = value
                logger.info(f"Loaded configuration from {config_file}")
            except (OSError, ValueError) as e:
                logger.error(f"Error loading config file: {e}")
        else:
            logger.warning(f"Config file not found: {config_file}")

    for env_key, config_key in ENV_KEYS.items():
        if os.environ.get(env_key):
            config[config_key] = os.environ[env_key]

    for key, cast in NUMERIC_KEYS.items():
        try:
            config[key] = cast(config[key])
        except (TypeError, ValueError):
            logger.warning(f"Invalid value for {key}: {config[key]!r}, using {DEFAULTS[key]}")
            config[key] = DEFAULTS[key]

    return config

def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate that all required configuration is present.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    for key in REQUIRED_KEYS:
        if key not in config or not config[key]:
            logger.error(f"Missing required configuration key: {key}")
            return False

    if config.get("max_results", 0) < 1:
        logger.error("max_results must be at least 1")
        return False

    if config.get("timeout", 0) <= 0:
        logger.error("timeout must be positive")
        return False

    return True
