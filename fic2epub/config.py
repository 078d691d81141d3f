"""
Configuration Management Module

Handles fetcher, output and diagnostics settings.

Lookup order for every setting:
1. Environment variable (``.env`` is loaded first, so it counts as environment)
2. ``config.json`` in the working directory (or ``FIC2EPUB_CONFIG``)
3. Built-in default
"""

import os
import json
from dotenv import load_dotenv

from .logging import logger

# Load environment variables from .env file at the start
load_dotenv()

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36'
)
DEFAULT_TIMEOUT = 30
DEFAULT_MAX_ATTEMPTS = 0  # 0 = retry until the page loads
DEFAULT_RETRY_DELAY = 0.0
DEFAULT_OUTPUT_DIR = "."
DEFAULT_DEBUG_DIR = os.path.join("data", "temp", "debug")


def get_config_path():
    """Path of the optional JSON config file."""
    return os.getenv('FIC2EPUB_CONFIG', 'config.json')


def get_config_value(key, default=None):
    """Get a configuration value from config.json with fallback to default."""
    config_path = get_config_path()
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = json.load(f)
                return config.get(key, default)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"[CONFIG] Could not read {config_path}: {e}")
    return default


def get_setting(env_var, key, default=None, cast=str):
    """Resolve one setting from the environment, then config.json, then default.

    Args:
        env_var (str): Environment variable name
        key (str): config.json key
        default: Value used when neither source provides one
        cast (callable): Converter applied to the raw value

    Returns:
        The converted value, or ``default`` if conversion fails.
    """
    raw = os.getenv(env_var)
    source = "environment variable"
    if raw is None or raw == "":
        raw = get_config_value(key)
        source = "config file"
    if raw is None:
        return default

    try:
        return cast(raw)
    except (TypeError, ValueError):
        logger.warning(f"[CONFIG] Ignoring invalid {key}={raw!r} from {source}, using {default!r}")
        return default


def load_fetch_config():
    """Load page fetcher settings.

    Returns:
        dict: user_agent, timeout, max_attempts, retry_delay
    """
    return {
        'user_agent': get_setting('FIC2EPUB_USER_AGENT', 'user_agent', DEFAULT_USER_AGENT),
        'timeout': get_setting('FIC2EPUB_TIMEOUT', 'request_timeout', DEFAULT_TIMEOUT, float),
        'max_attempts': get_setting('FIC2EPUB_MAX_ATTEMPTS', 'max_attempts', DEFAULT_MAX_ATTEMPTS, int),
        'retry_delay': get_setting('FIC2EPUB_RETRY_DELAY', 'retry_delay', DEFAULT_RETRY_DELAY, float),
    }


def get_output_dir():
    """Directory that finished EPUB files are written to."""
    return get_setting('FIC2EPUB_OUTPUT_DIR', 'output_dir', DEFAULT_OUTPUT_DIR)


def get_debug_dir():
    """Directory for saved pages that failed to parse."""
    return get_setting('FIC2EPUB_DEBUG_DIR', 'debug_dir', DEFAULT_DEBUG_DIR)
