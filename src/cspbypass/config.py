"""
Configuration loading
config.json holds one section per concern; .env / environment variables win
"""

import copy
import json
import os
from pathlib import Path

from dotenv import load_dotenv

DATA_URL = "https://raw.githubusercontent.com/renniepak/CSPBypass/refs/heads/main/data.tsv"

DEFAULT_CONFIG = {
    'dataset': {
        'url': DATA_URL,
        'cache_file': 'data/cspbypass_cache.json',
        'max_age_hours': 6,
    },
    'http': {
        'timeout': 10,
        'user_agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    },
}

# env var -> (section, key, type)
ENV_OVERRIDES = {
    'CSPBYPASS_DATA_URL': ('dataset', 'url', str),
    'CSPBYPASS_CACHE_FILE': ('dataset', 'cache_file', str),
    'CSPBYPASS_MAX_AGE_HOURS': ('dataset', 'max_age_hours', float),
    'CSPBYPASS_TIMEOUT': ('http', 'timeout', float),
    'CSPBYPASS_USER_AGENT': ('http', 'user_agent', str),
}


def _read_config_file(config_path):
    """Load config.json, returning {} when missing or unreadable"""
    if not config_path.exists():
        print(f"[i] {config_path} not found, using default settings")
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"[!] Error loading config: {e}")
        return {}

    if not isinstance(data, dict):
        print(f"[!] Ignoring {config_path}: expected a JSON object")
        return {}

    return data


def _coerce(value, kind, fallback):
    try:
        coerced = kind(value)
    except (TypeError, ValueError):
        print(f"[!] Invalid setting {value!r}, falling back to {fallback!r}")
        return fallback
    if kind is float and coerced <= 0:
        print(f"[!] Setting must be positive, falling back to {fallback!r}")
        return fallback
    return coerced


def load_config(config_path='config.json', env_file=None):
    """
    Build the effective configuration

    Args:
        config_path: Path to config.json
        env_file: Optional .env file (defaults to searching from the cwd)

    Returns:
        dict: Settings with 'dataset' and 'http' sections
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    file_config = _read_config_file(Path(config_path))
    for section, values in file_config.items():
        if section in config and isinstance(values, dict):
            config[section].update(values)

    load_dotenv(dotenv_path=env_file)
    for env_name, (section, key, kind) in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[section][key] = value

        # numeric settings may come from either source as strings
        if kind is float:
            config[section][key] = _coerce(config[section][key], kind, DEFAULT_CONFIG[section][key])

    return config
