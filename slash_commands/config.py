"""Application configuration."""
import json
import os
from typing import Any, Dict, Mapping

from .errors import ConfigError


class Config:
    """Application configuration."""
    DISCORD_BOT_TOKEN = os.environ.get('DISCORD_BOT_TOKEN')
    DISCORD_APPLICATION_ID = os.environ.get('DISCORD_APPLICATION_ID')
    DISCORD_API_BASE_URL = os.environ.get('DISCORD_API_BASE_URL', "https://discord.com/api/v10")
    DISCORD_GATEWAY_URL = os.environ.get('DISCORD_GATEWAY_URL', "wss://gateway.discord.gg/?v=10&encoding=json")
    DISCORD_INTENTS = int(os.environ.get('DISCORD_INTENTS', '0'))
    DISCORD_REQUEST_TIMEOUT = float(os.environ.get('DISCORD_REQUEST_TIMEOUT', '10'))
    DISCORD_CONFIG_FILE = os.environ.get('DISCORD_CONFIG_FILE', 'Config.json')

    ENVIRONMENT = os.environ.get('ENVIRONMENT', 'production')
    LOCAL_DEV = bool(os.environ.get('LOCAL_DEV'))


# Options read from the config file; an empty default marks a required option
CONFIG_OPTIONS = {
    'Discord API Token': '',
}


def read_options(path: str, options: Mapping[str, Any], create_missing: bool = False) -> Dict[str, Any]:
    """Read a JSON config file into a flat mapping.

    Args:
        path: Path of the JSON file.
        options: Expected option names mapped to their defaults. An option
            whose default is an empty string must be present in the file.
        create_missing: Write ``options`` to ``path`` when the file does not
            exist, so it can be filled in before the next start.

    Returns:
        dict: The file's values, with defaults filled in for absent options.

    Raises:
        ConfigError: if the file is missing, is not a JSON object, or lacks
            a required option.
    """
    if not os.path.exists(path):
        if create_missing:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(dict(options), f, indent=4)
            raise ConfigError(f"Config file '{path}' was missing and has been created. Fill it in and restart.")
        raise ConfigError(f"Config file '{path}' does not exist.")

    try:
        with open(path, encoding='utf-8') as f:
            values = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file '{path}' is not valid JSON: {e}") from e

    if not isinstance(values, dict):
        raise ConfigError(f"Config file '{path}' must contain a JSON object.")

    missing = [key for key, default in options.items() if key not in values and default == '']
    if missing:
        raise ConfigError(f"Config file '{path}' is missing required options: {', '.join(missing)}")

    config = dict(options)
    config.update(values)
    return config
