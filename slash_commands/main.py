"""Bot entrypoint: read the config file, log in to Discord and wait for interactions."""
import asyncio
import sys
from typing import Awaitable, Callable, Optional

from .client import DiscordClient
from .commands import SlashCommandInterface
from .config import CONFIG_OPTIONS, Config, read_options
from .errors import ConfigError
from .observability import init_observability

logger, tracing = init_observability('discord-bot', Config.ENVIRONMENT)


async def run_bot(config: dict, setup: Optional[Callable[[SlashCommandInterface], Awaitable]] = None):
    """Log in and run until the gateway connection stops.

    Args:
        config: Options read from the config file
        setup: Called with the command interface once the bot is ready,
            to post commands and register their handlers
    """
    client = DiscordClient(
        config['Discord API Token'],
        application_id=config.get('Discord Application ID') or Config.DISCORD_APPLICATION_ID,
    )
    commands = SlashCommandInterface(client)

    await client.login()
    try:
        await client.wait_until_ready()
        logger.info("Successfully logged in to Discord.")
        if setup is not None:
            await setup(commands)
        await client.wait_closed()
    finally:
        await client.close()


def load_config() -> dict:
    """Read the config file; DISCORD_BOT_TOKEN in the environment overrides the file."""
    try:
        config = read_options(Config.DISCORD_CONFIG_FILE, CONFIG_OPTIONS)
    except ConfigError:
        if not Config.DISCORD_BOT_TOKEN:
            raise
        config = dict(CONFIG_OPTIONS)
    else:
        logger.info("Successfully read configuration file.", path=Config.DISCORD_CONFIG_FILE)

    if Config.DISCORD_BOT_TOKEN:
        config['Discord API Token'] = Config.DISCORD_BOT_TOKEN
    return config


def main():
    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Error reading configuration file", error=e, path=Config.DISCORD_CONFIG_FILE)
        sys.exit(1)

    try:
        asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        logger.info("Bot stopped")
    except Exception as e:
        logger.error("Error logging in to Discord", error=e)
        sys.exit(1)


if __name__ == '__main__':
    main()
