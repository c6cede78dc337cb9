"""Discord slash command registration and interaction dispatch."""
from .client import DiscordClient
from .commands import SlashCommandInterface
from .errors import (
    CommandNotFoundError,
    ConfigError,
    DuplicateHandlerError,
    GatewayError,
    InvalidArgumentError,
    NotReadyError,
    SlashCommandError,
)
from .models import CommandId, CommandName, HandlerRegistration, PermissionEntry, PermissionType

__all__ = [
    'CommandId',
    'CommandName',
    'CommandNotFoundError',
    'ConfigError',
    'DiscordClient',
    'DuplicateHandlerError',
    'GatewayError',
    'HandlerRegistration',
    'InvalidArgumentError',
    'NotReadyError',
    'PermissionEntry',
    'PermissionType',
    'SlashCommandError',
    'SlashCommandInterface',
]
