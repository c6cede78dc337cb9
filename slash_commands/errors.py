"""Exceptions raised by the slash command interface."""


class SlashCommandError(Exception):
    """Base class for slash command errors."""


class InvalidArgumentError(SlashCommandError, ValueError):
    """A required argument is missing or has the wrong type."""


class DuplicateHandlerError(InvalidArgumentError):
    """A handler is already registered for the command name."""

    def __init__(self, name: str):
        super().__init__(f"A handler is already registered for command '{name}'.")
        self.name = name


class CommandNotFoundError(SlashCommandError, LookupError):
    """No remote command matches the given name."""

    def __init__(self, name: str):
        super().__init__(f"No command found with name {name}!")
        self.name = name


class ConfigError(SlashCommandError):
    """The configuration file is missing or invalid."""


class NotReadyError(SlashCommandError):
    """The client does not know its application id yet."""


class GatewayError(SlashCommandError):
    """The gateway closed the connection with a non-recoverable code."""

    def __init__(self, code: int, reason: str = ''):
        message = f"Gateway closed with code {code}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.code = code
        self.reason = reason
