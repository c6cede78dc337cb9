"""Slash command manager.

Creates, lists and deletes application commands, replaces their
permissions, and routes incoming interactions to the handler registered
for the command's name.
"""
from collections.abc import Iterable, Mapping
from typing import Any, Callable, List, Optional, Sequence, Union

from .errors import CommandNotFoundError, DuplicateHandlerError, InvalidArgumentError, SlashCommandError
from .models import (
    CommandId,
    CommandName,
    CommandRef,
    HandlerRegistration,
    PermissionEntry,
    coerce_command_ref,
)
from .observability import get_logger, traced_function

logger = get_logger('slash-commands')

INTERACTION_CREATE = 'INTERACTION_CREATE'
CHANNEL_MESSAGE_WITH_SOURCE = 4


class SlashCommandInterface:
    """Slash command manager bound to one Discord client.

    The client must provide ``application_id``, ``async request(method, route, json=None)``
    and ``on(event_type, callback)``.
    """

    def __init__(self, client):
        if client is None:
            raise InvalidArgumentError("Please pass a Discord client object to the constructor.")

        self.client = client
        self._command_handlers: List[HandlerRegistration] = []
        self._listener_attached = False

    def _commands_route(self, guild_id: Optional[str] = None) -> str:
        if guild_id is not None and not isinstance(guild_id, str):
            raise InvalidArgumentError("If passing a guild id, please pass as a string.")

        route = f"applications/{self.client.application_id}"
        if guild_id is not None:
            route += f"/guilds/{guild_id}"
        return route + "/commands"

    def _check_permissions(self, permissions):
        if permissions is None or isinstance(permissions, (str, bytes, Mapping)) \
                or not isinstance(permissions, Iterable):
            raise InvalidArgumentError("Please pass a list of permission entries.")

    async def _resolve_id(self, command_ref: CommandRef, guild_id: Optional[str]) -> str:
        if isinstance(command_ref, CommandId):
            return command_ref.id

        command = await self.get_command(command_ref, guild_id)
        if not command:
            logger.warning("Command name did not resolve", command_name=command_ref.name, guild_id=guild_id)
            raise CommandNotFoundError(command_ref.name)
        return command['id']

    @traced_function("post_command")
    async def post_command(
        self,
        command_data: Mapping,
        guild_id: Optional[str] = None,
        permissions: Optional[Sequence[Union[PermissionEntry, dict]]] = None,
    ) -> Any:
        """Create a slash command.

        Args:
            command_data: Command definition, including name, description and options.
            guild_id: Guild to create the command in. None creates it globally.
            permissions: Permission entries to apply once the command exists.

        Returns:
            The created command, or the permission edit response when
            ``permissions`` was given.

        Raises:
            SlashCommandError: if permissions were given but the creation
                response carries no command id.
        """
        if command_data is None or not isinstance(command_data, Mapping):
            raise InvalidArgumentError("Please pass a mapping containing command data to post_command.")
        if permissions is not None:
            self._check_permissions(permissions)
        route = self._commands_route(guild_id)

        logger.debug("Posting command", command_name=command_data.get('name'), guild_id=guild_id)
        response = await self.client.request('POST', route, json=dict(command_data))
        command_id = (response or {}).get('id')
        logger.info("Command posted", command_name=command_data.get('name'), command_id=command_id, guild_id=guild_id)

        if permissions is not None:
            if not command_id:
                raise SlashCommandError("Command was created but the response carried no id; permissions were not applied.")
            return await self.edit_command_permissions(CommandId(str(command_id)), permissions, guild_id)
        return response

    @traced_function("delete_command")
    async def delete_command(self, command_ref: Union[CommandRef, Mapping], guild_id: Optional[str] = None) -> Any:
        """Delete a slash command.

        Args:
            command_ref: The command's id (preferred) or name.
            guild_id: Guild to delete the command from. None deletes a global command.

        Raises:
            CommandNotFoundError: if a name is given and no command has it.
        """
        command_ref = coerce_command_ref(command_ref)
        route = self._commands_route(guild_id)
        command_id = await self._resolve_id(command_ref, guild_id)

        response = await self.client.request('DELETE', f"{route}/{command_id}")
        logger.info("Command deleted", command_id=command_id, guild_id=guild_id)
        return response

    @traced_function("edit_command_permissions")
    async def edit_command_permissions(
        self,
        command_ref: Union[CommandRef, Mapping],
        new_permissions: Sequence[Union[PermissionEntry, dict]],
        guild_id: Optional[str] = None,
    ) -> Any:
        """Replace the permissions of a slash command.

        The new list overwrites every existing entry for the command; entries
        not repeated in ``new_permissions`` are dropped.

        Args:
            command_ref: The command's id (preferred) or name.
            new_permissions: The complete permission list for the command.
            guild_id: Guild the command lives in. None for a global command.

        Raises:
            CommandNotFoundError: if a name is given and no command has it.
        """
        command_ref = coerce_command_ref(command_ref)
        self._check_permissions(new_permissions)
        route = self._commands_route(guild_id)
        command_id = await self._resolve_id(command_ref, guild_id)

        permissions = [
            entry.to_dict() if isinstance(entry, PermissionEntry) else entry
            for entry in new_permissions
        ]
        response = await self.client.request(
            'PUT', f"{route}/{command_id}/permissions", json={'permissions': permissions}
        )
        logger.info("Command permissions replaced", command_id=command_id, guild_id=guild_id, entries=len(permissions))
        return response

    async def get_command(self, command_ref: Union[CommandRef, Mapping], guild_id: Optional[str] = None) -> Optional[dict]:
        """Find a command by id or name; None if there is no match."""
        command_ref = coerce_command_ref(command_ref)
        commands = await self.get_commands(guild_id)

        for command in commands or []:
            if isinstance(command_ref, CommandId) and command.get('id') == command_ref.id:
                return command
            if isinstance(command_ref, CommandName) and command.get('name') == command_ref.name:
                return command
        return None

    async def get_commands(self, guild_id: Optional[str] = None) -> List[dict]:
        """List the commands of a guild, or the global commands when guild_id is None."""
        return await self.client.request('GET', self._commands_route(guild_id))

    # --- Interaction dispatch ---

    def listen_for_command(self, names: Union[str, Iterable], callback: Callable[[dict], Any]):
        """Call ``callback(interaction)`` whenever one of the named commands is used.

        Args:
            names: A command name or several names sharing the callback.
            callback: Called with the raw interaction payload.

        Raises:
            InvalidArgumentError: if a name or the callback is missing or mistyped.
            DuplicateHandlerError: if a name already has a handler; no name is
                registered in that case.
        """
        if isinstance(names, str):
            names = [names]
        elif names is None or isinstance(names, (bytes, Mapping)) or not isinstance(names, Iterable):
            raise InvalidArgumentError("No command name specified or name is not a string!")
        else:
            names = list(names)

        if not names or not all(isinstance(name, str) and name for name in names):
            raise InvalidArgumentError("No command name specified or name is not a string!")
        if callback is None or not callable(callback):
            raise InvalidArgumentError("No callback specified or callback is not a function!")

        seen = {handler.name for handler in self._command_handlers}
        for name in names:
            if name in seen:
                raise DuplicateHandlerError(name)
            seen.add(name)

        if not self._listener_attached:
            self.client.on(INTERACTION_CREATE, self._dispatch)
            self._listener_attached = True
            logger.info("Interaction listener attached")

        for name in names:
            self._command_handlers.append(HandlerRegistration(name, callback))

    def stop_listening_for_command(self, name: str) -> Optional[HandlerRegistration]:
        """Remove the handler of a command name.

        Returns:
            The removed registration, or None if the name had no handler.
        """
        if not name or not isinstance(name, str):
            raise InvalidArgumentError("No command name specified or name is not a string!")

        for index, handler in enumerate(self._command_handlers):
            if handler.name == name:
                return self._command_handlers.pop(index)
        return None

    def _dispatch(self, interaction: dict):
        if not isinstance(interaction, Mapping):
            logger.warning("Ignoring malformed interaction payload", payload_type=type(interaction).__name__)
            return None
        command_name = (interaction.get('data') or {}).get('name')

        for handler in self._command_handlers:
            if handler.name == command_name:
                logger.debug("Dispatching interaction", command_name=command_name, interaction_id=interaction.get('id'))
                return handler.callback(interaction)

        logger.debug("No handler for interaction", command_name=command_name)
        return None

    def respond_to_interaction(self, interaction: Mapping, message: str = ''):
        """Reply to an interaction with a message.

        Returns:
            An awaitable resolving to the API response.
        """
        if interaction is None or not isinstance(interaction, Mapping):
            raise InvalidArgumentError("No interaction specified or interaction is not an object!")
        if message is None or not isinstance(message, str):
            raise InvalidArgumentError("No message specified or message is not a string!")
        if not interaction.get('id') or not interaction.get('token'):
            raise InvalidArgumentError("Interaction is missing its id or token!")

        return self.client.request(
            'POST',
            f"interactions/{interaction['id']}/{interaction['token']}/callback",
            json={'type': CHANNEL_MESSAGE_WITH_SOURCE, 'data': {'content': message}}
        )
