"""Value types shared by the command interface."""
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, Mapping, Union

from .errors import InvalidArgumentError

NO_COMMAND_SPECIFIED = (
    "No command specified. Give either a command id (preferred) via "
    "command_ref['id'] or a name via command_ref['name']."
)


@dataclass(frozen=True)
class CommandId:
    """Reference to a remote command by its platform-assigned id."""
    id: str


@dataclass(frozen=True)
class CommandName:
    """Reference to a remote command by name; resolved with a listing lookup."""
    name: str


CommandRef = Union[CommandId, CommandName]


def coerce_command_ref(value: Any) -> CommandRef:
    """Turn a reference or a ``{'id': ...}`` / ``{'name': ...}`` mapping into a CommandRef.

    An id is preferred over a name when the mapping carries both.

    Raises:
        InvalidArgumentError: if neither a non-empty id nor a non-empty name is present.
    """
    if isinstance(value, CommandId):
        if isinstance(value.id, str) and value.id:
            return value
        raise InvalidArgumentError(NO_COMMAND_SPECIFIED)
    if isinstance(value, CommandName):
        if isinstance(value.name, str) and value.name:
            return value
        raise InvalidArgumentError(NO_COMMAND_SPECIFIED)
    if isinstance(value, Mapping):
        command_id = value.get('id')
        if isinstance(command_id, int) and not isinstance(command_id, bool):
            command_id = str(command_id)
        if isinstance(command_id, str) and command_id:
            return CommandId(command_id)
        name = value.get('name')
        if isinstance(name, str) and name:
            return CommandName(name)
    raise InvalidArgumentError(NO_COMMAND_SPECIFIED)


class PermissionType(IntEnum):
    """Target kinds of a command permission overwrite."""
    ROLE = 1
    USER = 2
    CHANNEL = 3


@dataclass(frozen=True)
class PermissionEntry:
    """Allow or deny one role, user or channel the use of a command."""
    id: str
    type: PermissionType
    permission: bool

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'type': int(self.type), 'permission': self.permission}


@dataclass
class HandlerRegistration:
    """A command name bound to the callback invoked for its interactions."""
    name: str
    callback: Callable[[dict], Any]
