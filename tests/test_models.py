"""Tests for command references and permission entries."""
import pytest

from slash_commands.errors import InvalidArgumentError
from slash_commands.models import (
    CommandId,
    CommandName,
    PermissionEntry,
    PermissionType,
    coerce_command_ref,
)


class TestCoerceCommandRef:

    def test_id_mapping(self):
        assert coerce_command_ref({'id': '42'}) == CommandId('42')

    def test_numeric_id_becomes_string(self):
        assert coerce_command_ref({'id': 42}) == CommandId('42')

    def test_name_mapping(self):
        assert coerce_command_ref({'name': 'ping'}) == CommandName('ping')

    def test_id_wins_over_name(self):
        assert coerce_command_ref({'id': '42', 'name': 'ping'}) == CommandId('42')

    def test_reference_passes_through(self):
        ref = CommandName('ping')
        assert coerce_command_ref(ref) is ref

    @pytest.mark.parametrize("value", [
        None, {}, {'name': ''}, 'ping', 42, ['ping'], {'id': ''}, {'name': 5},
        {'id': False}, {'id': ['1']}, CommandId(''), CommandName(None),
    ])
    def test_invalid_values(self, value):
        with pytest.raises(InvalidArgumentError):
            coerce_command_ref(value)


def test_permission_entry_to_dict():
    entry = PermissionEntry('123', PermissionType.USER, False)
    assert entry.to_dict() == {'id': '123', 'type': 2, 'permission': False}
