"""Tests for the bot entrypoint's configuration handling."""
import json

import pytest

from slash_commands import main as bot_main
from slash_commands.config import Config
from slash_commands.errors import ConfigError


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / 'Config.json'
    monkeypatch.setattr(Config, 'DISCORD_CONFIG_FILE', str(path))
    monkeypatch.setattr(Config, 'DISCORD_BOT_TOKEN', None)
    return path


def test_reads_token_from_file(config_file):
    config_file.write_text(json.dumps({'Discord API Token': 'from-file'}))

    assert bot_main.load_config()['Discord API Token'] == 'from-file'


def test_environment_token_overrides_file(config_file, monkeypatch):
    config_file.write_text(json.dumps({'Discord API Token': 'from-file'}))
    monkeypatch.setattr(Config, 'DISCORD_BOT_TOKEN', 'from-env')

    assert bot_main.load_config()['Discord API Token'] == 'from-env'


def test_environment_token_without_file(config_file, monkeypatch):
    monkeypatch.setattr(Config, 'DISCORD_BOT_TOKEN', 'from-env')

    assert bot_main.load_config() == {'Discord API Token': 'from-env'}


def test_missing_file_without_token(config_file):
    with pytest.raises(ConfigError):
        bot_main.load_config()


def test_main_exits_on_config_error(config_file):
    with pytest.raises(SystemExit) as excinfo:
        bot_main.main()

    assert excinfo.value.code == 1
