import dataclasses

import pytest

from vault_router.config_manager import (
    DEFAULT_STRUCTURE_FILE,
    AppConfig,
    parse_pin_registry,
)
from vault_router.exceptions import ConfigurationError

ENV_KEYS = [
    'VAULT_ROOT', 'STRUCTURE_FILE_PATH', 'DEFAULT_LOOP', 'UNSPECIFIED_BRAND',
    'OVERRIDE_PINS', 'LOG_MAX_BYTES', 'LOG_BACKUP_COUNT', 'LOG_LEVEL',
    'MAX_CONTENT_LENGTH',
]


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    # setenv first so monkeypatch removes anything load_dotenv adds during the test
    for key in ENV_KEYS:
        monkeypatch.setenv(key, 'placeholder')
        monkeypatch.delenv(key)
    return str(tmp_path / 'absent.env')


def test_parse_pin_registry():
    assert parse_pin_registry("1066=Vault Owner; 4791 = Operations Lead ;") == {
        '1066': 'Vault Owner',
        '4791': 'Operations Lead',
    }
    assert parse_pin_registry("") == {}


@pytest.mark.parametrize("raw", ["abc=Owner", "1066", "1066=", "=Owner"])
def test_parse_pin_registry_rejects_bad_entries(raw):
    with pytest.raises(ConfigurationError):
        parse_pin_registry(raw)


def test_defaults(clean_env):
    config = AppConfig.load_from_env(clean_env)
    assert config.VAULT_ROOT == "Command Vault"
    assert config.STRUCTURE_FILE_PATH == DEFAULT_STRUCTURE_FILE
    assert config.DEFAULT_LOOP == "Genesis_01"
    assert config.UNSPECIFIED_BRAND == "UNSPECIFIED_BRAND"
    assert config.OVERRIDE_PINS == {'1066': 'Vault Owner', '4791': 'Operations Lead'}
    assert config.MAX_CONTENT_LENGTH == 2 * 1024 * 1024


def test_values_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv('VAULT_ROOT', 'Team Vault/')
    monkeypatch.setenv('OVERRIDE_PINS', '1234=Tester')
    monkeypatch.setenv('LOG_MAX_BYTES', '2048')
    monkeypatch.setenv('MAX_CONTENT_LENGTH', '4096')
    monkeypatch.setenv('DEFAULT_LOOP', '"Orion_01"')
    config = AppConfig.load_from_env(clean_env)
    assert config.VAULT_ROOT == 'Team Vault'
    assert config.OVERRIDE_PINS == {'1234': 'Tester'}
    assert config.LOG_MAX_BYTES == 2048
    assert config.MAX_CONTENT_LENGTH == 4096
    assert config.DEFAULT_LOOP == 'Orion_01'


def test_empty_value_uses_default(clean_env, monkeypatch):
    monkeypatch.setenv('DEFAULT_LOOP', '')
    assert AppConfig.load_from_env(clean_env).DEFAULT_LOOP == 'Genesis_01'


def test_bad_integer_raises(clean_env, monkeypatch):
    monkeypatch.setenv('LOG_BACKUP_COUNT', 'five')
    with pytest.raises(ConfigurationError):
        AppConfig.load_from_env(clean_env)


def test_bad_pins_raise(clean_env, monkeypatch):
    monkeypatch.setenv('OVERRIDE_PINS', 'owner-without-code')
    with pytest.raises(ConfigurationError):
        AppConfig.load_from_env(clean_env)


def test_blank_vault_root_raises(clean_env, monkeypatch):
    monkeypatch.setenv('VAULT_ROOT', '/')
    with pytest.raises(ConfigurationError):
        AppConfig.load_from_env(clean_env)


def test_dotenv_file_is_loaded(clean_env, tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text("UNSPECIFIED_BRAND=NO_BRAND\nLOG_LEVEL=DEBUG\n", encoding='utf-8')
    config = AppConfig.load_from_env(str(env_file))
    assert config.UNSPECIFIED_BRAND == 'NO_BRAND'
    assert config.LOG_LEVEL == 'DEBUG'


def test_environment_wins_over_dotenv(clean_env, monkeypatch, tmp_path):
    env_file = tmp_path / '.env'
    env_file.write_text("DEFAULT_LOOP=FromFile_01\n", encoding='utf-8')
    monkeypatch.setenv('DEFAULT_LOOP', 'FromEnv_02')
    assert AppConfig.load_from_env(str(env_file)).DEFAULT_LOOP == 'FromEnv_02'


def test_every_setting_is_an_env_key():
    names = {f.name for f in dataclasses.fields(AppConfig)}
    assert names == set(ENV_KEYS) | {'LOG_FILE_PATH'}
