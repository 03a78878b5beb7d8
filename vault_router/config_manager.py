"""
Configuration management for the vault routing engine.
Provides a centralized, type-safe configuration with validation.

Values come from the environment (optionally seeded from a .env file via
python-dotenv). The allowed-roots structure document itself is loaded by
vault_structure; this module only knows where it lives.
"""
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_STRUCTURE_FILE = os.path.join(PACKAGE_DIR, "config", "CommandVaultStructure.md")

# Placeholder override owners (Phase 1). Not a credential store.
DEFAULT_OVERRIDE_PINS = "1066=Vault Owner;4791=Operations Lead"


def parse_pin_registry(raw: str) -> Dict[str, str]:
    """
    Parse an OVERRIDE_PINS value of the form ``code=Owner;code=Owner``.

    Raises:
        ConfigurationError: If an entry is not ``code=Owner`` or the code is not numeric
    """
    registry: Dict[str, str] = {}
    for entry in (raw or "").split(";"):
        entry = entry.strip()
        if not entry:
            continue
        code, sep, owner = entry.partition("=")
        code, owner = code.strip(), owner.strip()
        if not sep or not code.isdigit() or not owner:
            raise ConfigurationError("Invalid OVERRIDE_PINS entry", details=entry)
        registry[code] = owner
    return registry


@dataclass
class AppConfig:
    """Application configuration with validation and type safety."""
    # --- Vault Layout ---
    VAULT_ROOT: str = "Command Vault"
    STRUCTURE_FILE_PATH: str = DEFAULT_STRUCTURE_FILE
    DEFAULT_LOOP: str = "Genesis_01"
    UNSPECIFIED_BRAND: str = "UNSPECIFIED_BRAND"

    # --- Override Gate ---
    OVERRIDE_PINS: Dict[str, str] = field(default_factory=lambda: parse_pin_registry(DEFAULT_OVERRIDE_PINS))

    # --- Logging Configuration ---
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5
    LOG_LEVEL: str = "INFO"

    # --- HTTP ---
    MAX_CONTENT_LENGTH: int = 2 * 1024 * 1024  # card uploads are small text files

    @classmethod
    def load_from_env(cls, dotenv_path: Optional[str] = None) -> 'AppConfig':
        """
        Creates a configuration instance from environment variables.

        Returns:
            AppConfig: Validated configuration instance

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        load_dotenv(dotenv_path=dotenv_path)

        def get_env(key: str, default: str) -> str:
            value = os.getenv(key)
            if value is not None:
                value = value.strip('"').strip("'")
            return value if value else default

        def get_int(key: str, default: int) -> int:
            raw = get_env(key, str(default))
            try:
                return int(raw)
            except ValueError:
                raise ConfigurationError(f"{key} must be an integer", details=raw)

        try:
            config = cls(
                VAULT_ROOT=get_env("VAULT_ROOT", cls.VAULT_ROOT).rstrip("/"),
                STRUCTURE_FILE_PATH=get_env("STRUCTURE_FILE_PATH", cls.STRUCTURE_FILE_PATH),
                DEFAULT_LOOP=get_env("DEFAULT_LOOP", cls.DEFAULT_LOOP),
                UNSPECIFIED_BRAND=get_env("UNSPECIFIED_BRAND", cls.UNSPECIFIED_BRAND),
                OVERRIDE_PINS=parse_pin_registry(get_env("OVERRIDE_PINS", DEFAULT_OVERRIDE_PINS)),
                LOG_FILE_PATH=get_env("LOG_FILE_PATH", cls.LOG_FILE_PATH),
                LOG_MAX_BYTES=get_int("LOG_MAX_BYTES", cls.LOG_MAX_BYTES),
                LOG_BACKUP_COUNT=get_int("LOG_BACKUP_COUNT", cls.LOG_BACKUP_COUNT),
                LOG_LEVEL=get_env("LOG_LEVEL", cls.LOG_LEVEL),
                MAX_CONTENT_LENGTH=get_int("MAX_CONTENT_LENGTH", cls.MAX_CONTENT_LENGTH),
            )
        except ConfigurationError as e:
            logging.error(f"Configuration error: {e.message} ({e.details})")
            raise

        if not config.VAULT_ROOT:
            raise ConfigurationError("VAULT_ROOT must not be empty")
        return config


# Create a global config instance
try:
    app_config = AppConfig.load_from_env()
except ConfigurationError as e:
    logging.critical(f"Failed to load configuration: {e}")
    raise
