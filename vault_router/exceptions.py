"""
Custom exceptions for the vault routing engine.
Provides specific exception types for the per-request failure modes the
HTTP layer maps to client errors, plus startup configuration failures.
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .card_validator import ValidationResult


class VaultRouterError(Exception):
    """Base exception class for vault router errors."""
    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ConfigurationError(VaultRouterError):
    """Raised when the structure document or environment settings are invalid."""
    pass


class MalformedRequestError(VaultRouterError):
    """Raised when a request is missing required top-level fields (filename, target)."""
    pass


class CardValidationError(VaultRouterError):
    """Raised when content is a recognised Card but misses required fields."""
    def __init__(self, result: "ValidationResult"):
        self.result = result
        super().__init__("Validation failed", details="; ".join(result.errors))


class OverrideRefusedError(VaultRouterError):
    """Raised when a human override cannot be applied."""
    pass
