"""
Exceptions raised by the storefront core.
"""


class ShopError(Exception):
    """Base class for storefront errors."""


class ValidationFailed(ShopError):
    """An operation rejected its input; ``message`` is shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QuotaExceededError(ShopError):
    """The key-value store has no room for a write."""
