"""Custom exceptions for the application."""


class InventoryError(Exception):
    """Base class for inventory errors."""

    pass


class TransportError(InventoryError):
    """Exception raised when an inventory pool cannot be fetched."""

    pass


class PoolParseError(TransportError):
    """Exception raised when a pool document cannot be parsed."""

    pass


class InvalidPatternError(InventoryError, ValueError):
    """Exception raised when a regular expression does not compile."""

    def __init__(self, pattern: str, reason: str = ""):
        self.pattern = pattern
        self.reason = reason
        detail = f"Invalid pattern {pattern!r}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class KeyNotFoundError(InventoryError, KeyError):
    """Exception raised when a custom VM attribute is missing."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Custom attribute not found: {self.key}"
