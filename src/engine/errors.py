"""
Exception types raised by the drill engine and its stores.
"""


class DrillError(Exception):
    """Base class for number-drills errors."""
    pass


class FactKeyError(DrillError, ValueError):
    """Raised when a fact key does not match any known encoding."""

    def __init__(self, key: str):
        super().__init__(f"Unrecognized fact key: {key!r}")
        self.key = key


class ProgressImportError(DrillError):
    """Raised when an imported progress document cannot be parsed."""
    pass
