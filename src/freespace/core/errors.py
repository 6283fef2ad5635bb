"""
Packing errors.

"Does not fit" is not an error: packers return ``None`` for it.
The classes here cover caller mistakes and internal defects.
"""


class PackingError(Exception):
    """Base class for packing errors."""


class InvalidDimensionsError(PackingError, ValueError):
    """A container or box extent is not a positive number."""


class InvariantViolationError(PackingError):
    """A placement or free list broke the non-overlap invariant."""


class UnsupportedHeuristicError(PackingError, NotImplementedError):
    """The requested placement rule exists but is not implemented."""


class ConfigError(PackingError):
    """Settings could not be loaded or failed validation."""


def require_positive(**dims: int) -> None:
    """Raise InvalidDimensionsError unless every keyword value is > 0."""
    for name, value in dims.items():
        if value <= 0:
            raise InvalidDimensionsError(f"{name} must be positive, got {value}")
