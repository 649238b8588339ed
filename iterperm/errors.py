"""Exceptions raised by iterperm.

Write failures are not wrapped: the dispatcher re-raises the sink's own
``OSError`` so callers see exactly what the sink reported.
"""


class PermutationError(Exception):
    """Base class for iterperm errors."""


class InputTooLarge(PermutationError, ValueError):
    """The input does not fit the fixed capacity of the compact engine."""

    def __init__(self, length: int, capacity: int):
        self.length = length
        self.capacity = capacity
        super().__init__(
            f"Cannot use the compact engine: the permutation length is "
            f"{length} and the maximum length is {capacity}"
        )


class EncodingError(PermutationError, RuntimeError):
    """Counting the input produced an inconsistent frequency map."""


class ConfigError(PermutationError, ValueError):
    """Invalid pipeline configuration, rejected before generation starts."""
