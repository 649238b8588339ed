"""Runtime configuration for the iterperm package.

Three settings control the pipeline:

* ``capacity`` -- the longest input the compact engine accepts.
* ``max_workers`` -- how many chunk writers may be in flight at once.
* ``chunk_size_limit`` -- upper bound for :func:`default_chunk_size`.

Resolution order for each setting (first match wins):
    1. Programmatic override via the matching ``set_*`` function.
    2. The ``ITERPERM_*`` environment variable.
    3. The built-in default.

Examples:
    Allow longer inputs on the compact path from the shell::

        export ITERPERM_CAPACITY=256

    Force a single outstanding writer programmatically::

        import iterperm
        iterperm.set_max_workers(1)

    Restore the default resolution order::

        iterperm.set_max_workers(None)
"""

from __future__ import annotations

import operator
import os

from iterperm.errors import ConfigError

DEFAULT_CAPACITY = 128
DEFAULT_MAX_WORKERS = 4
DEFAULT_CHUNK_SIZE_LIMIT = 1 << 16

_ENV_VARS = {
    "capacity": "ITERPERM_CAPACITY",
    "max_workers": "ITERPERM_MAX_WORKERS",
    "chunk_size_limit": "ITERPERM_CHUNK_SIZE_LIMIT",
}
_DEFAULTS = {
    "capacity": DEFAULT_CAPACITY,
    "max_workers": DEFAULT_MAX_WORKERS,
    "chunk_size_limit": DEFAULT_CHUNK_SIZE_LIMIT,
}

# Programmatic overrides; a missing entry means "not overridden".
_overrides: dict[str, int] = {}


def positive_int(value: object, name: str) -> int:
    """Validate that *value* is a positive integer and return it.

    Raises:
        ConfigError: If *value* is not an integer or is less than one.
            Anything implementing ``__index__`` counts as an integer, so
            ``numpy`` integers are accepted; ``bool`` is rejected.
    """
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        value = operator.index(value)
    except TypeError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if value < 1:
        raise ConfigError(f"{name} must be at least one, got {value}")
    return value


def _resolve(name: str) -> int:
    if name in _overrides:
        return _overrides[name]
    env_name = _ENV_VARS[name]
    raw = os.environ.get(env_name, "").strip()
    if raw:
        try:
            parsed = int(raw)
        except ValueError:
            raise ConfigError(
                f"{env_name} must be an integer, got {raw!r}"
            ) from None
        return positive_int(parsed, env_name)
    return _DEFAULTS[name]


def _override(name: str, value: int | None) -> None:
    if value is None:
        _overrides.pop(name, None)
    else:
        _overrides[name] = positive_int(value, name)


def get_capacity() -> int:
    """Return the maximum permutation length of the compact engine."""
    return _resolve("capacity")


def set_capacity(value: int | None) -> None:
    """Override the compact engine capacity; ``None`` clears the override."""
    _override("capacity", value)


def get_max_workers() -> int:
    """Return the number of chunk writers allowed in flight."""
    return _resolve("max_workers")


def set_max_workers(value: int | None) -> None:
    """Override the writer bound; ``None`` clears the override."""
    _override("max_workers", value)


def get_chunk_size_limit() -> int:
    """Return the largest chunk size :func:`default_chunk_size` picks."""
    return _resolve("chunk_size_limit")


def set_chunk_size_limit(value: int | None) -> None:
    """Override the chunk size limit; ``None`` clears the override."""
    _override("chunk_size_limit", value)


def reset() -> None:
    """Drop every programmatic override."""
    _overrides.clear()
