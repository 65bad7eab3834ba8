"""Change Filter: suppress handler calls while a derived key stays the same.

Invariants:
    - First call always reaches the handler and records the key
    - Later calls reach the handler only when the new key differs from the stored one
    - A custom equals() strictly overrides ==; the default comparison is never consulted then
    - Each wrap() returns an independent instance; no shared or global state
    - Suppressed calls return None and have no side effect besides the counter

Design Decisions:
    - Compare-and-update runs under a threading.Lock so one instance can be fed by
      several sources; the wrapped handler runs outside the lock
    - The key is recorded before the handler runs: a failing handler still consumed that key
"""

import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from msggate.core.validated import ValidatedMessage

K = TypeVar("K")

_NO_KEY = object()


class ChangeFilter(Generic[K]):
    """Handler wrapper with its own last-seen key."""

    def __init__(
        self,
        handler: Callable[[ValidatedMessage], Any],
        key_of: Callable[[ValidatedMessage], K],
        equals: Callable[[K, K], bool] | None = None,
    ):
        self._handler = handler
        self._key_of = key_of
        self._equals = equals
        self._last_key: Any = _NO_KEY
        self._lock = threading.Lock()
        self._invocations = 0
        self._suppressed = 0

    def __call__(self, message: ValidatedMessage) -> Any:
        key = self._key_of(message)
        with self._lock:
            if self._last_key is not _NO_KEY and self._same(self._last_key, key):
                self._suppressed += 1
                return None
            self._last_key = key
            self._invocations += 1
        return self._handler(message)

    def _same(self, previous: K, current: K) -> bool:
        if self._equals is not None:
            return bool(self._equals(previous, current))
        return previous == current

    @property
    def name(self) -> str:
        inner = getattr(self._handler, "__qualname__", None) or type(self._handler).__name__
        return f"distinct({inner})"

    @property
    def has_key(self) -> bool:
        return self._last_key is not _NO_KEY

    @property
    def invocations(self) -> int:
        return self._invocations

    @property
    def suppressed(self) -> int:
        return self._suppressed


def wrap(
    handler: Callable[[ValidatedMessage], Any],
    key_of: Callable[[ValidatedMessage], K],
    equals: Callable[[K, K], bool] | None = None,
) -> ChangeFilter[K]:
    """Wrap handler so it only fires when key_of(message) changes."""
    return ChangeFilter(handler, key_of, equals)
