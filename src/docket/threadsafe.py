"""Thread-safe building blocks for memoization shared across workers.

Documentation runs resolve repositories on a pool of worker threads, and
several of them can reach the same registry metadata, the same release or
the same integration package at once. These primitives guarantee that the
expensive work behind each of those is done exactly once:

- Deferral: a value computed at most once, on first request.
- ThreadsafeIndex: a key -> value mapping whose values are created at most
  once per key.
- ThreadsafeSet: a set whose every operation, iteration included, is
  serialized by a lock.

Deferral and ThreadsafeIndex use double-checked locking: reads of an
already computed value never take the lock.

Example:
    versions = Deferral(lambda: client.fetch_versions("logstash-input-beats"))
    versions.get()  # fetches
    versions.get()  # cached

    plugins = ThreadsafeIndex(lambda version: ArtifactPlugin(repo, version))
    plugins.fetch("9.0.0") is plugins.fetch("9.0.0")  # True
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


class Deferral(Generic[T]):
    """A value that is generated at most once, if and when it is requested.

    If the generator raises, nothing is cached and the next call to get()
    tries again.
    """

    __slots__ = ("_generated", "_generator", "_lock", "_value")

    def __init__(self, generator: Callable[[], T]) -> None:
        self._generator: Callable[[], T] | None = generator
        self._generated = False
        self._value: T | None = None
        self._lock = threading.Lock()

    @classmethod
    def of(cls, value: T) -> Deferral[T]:
        """Create an already-resolved deferral."""
        deferral = cls(lambda: value)
        deferral.get()
        return deferral

    @property
    def generated(self) -> bool:
        return self._generated

    def get(self) -> T:
        """Return the value, generating it on first call.

        Returns:
            The generated value. Concurrent first callers all receive the
            result of a single generator call.
        """
        if self._generated:
            return self._value  # type: ignore[return-value]

        with self._lock:
            # another thread may have won while we waited for the lock
            if not self._generated and self._generator is not None:
                self._value = self._generator()
                self._generator = None
                self._generated = True

        return self._value  # type: ignore[return-value]


class ThreadsafeIndex(Generic[K, V]):
    """Get-or-create mapping backed by a generator function.

    The generator is called at most once per key; every caller asking for a
    key receives the identical value object.
    """

    def __init__(self, generator: Callable[[K], V]) -> None:
        self._index: dict[K, V] = {}
        self._lock = threading.Lock()
        self._generator = generator

    def fetch(self, key: K) -> V:
        """Return the value for key, creating it with the generator if needed.

        Args:
            key: Any hashable key (None included).

        Returns:
            The value stored for the key.
        """
        try:
            return self._index[key]
        except KeyError:
            pass

        with self._lock:
            if key in self._index:
                return self._index[key]
            value = self._generator(key)
            self._index[key] = value
            return value

    def items(self) -> list[tuple[K, V]]:
        """Snapshot of the stored entries, without generating more."""
        with self._lock:
            return list(self._index.items())

    def values(self) -> list[V]:
        with self._lock:
            return list(self._index.values())

    def clear(self) -> None:
        with self._lock:
            self._index.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._index

    def __len__(self) -> int:
        with self._lock:
            return len(self._index)


class ThreadsafeSet(Generic[T]):
    """A set whose operations are all serialized by a single lock.

    Only the operations the pipelines need are exposed: claiming an item
    (add), membership, size and iteration over a snapshot.
    """

    def __init__(self) -> None:
        self._items: set[T] = set()
        self._lock = threading.Lock()

    def add(self, item: T) -> bool:
        """Add an item.

        Returns:
            True if the item was not present before, False otherwise. This
            makes `add` usable as an atomic check-and-claim.
        """
        with self._lock:
            if item in self._items:
                return False
            self._items.add(item)
            return True

    def __contains__(self, item: object) -> bool:
        with self._lock:
            return item in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        with self._lock:
            snapshot = list(self._items)
        return iter(snapshot)

    def sorted(self) -> list[T]:
        with self._lock:
            return sorted(self._items)  # type: ignore[type-var]
