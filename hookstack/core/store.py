"""Interceptor storage and the resolved-chain cache.

Interceptors live in pools keyed by the event key they were registered under.
Concrete names each get their own pool; every filter-keyed interceptor shares
a single filter pool because a filter may match any name. Mutating a pool
invalidates the cached chains that pool could feed:

- concrete key: only that name's cached chain
- filter key: the whole cache
"""

import logging
from collections.abc import Callable, Hashable, Iterator
from dataclasses import dataclass
from typing import Any

from hookstack.core.conditions import Conditions
from hookstack.core.errors import DuplicateIdError, NotFoundError

Filter = Callable[[Hashable], bool]
EventKey = Hashable | Filter
Continuation = Callable[[Any], None]
Interceptor = Callable[[Any, Continuation, Hashable], Any]


def is_filter(key: EventKey) -> bool:
    """Return True when ``key`` is a filter predicate rather than a concrete name."""
    return callable(key)


@dataclass(frozen=True, slots=True)
class InterceptorRecord:
    """A registered interceptor."""

    id: str
    key: EventKey
    interceptor: Interceptor
    conditions: Conditions

    def matches(self, name: Hashable) -> bool:
        if is_filter(self.key):
            return bool(self.key(name))
        return self.key == name


class ResolutionCache:
    """Maps concrete event names to their resolved interceptor chain.

    A name with no entry is unresolved.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._chains: dict[Hashable, tuple[Interceptor, ...]] = {}
        self._log = logger or logging.getLogger("hookstack.hooks")

    def get(self, name: Hashable) -> tuple[Interceptor, ...] | None:
        return self._chains.get(name)

    def put(self, name: Hashable, chain: tuple[Interceptor, ...]) -> None:
        self._chains[name] = chain

    def invalidate(self, name: Hashable) -> None:
        if self._chains.pop(name, None) is not None:
            self._log.debug(
                f"Invalidated resolved chain for {name!r}",
                extra={"event_name": name},
            )

    def clear(self) -> None:
        if self._chains:
            self._log.debug(
                "Invalidated all resolved chains",
                extra={"invalidated": len(self._chains)},
            )
        self._chains.clear()

    def __contains__(self, name: Hashable) -> bool:
        return name in self._chains

    def __len__(self) -> int:
        return len(self._chains)


class InterceptorStore:
    """Owns the interceptor pools of one Hooks instance."""

    def __init__(self, cache: ResolutionCache) -> None:
        self._cache = cache
        self._named: dict[Hashable, dict[str, InterceptorRecord]] = {}
        self._filtered: dict[str, InterceptorRecord] = {}

    def _invalidate(self, key: EventKey) -> None:
        if is_filter(key):
            self._cache.clear()
        else:
            self._cache.invalidate(key)

    def insert(self, record: InterceptorRecord) -> None:
        """Add a record to the pool for its key.

        Raises:
            DuplicateIdError: If the pool already holds a record with this id.
        """
        if is_filter(record.key):
            pool = self._filtered
        else:
            pool = self._named.setdefault(record.key, {})

        if record.id in pool:
            raise DuplicateIdError(record.id, None if is_filter(record.key) else record.key)

        pool[record.id] = record
        self._invalidate(record.key)

    def remove(self, key: EventKey, interceptor_id: str) -> InterceptorRecord:
        """Remove and return the record with ``interceptor_id`` under ``key``.

        Raises:
            NotFoundError: If no such record exists.
        """
        if is_filter(key):
            pool = self._filtered
        else:
            pool = self._named.get(key, {})

        if interceptor_id not in pool:
            raise NotFoundError(f"{key!r} interceptor {interceptor_id} not found")

        record = pool.pop(interceptor_id)
        if not is_filter(key) and not pool:
            del self._named[key]
        self._invalidate(key)
        return record

    def named(self, name: Hashable) -> Iterator[InterceptorRecord]:
        """Yield records registered under exactly ``name`` in insertion order."""
        yield from self._named.get(name, {}).values()

    def filtered(self, name: Hashable) -> Iterator[InterceptorRecord]:
        """Yield filter-keyed records whose filter accepts ``name``."""
        for record in self._filtered.values():
            if record.matches(name):
                yield record

    def names(self) -> list[Hashable]:
        """Return every concrete name that has interceptors registered."""
        return list(self._named)

    def __len__(self) -> int:
        return len(self._filtered) + sum(len(pool) for pool in self._named.values())
