"""Handler registration bookkeeping."""

from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from hookstack.core.errors import NotFoundError
from hookstack.core.store import EventKey, is_filter

Handler = Callable[[Any, Hashable], Any]


@dataclass(eq=False, slots=True)
class HandlerRecord:
    """A registered handler.

    ``callback`` is what dispatch invokes; ``target`` is the handler the caller
    registered and is what ``off`` matches by identity. They differ only for
    registrations made through ``once``.
    """

    key: EventKey
    callback: Handler
    target: Handler

    def matches(self, name: Hashable) -> bool:
        if is_filter(self.key):
            return bool(self.key(name))
        return self.key == name


class HandlerStore:
    """Handlers by concrete name, plus one list for filter-keyed handlers."""

    def __init__(self) -> None:
        self._named: dict[Hashable, list[HandlerRecord]] = {}
        self._filtered: list[HandlerRecord] = []

    def _list_for(self, key: EventKey) -> list[HandlerRecord]:
        if is_filter(key):
            return self._filtered
        return self._named.get(key, [])

    def add(self, record: HandlerRecord) -> None:
        if is_filter(record.key):
            self._filtered.append(record)
        else:
            self._named.setdefault(record.key, []).append(record)

    def discard(self, record: HandlerRecord) -> bool:
        """Remove exactly ``record`` if it is still registered."""
        records = self._list_for(record.key)
        for i, candidate in enumerate(records):
            if candidate is record:
                del records[i]
                self._drop_if_empty(record.key)
                return True
        return False

    def remove(self, key: EventKey, handler: Handler) -> HandlerRecord:
        """Remove the first registration of ``handler`` under ``key``.

        Raises:
            NotFoundError: If ``handler`` is not registered under ``key``.
        """
        records = self._list_for(key)
        for i, record in enumerate(records):
            if record.target is handler and (not is_filter(key) or record.key is key):
                del records[i]
                self._drop_if_empty(key)
                return record
        raise NotFoundError(f"{key!r} handler not found")

    def _drop_if_empty(self, key: EventKey) -> None:
        if not is_filter(key) and not self._named.get(key, True):
            del self._named[key]

    def matching(self, name: Hashable) -> list[HandlerRecord]:
        """Snapshot of handlers for ``name``: exact matches, then accepting filters."""
        result = list(self._named.get(name, []))
        result.extend(record for record in self._filtered if record.matches(name))
        return result
