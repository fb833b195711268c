"""Interceptor resolution: validation, bucketing, ordering and caching.

Resolving a concrete event name:

1. Return the cached chain if there is one.
2. Merge the name's own pool with every filter-pool record that accepts it.
3. Check ``depends`` and ``conflicts`` across the whole merged pool.
4. Split the pool into pre/mid/post buckets.
5. Order each bucket by its ``after``/``before`` constraints. References to
   ids outside the bucket are ignored.
6. Concatenate pre + mid + post and cache the result.
"""

import logging
from collections.abc import Hashable

from hookstack.core.conditions import Bucket
from hookstack.core.errors import (
    CircularDependencyError,
    ConflictError,
    DuplicateIdError,
    HookError,
    MissingDependencyError,
)
from hookstack.core.store import Interceptor, InterceptorRecord, InterceptorStore, ResolutionCache


def order_bucket(records: dict[str, InterceptorRecord]) -> list[InterceptorRecord]:
    """Topologically order one bucket with a repeated-pass worklist.

    Each pass emits, in insertion order, every unresolved record that neither
    waits on an unresolved ``after`` id nor is named in the ``before`` list of
    another unresolved record. Ties therefore keep registration order.

    Raises:
        CircularDependencyError: If a pass makes no progress.
    """
    unresolved = dict(records)
    result: list[InterceptorRecord] = []

    while unresolved:
        waiting: set[str] = set()
        for record_id, record in unresolved.items():
            if any(after in unresolved for after in record.conditions.after):
                waiting.add(record_id)
            waiting.update(before for before in record.conditions.before if before in unresolved)

        ready = [record for record_id, record in unresolved.items() if record_id not in waiting]
        if not ready:
            raise CircularDependencyError(unresolved)

        for record in ready:
            result.append(record)
            del unresolved[record.id]

    return result


class Resolver:
    """Builds and caches the ordered interceptor chain for each event name."""

    def __init__(
        self,
        store: InterceptorStore,
        cache: ResolutionCache,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self._log = logger or logging.getLogger("hookstack.hooks")
        self.resolutions = 0
        self.cache_hits = 0

    def pool(self, name: Hashable) -> dict[str, InterceptorRecord]:
        """Collect every record that applies to ``name``.

        Raises:
            DuplicateIdError: If a filter-keyed record reuses an id from the
                name's own pool.
        """
        result = {record.id: record for record in self.store.named(name)}
        for record in self.store.filtered(name):
            if record.id in result:
                raise DuplicateIdError(record.id, name)
            result[record.id] = record
        return result

    @staticmethod
    def verify(pool: dict[str, InterceptorRecord]) -> None:
        """Check ``depends`` and ``conflicts`` across the whole pool."""
        for record in pool.values():
            for depend in record.conditions.depends:
                if depend not in pool:
                    raise MissingDependencyError(record.id, depend)
            for conflict in record.conditions.conflicts:
                if conflict in pool:
                    raise ConflictError(record.id, conflict)

    @staticmethod
    def partition(
        pool: dict[str, InterceptorRecord],
    ) -> dict[Bucket, dict[str, InterceptorRecord]]:
        buckets: dict[Bucket, dict[str, InterceptorRecord]] = {bucket: {} for bucket in Bucket}
        for record in pool.values():
            buckets[record.conditions.bucket][record.id] = record
        return buckets

    def resolve_records(self, name: Hashable) -> list[InterceptorRecord]:
        """Validate and order the pool for ``name`` without touching the cache."""
        pool = self.pool(name)
        self.verify(pool)
        ordered: list[InterceptorRecord] = []
        for records in self.partition(pool).values():
            ordered.extend(order_bucket(records))
        return ordered

    def resolve(self, name: Hashable) -> tuple[Interceptor, ...]:
        """Return the ordered interceptor chain for ``name``.

        The chain is computed at most once between mutations that affect it;
        repeated calls return the identical tuple.
        """
        cached = self.cache.get(name)
        if cached is not None:
            self.cache_hits += 1
            return cached

        try:
            records = self.resolve_records(name)
        except HookError as e:
            self._log.error(
                f"Interceptor resolution failed for {name!r}: {e}",
                extra={"event_name": name, "error": str(e)},
            )
            raise

        chain = tuple(record.interceptor for record in records)
        self.cache.put(name, chain)
        self.resolutions += 1
        self._log.debug(
            f"Resolved {len(chain)} interceptors for {name!r}",
            extra={"event_name": name, "interceptors": [record.id for record in records]},
        )
        return chain
