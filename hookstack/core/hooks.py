"""Hooks: event handlers plus ordered, mutating interceptors.

``emit(name, data)`` resolves the interceptor chain for ``name`` right away,
so ordering errors are raised to the caller, then schedules the chain and the
handler dispatch as an asyncio task. Tasks start in creation order, which keeps
events emitted from inside handlers in chronological order instead of
interleaving them with the event being handled.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Any

from hookstack.core.chain import RepeatContinuationMode, run_chain
from hookstack.core.conditions import Conditions, normalize_conditions
from hookstack.core.handlers import Handler, HandlerRecord, HandlerStore
from hookstack.core.logging import configure_hooks_logger
from hookstack.core.resolver import Resolver
from hookstack.core.store import (
    EventKey,
    Interceptor,
    InterceptorRecord,
    InterceptorStore,
    ResolutionCache,
)


@dataclass
class HookStats:
    """Counters for one Hooks instance."""

    events_emitted: int = 0
    chains_completed: int = 0
    handlers_invoked: int = 0
    resolutions: int = 0
    cache_hits: int = 0
    callback_errors: int = 0
    errors_dropped: int = 0


class Hooks:
    """Registry of handlers and interceptors for in-process events.

    Every public method except ``drain`` and ``get_stats`` returns the
    instance so calls can be chained.
    """

    def __init__(
        self,
        repeat_continuation: RepeatContinuationMode = RepeatContinuationMode.WARN,
        logger: logging.Logger | None = None,
        max_stored_errors: int = 1_000,
    ) -> None:
        self.repeat_continuation = repeat_continuation
        self.max_stored_errors = max_stored_errors
        self._log = logger or configure_hooks_logger()
        self._cache = ResolutionCache(self._log)
        self._interceptors = InterceptorStore(self._cache)
        self._handlers = HandlerStore()
        self._resolver = Resolver(self._interceptors, self._cache, self._log)
        self._stats = HookStats()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._errors: list[BaseException] = []

    # Handlers

    def on(self, key: EventKey, handler: Handler) -> "Hooks":
        self._handlers.add(HandlerRecord(key=key, callback=handler, target=handler))
        return self

    def off(self, key: EventKey, handler: Handler) -> "Hooks":
        """Remove the first registration of ``handler`` under ``key``.

        Raises:
            NotFoundError: If ``handler`` is not registered under ``key``.
        """
        self._handlers.remove(key, handler)
        return self

    def once(self, key: EventKey, handler: Handler) -> "Hooks":
        """Register ``handler`` to run for the next matching event only."""

        def fire_once(data: Any, name: Hashable) -> Any:
            self._handlers.discard(record)
            return handler(data, name)

        record = HandlerRecord(key=key, callback=fire_once, target=handler)
        self._handlers.add(record)
        return self

    # Interceptors

    def inject(
        self,
        key: EventKey,
        interceptor_id: str,
        interceptor: Interceptor,
        conditions: Conditions | Mapping[str, Any] | None = None,
    ) -> "Hooks":
        """Register an interceptor under a name or a filter.

        Raises:
            TypeError: If ``interceptor_id`` is not a string.
            DuplicateIdError: If ``interceptor_id`` is already used in the pool
                for ``key``.
        """
        if not isinstance(interceptor_id, str):
            raise TypeError(
                f"interceptor_id must be a str, got {type(interceptor_id).__name__}: {interceptor_id!r}"
            )
        record = InterceptorRecord(
            id=interceptor_id,
            key=key,
            interceptor=interceptor,
            conditions=normalize_conditions(conditions),
        )
        self._interceptors.insert(record)
        self._log.debug(
            f"Injected interceptor {interceptor_id}",
            extra={
                "event_name": key,
                "interceptor_id": interceptor_id,
                "bucket": record.conditions.bucket.value,
            },
        )
        return self

    def remove(self, key: EventKey, interceptor_id: str) -> "Hooks":
        """Unregister an interceptor.

        Raises:
            NotFoundError: If no interceptor with that id is registered under ``key``.
        """
        self._interceptors.remove(key, interceptor_id)
        self._log.debug(
            f"Removed interceptor {interceptor_id}",
            extra={"event_name": key, "interceptor_id": interceptor_id},
        )
        return self

    def validate(self, name: Hashable | None = None) -> "Hooks":
        """Resolve ``name``, or every name with interceptors, without emitting."""
        names = self._interceptors.names() if name is None else [name]
        for event_name in names:
            self._resolver.resolve(event_name)
        return self

    # Events

    def emit(
        self,
        name: Hashable,
        data: Any = None,
        on_complete: Handler | None = None,
    ) -> "Hooks":
        """Run interceptors then handlers for ``name`` on the next loop iteration.

        Must be called with a running event loop. Resolution errors are raised
        here; exceptions from callbacks surface through ``drain``.

        Args:
            name: The concrete event name.
            data: The payload handed to the first interceptor.
            on_complete: Optional callback run before the handlers, with the
                same ``(data, name)`` arguments.
        """
        chain = self._resolver.resolve(name)
        loop = asyncio.get_running_loop()
        self._stats.events_emitted += 1
        self._log.debug(
            f"Emitting {name!r}",
            extra={"event_name": name, "interceptors": len(chain)},
        )

        async def deliver() -> None:
            run_chain(
                name,
                chain,
                data,
                lambda final: self._dispatch(name, final, on_complete),
                spawn=self._spawn,
                repeat_continuation=self.repeat_continuation,
                logger=self._log,
            )

        self._track(loop.create_task(deliver()))
        return self

    def transform(
        self,
        name: Hashable,
        data: Any,
        on_complete: Callable[[Any], Any],
    ) -> "Hooks":
        """Run the interceptor chain for ``name`` now, without dispatching handlers.

        ``on_complete(final_data)`` is called if every interceptor continues.
        """
        chain = self._resolver.resolve(name)
        run_chain(
            name,
            chain,
            data,
            on_complete,
            spawn=self._spawn,
            repeat_continuation=self.repeat_continuation,
            logger=self._log,
        )
        return self

    def _dispatch(self, name: Hashable, data: Any, on_complete: Handler | None) -> None:
        self._stats.chains_completed += 1
        handlers = [record.callback for record in self._handlers.matching(name)]
        if on_complete is not None:
            handlers.insert(0, on_complete)

        self._log.debug(
            f"Dispatching {name!r} to {len(handlers)} handlers",
            extra={"event_name": name, "handlers": len(handlers)},
        )

        for handler in handlers:
            self._stats.handlers_invoked += 1
            result = handler(data, name)
            if inspect.isawaitable(result):
                self._spawn(result)

    # Tasks

    def _spawn(self, awaitable: Awaitable[Any]) -> asyncio.Future[Any]:
        task = asyncio.ensure_future(awaitable, loop=asyncio.get_running_loop())
        self._track(task)
        return task

    def _track(self, task: asyncio.Future[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._stats.callback_errors += 1
            if self._errors and len(self._errors) >= self.max_stored_errors:
                # Drop oldest to make room (FIFO eviction)
                self._errors.pop(0)
                self._stats.errors_dropped += 1
            self._errors.append(error)
            self._log.error(
                f"Hook callback raised exception: {error!r}",
                extra={"error": str(error)},
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait for every scheduled emission and callback task to finish.

        Raises:
            Exception: The oldest stored exception raised by a callback since
                the last drain, if any. At most ``max_stored_errors`` are kept.
        """
        while self._tasks:
            await asyncio.wait(list(self._tasks))

        if self._errors:
            errors, self._errors = self._errors, []
            raise errors[0]

    def get_stats(self) -> HookStats:
        """Return a snapshot of current statistics."""
        return HookStats(
            events_emitted=self._stats.events_emitted,
            chains_completed=self._stats.chains_completed,
            handlers_invoked=self._stats.handlers_invoked,
            resolutions=self._resolver.resolutions,
            cache_hits=self._resolver.cache_hits,
            callback_errors=self._stats.callback_errors,
            errors_dropped=self._stats.errors_dropped,
        )
