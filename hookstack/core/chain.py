"""Continuation-passing execution of a resolved interceptor chain."""

import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable, Sequence
from enum import Enum
from typing import Any

from hookstack.core.errors import ContinuationError
from hookstack.core.store import Interceptor


class RepeatContinuationMode(Enum):
    """What to do when an interceptor calls its continuation twice.

    WARN: Log a warning and ignore the repeated call.
    RAISE: Raise ContinuationError from the repeated call.
    """

    WARN = "warn"
    RAISE = "raise"


class ChainRun:
    """A cursor over one execution of an interceptor chain.

    The interceptor at ``position`` receives ``(data, advance, name)``. Calling
    ``advance(new_data)`` moves the cursor forward; never calling it leaves the
    cursor parked and the chain halted, with ``on_complete`` never reached.

    A continuation called synchronously from inside its interceptor only marks
    the cursor ready, and the driving loop picks up the next step, so the stack
    does not grow with the chain length. A continuation called later (from a
    task or a loop callback) drives the rest of the chain from that call.
    """

    def __init__(
        self,
        name: Hashable,
        chain: Sequence[Interceptor],
        on_complete: Callable[[Any], Any],
        spawn: Callable[[Awaitable[Any]], Any] | None = None,
        repeat_continuation: RepeatContinuationMode = RepeatContinuationMode.WARN,
        logger: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.chain = chain
        self.on_complete = on_complete
        self.position = 0
        self.completed = False
        self._spawn = spawn
        self._repeat_continuation = repeat_continuation
        self._log = logger or logging.getLogger("hookstack.hooks")
        self._data: Any = None
        self._driving = False
        self._ready = False

    @property
    def halted(self) -> bool:
        """True while the cursor is parked waiting on a continuation."""
        return not self.completed and not self._driving

    def start(self, data: Any) -> None:
        self._data = data
        self._drive()

    def _continuation(self, step: int) -> Callable[..., None]:
        def advance(data: Any = None) -> None:
            self._advance(step, data)

        return advance

    def _advance(self, step: int, data: Any) -> None:
        if step != self.position or self.completed:
            if self._repeat_continuation is RepeatContinuationMode.RAISE:
                raise ContinuationError(self.name, step)
            self._log.warning(
                f"Ignoring repeated continuation from interceptor #{step} of {self.name!r}",
                extra={"event_name": self.name, "step": step},
            )
            return

        self.position += 1
        self._data = data
        if self._driving:
            self._ready = True
        else:
            self._drive()

    def _drive(self) -> None:
        self._driving = True
        try:
            while True:
                if self.position >= len(self.chain):
                    self.completed = True
                    self._run(self.on_complete, self._data)
                    return

                self._ready = False
                interceptor = self.chain[self.position]
                self._run(interceptor, self._data, self._continuation(self.position), self.name)
                if not self._ready:
                    return
        finally:
            self._driving = False

    def _run(self, func: Callable[..., Any], *args: Any) -> None:
        result = func(*args)
        if inspect.isawaitable(result):
            if self._spawn is None:
                if inspect.iscoroutine(result):
                    result.close()
                raise TypeError(
                    f"{getattr(func, '__name__', func)!s} returned an awaitable "
                    "but this chain has no task spawner"
                )
            try:
                self._spawn(result)
            except BaseException:
                if inspect.iscoroutine(result):
                    result.close()
                raise


def run_chain(
    name: Hashable,
    chain: Sequence[Interceptor],
    data: Any,
    on_complete: Callable[[Any], Any],
    spawn: Callable[[Awaitable[Any]], Any] | None = None,
    repeat_continuation: RepeatContinuationMode = RepeatContinuationMode.WARN,
    logger: logging.Logger | None = None,
) -> ChainRun:
    """Drive ``chain`` over ``data`` and return the cursor."""
    run = ChainRun(
        name,
        chain,
        on_complete,
        spawn=spawn,
        repeat_continuation=repeat_continuation,
        logger=logger,
    )
    run.start(data)
    return run
