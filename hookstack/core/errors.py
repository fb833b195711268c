"""Exceptions raised by the hookstack engine."""

from collections.abc import Hashable, Iterable


class HookError(Exception):
    """Base class for all hookstack errors."""


class DuplicateIdError(HookError):
    """Raised when an interceptor id is registered twice in one pool."""

    def __init__(self, interceptor_id: str, key: Hashable | None = None) -> None:
        self.interceptor_id = interceptor_id
        self.key = key
        if key is None:
            message = f"Interceptor ID already exists: {interceptor_id}"
        else:
            message = f"Interceptor ID already exists for {key!r}: {interceptor_id}"
        super().__init__(message)


class NotFoundError(HookError, LookupError):
    """Raised when removing a handler or interceptor that is not registered."""

    pass


class MissingDependencyError(HookError):
    """Raised when an interceptor depends on an id absent from its pool.

    Attributes:
        interceptor_id: The interceptor declaring the dependency.
        missing_id: The id that could not be found.
    """

    def __init__(self, interceptor_id: str, missing_id: str) -> None:
        self.interceptor_id = interceptor_id
        self.missing_id = missing_id
        super().__init__(f"{interceptor_id} requires missing dependency {missing_id}")


class ConflictError(HookError):
    """Raised when two conflicting interceptors share a pool."""

    def __init__(self, interceptor_id: str, conflicting_id: str) -> None:
        self.interceptor_id = interceptor_id
        self.conflicting_id = conflicting_id
        super().__init__(f"{interceptor_id} conflicts with {conflicting_id}")


class CircularDependencyError(HookError):
    """Raised when after/before constraints in one bucket form a cycle.

    Attributes:
        ids: The interceptor ids that could not be ordered.
    """

    def __init__(self, ids: Iterable[str]) -> None:
        self.ids = tuple(ids)
        super().__init__(f"Circular dependencies: {', '.join(map(str, self.ids))}")


class ContinuationError(HookError):
    """Raised when an interceptor calls its continuation more than once."""

    def __init__(self, event_name: Hashable, step: int) -> None:
        self.event_name = event_name
        self.step = step
        super().__init__(
            f"Continuation for interceptor #{step} of {event_name!r} was called more than once"
        )
