"""hookstack - Ordered interceptors and event handlers for asyncio applications."""

from hookstack.core import (
    Bucket,
    CircularDependencyError,
    Conditions,
    ConflictError,
    ContinuationError,
    DuplicateIdError,
    HookError,
    Hooks,
    HookStats,
    MissingDependencyError,
    NotFoundError,
    RepeatContinuationMode,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Hooks",
    "HookStats",
    "Conditions",
    "Bucket",
    "RepeatContinuationMode",
    # Errors
    "HookError",
    "DuplicateIdError",
    "NotFoundError",
    "MissingDependencyError",
    "ConflictError",
    "CircularDependencyError",
    "ContinuationError",
    # Meta
    "__version__",
]
