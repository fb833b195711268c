"""Core components for the hookstack engine.

Types:
    Hooks: Registry facade for handlers and interceptors.
    HookStats: Statistics snapshot from a Hooks instance.
    Conditions: Normalized ordering constraints for one interceptor.
    Bucket: Coarse ordering partition (PRE, MID, POST).
    RepeatContinuationMode: Policy for continuations called more than once.

Errors:
    HookError: Base class for all engine errors.
    DuplicateIdError: Interceptor id registered twice in one pool.
    NotFoundError: Removal of an unknown handler or interceptor.
    MissingDependencyError: A ``depends`` id is absent from the pool.
    ConflictError: Two conflicting interceptors share a pool.
    CircularDependencyError: A bucket's after/before graph has a cycle.
    ContinuationError: A continuation was called twice in RAISE mode.
"""

from hookstack.core.chain import ChainRun, RepeatContinuationMode, run_chain
from hookstack.core.conditions import Bucket, Conditions, normalize_conditions
from hookstack.core.errors import (
    CircularDependencyError,
    ConflictError,
    ContinuationError,
    DuplicateIdError,
    HookError,
    MissingDependencyError,
    NotFoundError,
)
from hookstack.core.hooks import Hooks, HookStats
from hookstack.core.resolver import Resolver, order_bucket

__all__ = [
    "Hooks",
    "HookStats",
    "Conditions",
    "Bucket",
    "normalize_conditions",
    "RepeatContinuationMode",
    "ChainRun",
    "run_chain",
    "Resolver",
    "order_bucket",
    "HookError",
    "DuplicateIdError",
    "NotFoundError",
    "MissingDependencyError",
    "ConflictError",
    "CircularDependencyError",
    "ContinuationError",
]
