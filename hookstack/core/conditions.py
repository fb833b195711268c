"""Ordering conditions attached to interceptors."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class Bucket(str, Enum):
    """Coarse ordering partition, applied before after/before ordering."""

    PRE = "pre"
    MID = "mid"
    POST = "post"


class Conditions(BaseModel):
    """Normalized, immutable constraint record for one interceptor.

    Each relation field accepts a single id, a list/tuple/set of ids, or None,
    and is always stored as a tuple. The bucket may be given as ``order`` or
    ``bucket`` and defaults to ``Bucket.MID``.

    Attributes:
        after: Ids this interceptor must follow (same bucket only).
        before: Ids this interceptor must precede (same bucket only).
        conflicts: Ids that must not share a pool with this interceptor.
        depends: Ids that must be present in this interceptor's pool.
        bucket: The ordering partition.
    """

    after: tuple[str, ...] = ()
    before: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()
    depends: tuple[str, ...] = ()
    bucket: Bucket = Field(
        default=Bucket.MID,
        validation_alias=AliasChoices("order", "bucket"),
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "populate_by_name": True,
    }

    @field_validator("after", "before", "conflicts", "depends", mode="before")
    @classmethod
    def wrap_scalar(cls, v: Any) -> Any:
        """Turn a missing value into an empty tuple and a single id into a 1-tuple."""
        if v is None:
            return ()
        if isinstance(v, str) or not isinstance(v, (list, tuple, set, frozenset)):
            return (v,)
        return tuple(v)

    @field_validator("bucket", mode="before")
    @classmethod
    def default_bucket(cls, v: Any) -> Any:
        return Bucket.MID if v is None else v


def normalize_conditions(conditions: "Conditions | Mapping[str, Any] | None" = None) -> Conditions:
    """Return a fully-populated Conditions record.

    Args:
        conditions: None, a mapping of partial conditions, or a Conditions
            instance (returned unchanged).
    """
    if isinstance(conditions, Conditions):
        return conditions
    if conditions is None:
        return Conditions()
    return Conditions.model_validate(dict(conditions))
