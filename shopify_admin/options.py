"""Query options accepted by list, count and delete calls."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from .errors import RequestBuildError


@dataclass
class ListOptions:
    """General list options usable for most collections of entities.

    ``page_info`` drives cursor pagination. ``page`` is the deprecated
    numeric way of paging and only works on older API versions.
    """

    page_info: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None
    since_id: Optional[int] = None
    created_at_min: Optional[datetime] = None
    created_at_max: Optional[datetime] = None
    updated_at_min: Optional[datetime] = None
    updated_at_max: Optional[datetime] = None
    order: Optional[str] = None
    fields: Optional[str] = None
    vendor: Optional[str] = None
    ids: list[int] = field(default_factory=list)


@dataclass
class CountOptions:
    """General count options usable for most collection counts."""

    created_at_min: Optional[datetime] = None
    created_at_max: Optional[datetime] = None
    updated_at_min: Optional[datetime] = None
    updated_at_max: Optional[datetime] = None


Options = Union[ListOptions, CountOptions, Mapping[str, Any]]


def _encode_value(value: Any) -> Optional[str]:
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (int, float, str)):
        text = str(value)
        return text or None
    if isinstance(value, Sequence):
        parts = [_encode_value(elem) for elem in value]
        joined = ",".join(part for part in parts if part is not None)
        return joined or None
    raise RequestBuildError(f"cannot encode option value of type {type(value).__name__}")


def encode_options(options: Optional[Options]) -> list[tuple[str, str]]:
    """Turn ``options`` into query pairs, dropping unset values.

    Dataclass options keep their field order; mappings keep insertion order.
    Datetimes render as ISO-8601 and sequences are comma joined.
    """
    if options is None:
        return []
    if hasattr(options, "__dataclass_fields__"):
        items = [(f.name, getattr(options, f.name)) for f in fields(options)]
    elif isinstance(options, Mapping):
        items = list(options.items())
    else:
        raise RequestBuildError(
            f"options must be a dataclass or mapping, not {type(options).__name__}"
        )

    pairs = []
    for key, value in items:
        encoded = _encode_value(value)
        if encoded is not None:
            pairs.append((str(key), encoded))
    return pairs
