from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any, Union
from urllib.parse import parse_qsl, quote

Scalar = Union[str, int, float, bool]
QueryValue = Union[Scalar, Sequence[Scalar], None]
QueryParams = Mapping[str, QueryValue]


def _format_value(value: Scalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: QueryParams | None) -> str:
    """Serialize ``params`` into a query string.

    ``None`` values are dropped and sequences are repeated as ``key=v1&key=v2``.
    Values are percent-encoded; ``$`` and ``@`` prefixed keys are left readable.
    """

    if not params:
        return ""
    parts: list[str] = []
    for key, value in params.items():
        if value is None:
            continue
        encoded_key = quote(str(key), safe="$@")
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            for item in value:
                parts.append(f"{encoded_key}={quote(_format_value(item), safe='')}")
            continue
        parts.append(f"{encoded_key}={quote(_format_value(value), safe='')}")
    return "&".join(parts)


def decode_query(query: str) -> dict[str, str | list[str]]:
    """Parse a query string produced by :func:`encode_query`.

    Repeated keys come back as lists in their original order.
    """

    out: dict[str, str | list[str]] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=True):
        existing = out.get(key)
        if existing is None:
            out[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            out[key] = [existing, value]
    return out


@dataclass(frozen=True)
class TableQueryParams:
    """Options for a ``/tables/{table}`` request.

    Field names map onto the platform's ``$``-prefixed query options.
    """

    select: str | None = None
    filter: str | None = None
    orderby: str | None = None
    groupby: str | None = None
    having: str | None = None
    top: int | None = None
    skip: int | None = None
    distinct: bool | None = None
    user_id: int | None = None
    global_filter_id: int | None = None
    allow_create: bool | None = None

    def to_query(self) -> dict[str, Any]:
        pairs = {
            "$select": self.select,
            "$filter": self.filter,
            "$orderby": self.orderby,
            "$groupby": self.groupby,
            "$having": self.having,
            "$top": self.top,
            "$skip": self.skip,
            "$distinct": self.distinct,
            "$userId": self.user_id,
            "$globalFilterId": self.global_filter_id,
            "$allowCreate": self.allow_create,
        }
        return {k: v for k, v in pairs.items() if v is not None}

    def only(self, *fields: str) -> TableQueryParams:
        """Return a copy keeping just ``fields`` (others reset to ``None``)."""

        cleared = {name: None for name in self.__dataclass_fields__ if name not in fields}
        return replace(self, **cleared)


__all__ = [
    "QueryParams",
    "QueryValue",
    "TableQueryParams",
    "decode_query",
    "encode_query",
]
