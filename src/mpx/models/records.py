from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import RecordValidationError

TableRecord = dict[str, Any]
ResultSet = list[dict[str, Any]]

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_records(model: type[ModelT], rows: Iterable[Mapping[str, Any]]) -> list[ModelT]:
    """Validate ``rows`` against ``model``.

    Raises:
        RecordValidationError: A row does not match the model; ``index`` names it.
    """

    parsed: list[ModelT] = []
    for index, row in enumerate(rows):
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            raise RecordValidationError(model.__name__, index, exc) from exc
    return parsed


def parse_record(model: type[ModelT], row: Mapping[str, Any] | None) -> ModelT | None:
    if row is None:
        return None
    return parse_records(model, [row])[0]
