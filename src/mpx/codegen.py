"""Generate pydantic models from platform table metadata."""

from __future__ import annotations

import keyword
import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models.platform import ColumnMetadata, TableMetadata

logger = logging.getLogger(__name__)

_PYTHON_TYPES: dict[str, str] = {
    "String": "str",
    "Text": "str",
    "LargeString": "str",
    "Email": "str",
    "Phone": "str",
    "Url": "str",
    "Xml": "str",
    "Password": "str",
    "SecretKey": "str",
    "Guid": "str",
    "Time": "str",
    "Integer16": "int",
    "Integer32": "int",
    "Integer64": "int",
    "Counter": "int",
    "Decimal": "float",
    "Real": "float",
    "Money": "float",
    "Boolean": "bool",
    "Date": "str",
    "DateTime": "str",
    "Timestamp": "str",
    "Binary": "bytes | str",
    "Image": "bytes | str",
}

_HEADER = '''"""Generated by ``mpx generate-models`` on {stamp}. Do not edit."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from mpx.models import PlatformModel
'''


def sanitize_type_name(name: str) -> str:
    """``Contact_Log`` -> ``ContactLog``; slashes and spaces split words too."""

    words = [w for w in re.split(r"[-_\s/]+", name) if w]
    joined = "".join(w[:1].upper() + w[1:].lower() for w in words)
    cleaned = re.sub(r"[^a-zA-Z0-9]", "", joined)
    if cleaned and cleaned[0].isdigit():
        cleaned = f"T{cleaned}"
    return cleaned


def sanitize_field_name(name: str) -> str:
    cleaned = re.sub(r"\W", "_", name)
    # pydantic treats leading-underscore attributes as private, not as fields.
    if not cleaned or cleaned[0].isdigit() or cleaned.startswith("_"):
        cleaned = f"f_{cleaned.lstrip('_')}"
    if keyword.iskeyword(cleaned):
        cleaned = f"{cleaned}_"
    return cleaned


def python_type(column: ColumnMetadata) -> str:
    return _PYTHON_TYPES.get(column.DataType, "Any")


def infer_type(value: Any) -> str:
    if value is None:
        return "Any"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, list):
        return "list[Any]"
    if isinstance(value, dict):
        return "dict[str, Any]"
    return "Any"


@dataclass
class GeneratedField:
    name: str
    annotation: str
    optional: bool
    alias: str | None = None
    comment: str | None = None

    def render(self) -> str:
        annotation = self.annotation
        if self.optional and annotation != "Any":
            annotation = f"{annotation} | None"
        if self.alias:
            default = "default=None, " if self.optional else ""
            line = f"    {self.name}: {annotation} = Field({default}alias={self.alias!r})"
        elif self.optional:
            line = f"    {self.name}: {annotation} = None"
        else:
            line = f"    {self.name}: {annotation}"
        return f"{line}  # {self.comment}" if self.comment else line


@dataclass
class GeneratedModel:
    table: TableMetadata
    class_name: str
    fields: list[GeneratedField] = field(default_factory=list)
    source: str = "column metadata"

    @property
    def module_name(self) -> str:
        return re.sub(r"(?<!^)(?=[A-Z])", "_", self.class_name).lower()

    def render(self) -> str:
        lines = [
            "",
            "",
            f"class {self.class_name}(PlatformModel):",
            f'    """Table ``{self.table.Name}`` (access level: {self.table.AccessLevel}).',
        ]
        if self.table.SpecialPermissions:
            lines.append("")
            lines.append(f"    Special permissions: {self.table.SpecialPermissions}")
        lines.append("")
        lines.append(f"    Generated from {self.source}.")
        lines.append('    """')
        lines.append("")
        lines.append("    model_config = ConfigDict(extra=\"allow\", populate_by_name=True)")
        if self.fields:
            lines.append("")
            lines.extend(f.render() for f in self.fields)
        return "\n".join(lines) + "\n"


def _column_comment(column: ColumnMetadata) -> str | None:
    parts: list[str] = []
    if column.IsPrimaryKey:
        parts.append("Primary Key")
    if column.IsForeignKey and column.ReferencedTable:
        parts.append(f"Foreign Key -> {column.ReferencedTable}.{column.ReferencedColumn}")
    if column.IsReadOnly:
        parts.append("Read Only")
    if column.IsComputed:
        parts.append("Computed")
    if column.HasDefault:
        parts.append("Has Default")
    if column.Size > 0 and column.DataType in {"String", "Text", "Email", "Url"}:
        parts.append(f"max {column.Size} chars")
    return ", ".join(parts) or None


def _field(name: str, annotation: str, optional: bool, comment: str | None = None) -> GeneratedField:
    attr = sanitize_field_name(name)
    return GeneratedField(
        name=attr,
        annotation=annotation,
        optional=optional,
        alias=name if attr != name else None,
        comment=comment,
    )


def build_model(
    table: TableMetadata, sample_records: Sequence[Mapping[str, Any]] | None = None
) -> GeneratedModel:
    """Describe a model for ``table`` from its columns, else from sample rows."""

    if not table.Name:
        raise ValueError("Table metadata has no name")
    model = GeneratedModel(table=table, class_name=sanitize_type_name(table.Name))
    if table.Columns:
        for column in table.Columns:
            if column.DataType == "Separator":
                continue
            model.fields.append(
                _field(
                    column.Name,
                    python_type(column),
                    optional=not column.IsRequired,
                    comment=_column_comment(column),
                )
            )
        return model
    if sample_records:
        observed: dict[str, set[str]] = {}
        for record in sample_records:
            for key, value in record.items():
                observed.setdefault(key, set()).add(infer_type(value))
        for key in sorted(observed):
            types = observed[key] - {"Any"} or {"Any"}
            optional = any(record.get(key) is None for record in sample_records)
            model.fields.append(_field(key, " | ".join(sorted(types)), optional=optional))
        model.source = f"{len(sample_records)} sample records"
        return model
    model.fields.append(_field(f"{table.Name}_ID", "int", optional=True, comment="Primary Key (assumed)"))
    model.source = "naming convention"
    return model


def render_module(model: GeneratedModel, *, stamp: str | None = None) -> str:
    stamp = stamp or datetime.now(timezone.utc).isoformat(timespec="seconds")
    return _HEADER.format(stamp=stamp) + model.render()


def render_index(models: Iterable[GeneratedModel]) -> str:
    ordered = sorted(models, key=lambda m: m.module_name)
    lines = ['"""Generated model index."""', "", "from __future__ import annotations", ""]
    lines.extend(f"from .{m.module_name} import {m.class_name}" for m in ordered)
    lines.append("")
    lines.append("__all__ = [")
    lines.extend(f'    "{m.class_name}",' for m in ordered)
    lines.append("]")
    return "\n".join(lines) + "\n"


def write_models(models: Sequence[GeneratedModel], output_dir: str | Path) -> list[Path]:
    """Write one module per model plus an ``__init__.py`` index."""

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for model in models:
        path = out / f"{model.module_name}.py"
        path.write_text(render_module(model), encoding="utf-8")
        written.append(path)
    index = out / "__init__.py"
    index.write_text(render_index(models), encoding="utf-8")
    written.append(index)
    logger.info("Wrote %d generated model modules to %s", len(models), out)
    return written
