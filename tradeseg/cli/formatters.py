"""Render command results as a Rich table or as JSON Lines."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from numbers import Number
from typing import Callable, Mapping, Sequence, TextIO

from rich.box import SIMPLE_HEAD
from rich.console import Console
from rich.table import Table
from rich.text import Text

Row = Mapping[str, object]

EMPTY_MESSAGE = "No data available."


def to_json_value(value: object) -> object:
    """Reduce enums, timestamps and decimals to JSON friendly values; decimals stay exact strings."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def column_names(rows: Sequence[Row], columns: Sequence[str] | None) -> list[str]:
    if columns:
        return list(columns)
    return list(rows[0]) if rows else []


class OutputFormatter:
    """Writes a sequence of flat rows to a text stream."""

    name: str

    def render(self, rows: Sequence[Row], *, stream: TextIO, columns: Sequence[str] | None = None) -> None:
        raise NotImplementedError


@dataclass(slots=True)
class TableFormatter(OutputFormatter):
    """Human readable table; numbers are right aligned and trajectory colors drawn as swatches."""

    name: str = "table"
    no_color: bool = False
    title: str | None = None

    def render(self, rows: Sequence[Row], *, stream: TextIO, columns: Sequence[str] | None = None) -> None:
        console = Console(file=stream, no_color=self.no_color, color_system=None if self.no_color else "auto")
        names = column_names(rows, columns)
        if not names:
            console.print(EMPTY_MESSAGE)
            return

        table = Table(box=SIMPLE_HEAD, title=self.title, header_style=None if self.no_color else "bold cyan")
        for name in names:
            numeric = any(_is_number(row.get(name)) for row in rows)
            table.add_column(name, justify="right" if numeric else "left", no_wrap=numeric)
        for row in rows:
            table.add_row(*(self._cell(name, row.get(name)) for name in names))
        console.print(table)
        if not rows:
            console.print(EMPTY_MESSAGE)

    def _cell(self, name: str, value: object) -> Text:
        if value is None:
            return Text("-", style="" if self.no_color else "dim")
        if isinstance(value, bool):
            return Text("yes" if value else "no")
        if isinstance(value, float):
            return Text(f"{value:.6g}")
        text = str(to_json_value(value))
        if name == "color" and not self.no_color:
            return Text(f"● {text}", style=text)
        return Text(text)


@dataclass(slots=True)
class JSONLFormatter(OutputFormatter):
    """One JSON object per row, keys in column order."""

    name: str = "jsonl"

    def render(self, rows: Sequence[Row], *, stream: TextIO, columns: Sequence[str] | None = None) -> None:
        names = column_names(rows, columns)
        for row in rows:
            document = {name: to_json_value(row.get(name)) for name in names}
            stream.write(json.dumps(document, ensure_ascii=False, default=str) + "\n")
        stream.flush()


def _is_number(value: object) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


_FACTORIES: dict[str, Callable[[bool], OutputFormatter]] = {
    "table": lambda no_color: TableFormatter(no_color=no_color),
    "jsonl": lambda no_color: JSONLFormatter(),
}


def create_formatter(name: str, *, no_color: bool = False) -> OutputFormatter:
    """Return the formatter registered under ``name`` (case insensitive)."""

    factory = _FACTORIES.get(name.strip().lower())
    if factory is None:
        raise ValueError(f"Unsupported format '{name}'. Available formats: {', '.join(_FACTORIES)}.")
    return factory(no_color)


__all__ = [
    "EMPTY_MESSAGE",
    "JSONLFormatter",
    "OutputFormatter",
    "TableFormatter",
    "column_names",
    "create_formatter",
    "to_json_value",
]
