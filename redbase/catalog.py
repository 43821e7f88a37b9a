"""Catalog metadata for databases, tables and columns, and its text format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from .defs import ColType
from .errors import ColumnNotFoundError, InternalError, TableNotFoundError

DB_META_NAME = "db.meta"


@dataclass
class ColMeta:
    """Description of one column of a table."""

    tab_name: str
    name: str
    type: ColType
    len: int
    offset: int
    index: bool = False

    def _dump(self) -> str:
        return (
            f"{self.tab_name} {self.name} {int(self.type)} {self.len} "
            f"{self.offset} {int(self.index)}"
        )

    @classmethod
    def _load(cls, tokens: Iterator[str]) -> ColMeta:
        tab_name = next(tokens)
        name = next(tokens)
        col_type = ColType(int(next(tokens)))
        length = int(next(tokens))
        offset = int(next(tokens))
        index = bool(int(next(tokens)))
        return cls(tab_name, name, col_type, length, offset, index)


@dataclass
class TabMeta:
    """Description of a table: its name and its columns in order."""

    name: str
    cols: list[ColMeta] = field(default_factory=list)

    def is_col(self, col_name: str) -> bool:
        return any(col.name == col_name for col in self.cols)

    def get_col(self, col_name: str) -> ColMeta:
        """Return the column named col_name or raise ColumnNotFoundError."""
        for col in self.cols:
            if col.name == col_name:
                return col
        raise ColumnNotFoundError(col_name)

    def _dump(self) -> str:
        lines = [self.name, str(len(self.cols))]
        lines.extend(col._dump() for col in self.cols)
        return "\n".join(lines) + "\n"

    @classmethod
    def _load(cls, tokens: Iterator[str]) -> TabMeta:
        name = next(tokens)
        count = int(next(tokens))
        return cls(name, [ColMeta._load(tokens) for _ in range(count)])


@dataclass
class DbMeta:
    """Description of a database: its name and its tables by name."""

    name: str = ""
    tabs: dict[str, TabMeta] = field(default_factory=dict)

    def is_table(self, tab_name: str) -> bool:
        return tab_name in self.tabs

    def get_table(self, tab_name: str) -> TabMeta:
        """Return the table named tab_name or raise TableNotFoundError."""
        try:
            return self.tabs[tab_name]
        except KeyError:
            raise TableNotFoundError(tab_name) from None

    def dumps(self) -> str:
        """Serialise to the whitespace-separated catalog format."""
        parts = [f"{self.name}\n{len(self.tabs)}\n"]
        for tab_name in sorted(self.tabs):
            parts.append(self.tabs[tab_name]._dump() + "\n")
        return "".join(parts)

    @classmethod
    def loads(cls, text: str) -> DbMeta:
        """Parse text produced by dumps."""
        tokens = iter(text.split())
        try:
            name = next(tokens)
            count = int(next(tokens))
            tabs = {}
            for _ in range(count):
                tab = TabMeta._load(tokens)
                tabs[tab.name] = tab
        except (StopIteration, ValueError) as exc:
            raise InternalError("Malformed database metadata") from exc
        return cls(name, tabs)