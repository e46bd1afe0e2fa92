from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence, Tuple


class ShapeMismatch(ValueError):
    """A row was appended with the wrong number of values."""


class Statement(NamedTuple):
    sql: str
    params: List[Any]

    def __bool__(self) -> bool:
        return bool(self.sql)


class MultiReplace:
    """
    Accumulates rows for one multi-row upsert against a single table.

    With key_columns the statement replaces conflicting rows
    (ON CONFLICT ... DO UPDATE of every other column); rows sharing a key
    collapse to the last one appended, since PostgreSQL refuses to update
    the same row twice in one statement. Without key_columns it is a plain
    multi-row INSERT.

    placeholders maps a column to a template such as
    "ST_GeomFromText(%s, 4326)"; the default is a bare "%s".
    """

    def __init__(
        self,
        table: str,
        columns: Sequence[str],
        key_columns: Sequence[str] = (),
        placeholders: Optional[Dict[str, str]] = None,
    ) -> None:
        unknown = [c for c in key_columns if c not in columns]
        if unknown:
            raise ValueError(f"key columns {unknown} are not in {table} columns {list(columns)}")
        self.table = table
        self.columns = tuple(columns)
        self.key_columns = tuple(key_columns)
        self.placeholders = dict(placeholders or {})
        self._key_idx = [self.columns.index(c) for c in self.key_columns]
        self._rows: list[Tuple[Any, ...]] = []

    def __len__(self) -> int:
        return len(self._rows)

    def append(self, *values: Any) -> None:
        if len(values) != len(self.columns):
            raise ShapeMismatch(
                f"{self.table}: expected {len(self.columns)} values, got {len(values)}"
            )
        self._rows.append(values)

    def clear(self) -> None:
        self._rows = []

    def _unique_rows(self) -> list[Tuple[Any, ...]]:
        if not self._key_idx:
            return list(self._rows)
        by_key: Dict[Tuple[Any, ...], Tuple[Any, ...]] = {}
        for row in self._rows:
            by_key[tuple(row[i] for i in self._key_idx)] = row
        return list(by_key.values())

    def _render(self, num_rows: int) -> str:
        row_sql = "(" + ", ".join(self.placeholders.get(c, "%s") for c in self.columns) + ")"
        sql = (
            f"INSERT INTO {self.table} ({', '.join(self.columns)})\n"
            f"VALUES {', '.join([row_sql] * num_rows)}"
        )
        if self.key_columns:
            conflict = f"\nON CONFLICT ({', '.join(self.key_columns)})"
            updates = [c for c in self.columns if c not in self.key_columns]
            if updates:
                sql += conflict + " DO UPDATE SET " + ", ".join(f"{c} = EXCLUDED.{c}" for c in updates)
            else:
                sql += conflict + " DO NOTHING"
        return sql + ";"

    def build(self) -> Statement:
        """Render every pending row; an empty builder yields an empty (falsy) Statement."""
        rows = self._unique_rows()
        if not rows:
            return Statement("", [])
        return Statement(self._render(len(rows)), [value for row in rows for value in row])


class Executor(Protocol):
    """Anything that can run a parameterized statement, e.g. db.PostgresExecutor."""

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        ...
