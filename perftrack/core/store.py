"""
Row store over SQLite.

Exposes only the filter algebra the pages need: equality, range, set
membership and a single order-by, plus single-row writes with an upsert keyed
on a declared uniqueness key.
"""

import sqlite3
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .db import TABLE_COLUMNS, get_db
from .errors import StoreWriteError, UnknownColumnError
from ..util.logging import logger


def _check_table(table: str) -> List[str]:
    if table not in TABLE_COLUMNS:
        raise UnknownColumnError(f"Unknown collection: {table}")
    return TABLE_COLUMNS[table]


def _check_column(table: str, column: str) -> str:
    if column not in _check_table(table):
        raise UnknownColumnError(f"Unknown column '{column}' on {table}")
    return column


class Query:
    """A lazily built SELECT over one collection."""

    def __init__(self, table: str):
        _check_table(table)
        self.table = table
        self._clauses: List[Tuple[str, Sequence[Any]]] = []
        self._order: Optional[Tuple[str, bool]] = None
        self._empty = False
        self._describe: Dict[str, Any] = {}

    def eq(self, column: str, value: Any) -> "Query":
        _check_column(self.table, column)
        if value is None:
            self._clauses.append((f"{column} IS NULL", ()))
        else:
            self._clauses.append((f"{column} = ?", (value,)))
        self._describe[column] = value
        return self

    def gte(self, column: str, value: Any) -> "Query":
        _check_column(self.table, column)
        self._clauses.append((f"{column} >= ?", (value,)))
        self._describe[f"{column}>="] = value
        return self

    def lte(self, column: str, value: Any) -> "Query":
        _check_column(self.table, column)
        self._clauses.append((f"{column} <= ?", (value,)))
        self._describe[f"{column}<="] = value
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        _check_column(self.table, column)
        values = list(values)
        if not values:
            # Membership in an empty set matches nothing
            self._empty = True
        else:
            placeholders = ", ".join("?" for _ in values)
            self._clauses.append((f"{column} IN ({placeholders})", tuple(values)))
        self._describe[f"{column} in"] = len(values)
        return self

    def none(self) -> "Query":
        """Match nothing; the store is not consulted."""
        self._empty = True
        return self

    def order(self, column: str, ascending: bool = True) -> "Query":
        _check_column(self.table, column)
        self._order = (column, ascending)
        return self

    @property
    def filters(self) -> Dict[str, Any]:
        return dict(self._describe)

    def to_sql(self) -> Tuple[str, List[Any]]:
        sql = f"SELECT * FROM {self.table}"
        params: List[Any] = []
        if self._clauses:
            sql += " WHERE " + " AND ".join(clause for clause, _ in self._clauses)
            for _, clause_params in self._clauses:
                params.extend(clause_params)
        if self._order:
            column, ascending = self._order
            # NULLs sort last in both directions
            sql += f" ORDER BY {column} IS NULL, {column} {'ASC' if ascending else 'DESC'}, rowid ASC"
        return sql, params

    def execute(self) -> List[Dict[str, Any]]:
        """Run the query. sqlite3 errors propagate to the caller."""
        if self._empty:
            return []
        sql, params = self.to_sql()
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            return [dict(row) for row in cursor.fetchall()]

    def first(self) -> Optional[Dict[str, Any]]:
        rows = self.execute()
        return rows[0] if rows else None


def table(name: str) -> Query:
    """Start a query over a collection."""
    return Query(name)


def _where(table_name: str, where: Dict[str, Any]) -> Tuple[str, List[Any]]:
    clauses = []
    params = []
    for column, value in where.items():
        _check_column(table_name, column)
        clauses.append(f"{column} IS ?")
        params.append(value)
    return " AND ".join(clauses), params


def insert(table_name: str, row: Dict[str, Any]) -> Dict[str, Any]:
    """Insert one row, assigning an id when missing. Returns the stored row."""
    row = dict(row)
    row.setdefault("id", str(uuid.uuid4()))
    columns = [_check_column(table_name, column) for column in row]
    placeholders = ", ".join("?" for _ in columns)
    try:
        with get_db() as conn:
            conn.execute(
                f"INSERT INTO {table_name} ({', '.join(columns)}) VALUES ({placeholders})",
                [row[column] for column in columns]
            )
            conn.commit()
    except sqlite3.Error as e:
        logger.log_store_write(table_name, "insert", row["id"], status="failed", error=str(e))
        raise StoreWriteError(table_name, "insert", str(e)) from e

    logger.log_store_write(table_name, "insert", row["id"])
    return row


def update(table_name: str, values: Dict[str, Any], **where: Any) -> int:
    """Update rows matching the equality filters. Returns the affected count."""
    if not where:
        raise ValueError("update requires at least one filter")
    assignments = ", ".join(f"{_check_column(table_name, column)} = ?" for column in values)
    where_sql, where_params = _where(table_name, where)
    try:
        with get_db() as conn:
            cursor = conn.execute(
                f"UPDATE {table_name} SET {assignments} WHERE {where_sql}",
                list(values.values()) + where_params
            )
            conn.commit()
            count = cursor.rowcount
    except sqlite3.Error as e:
        logger.log_store_write(table_name, "update", where.get("id"), status="failed", error=str(e))
        raise StoreWriteError(table_name, "update", str(e)) from e

    logger.log_store_write(table_name, "update", where.get("id"))
    return count


def delete(table_name: str, **where: Any) -> int:
    """Delete rows matching the equality filters. Returns the affected count."""
    if not where:
        raise ValueError("delete requires at least one filter")
    where_sql, where_params = _where(table_name, where)
    try:
        with get_db() as conn:
            cursor = conn.execute(f"DELETE FROM {table_name} WHERE {where_sql}", where_params)
            conn.commit()
            count = cursor.rowcount
    except sqlite3.Error as e:
        logger.log_store_write(table_name, "delete", where.get("id"), status="failed", error=str(e))
        raise StoreWriteError(table_name, "delete", str(e)) from e

    logger.log_store_write(table_name, "delete", where.get("id"))
    return count


def upsert(table_name: str, row: Dict[str, Any], on_conflict: Sequence[str]) -> Dict[str, Any]:
    """
    Insert or overwrite the row identified by the uniqueness key `on_conflict`.

    Key matching is NULL-safe, so goals scoped to no user or no month still
    collide with each other. The existing row keeps its id and created_at.
    Last write wins. The lookup and the write run in one IMMEDIATE
    transaction, so upserts of the same key are serialised.
    """
    row = dict(row)
    for column in list(row) + list(on_conflict):
        _check_column(table_name, column)

    key = {column: row.get(column) for column in on_conflict}
    where_sql, where_params = _where(table_name, key)
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            cursor.execute(f"SELECT id FROM {table_name} WHERE {where_sql}", where_params)
            existing = cursor.fetchone()

            if existing:
                row["id"] = existing["id"]
                values = {c: v for c, v in row.items() if c not in ("id", "created_at")}
                assignments = ", ".join(f"{column} = ?" for column in values)
                cursor.execute(
                    f"UPDATE {table_name} SET {assignments} WHERE id = ?",
                    list(values.values()) + [row["id"]]
                )
                action = "update"
            else:
                row.setdefault("id", str(uuid.uuid4()))
                columns = list(row)
                placeholders = ", ".join("?" for _ in columns)
                cursor.execute(
                    f"INSERT INTO {table_name} ({', '.join(columns)}) VALUES ({placeholders})",
                    [row[column] for column in columns]
                )
                action = "insert"
            conn.commit()
    except sqlite3.Error as e:
        logger.log_store_write(table_name, "upsert", row.get("id"), status="failed", error=str(e))
        raise StoreWriteError(table_name, "upsert", str(e)) from e

    logger.log_store_write(table_name, f"upsert.{action}", row["id"])
    return row
