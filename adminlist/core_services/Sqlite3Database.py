import sqlite3
import time
from typing import Any

from adminlist.core_services.Database import Database, DatabaseError
from adminlist.database.QueryBuilder import QueryBuilder


def dict_factory(cursor, row):
    """Convert row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def to_qmark(sql: str) -> str:
    # QueryBuilder emits %s placeholders; sqlite3 wants qmark style.
    return sql.replace("%s", "?")


class Sqlite3Database(Database):
    driver = "sqlite"
    connection = None
    connection_string: str = ":memory:"
    results: list[dict[str, Any]] = []

    def connect(self):
        # One connection per service; an in-memory database lives as long as it does.
        if self.connection is None:
            self.connection = sqlite3.connect(self.connection_string)
            self.connection.row_factory = dict_factory
        return self.connection

    def close(self):
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def run(self, sql: str, params: list) -> list[dict[str, Any]]:
        try:
            cursor = self.connect().execute(to_qmark(sql), params)
            self.last_columns = [column[0] for column in cursor.description or []]
            return cursor.fetchall() if cursor.description else []
        except sqlite3.Error as e:
            self.last_error = str(e)
            raise DatabaseError(str(e), sql=sql, params=params) from e

    def execute(self, query_str: str | QueryBuilder, params=None) -> int:
        sql, params = self._unpack(query_str, params)
        started = time.perf_counter()
        try:
            cursor = self.connect().execute(to_qmark(sql), params)
            self.connection.commit()
        except sqlite3.Error as e:
            self.last_error = str(e)
            raise DatabaseError(str(e), sql=sql, params=params) from e
        self._log_query(sql, params, (time.perf_counter() - started) * 1000)
        self.last_insert_id = cursor.lastrowid
        return cursor.rowcount

    def executescript(self, script: str):
        try:
            self.connect().executescript(script)
        except sqlite3.Error as e:
            raise DatabaseError(str(e), sql=script) from e

    def get_columns(self, table: str) -> list[dict[str, Any]]:
        rows = self.query(f"PRAGMA table_info({self.qn(table)})")
        return [
            {
                "Field": row["name"],
                "Type": (row["type"] or "").upper(),
                "Key": "PRI" if row["pk"] else "",
                "Null": "NO" if row["notnull"] else "YES",
                "Default": row["dflt_value"],
            }
            for row in rows
        ]
