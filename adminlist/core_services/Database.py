import logging
import pprint
import time
from typing import Any

from adminlist.core_services.Config import Config
from adminlist.database.QueryBuilder import QueryBuilder


class DatabaseError(Exception):
    """Raised by database services when the driver rejects a statement."""

    def __init__(self, message="Database error", sql: str = None, params=None):
        super().__init__(message)
        self.sql = sql
        self.params = params


class NoResultsFound(Exception):
    def __init__(self, message="Query returned no results"):
        super().__init__(message)


class Database:
    driver: str = None
    connection = None
    connection_string: str = ""
    results = None

    def __init__(self, connection_string: str = None, config: Config = None):
        if connection_string is not None:
            self.connection_string = connection_string
        self.config = config or Config()
        self.logging_enabled = self.config.sql_log
        self.logger = logging.getLogger("adminlist.sql")
        if not self.logger.handlers:  # prevent duplicate handlers
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s"
            ))
            self.logger.addHandler(handler)
        self.logger.setLevel(logging.DEBUG)
        self.last_error = None
        self.last_columns: list[str] = []

    def _log_query(self, sql: str, params, elapsed_ms: float):
        if self.logging_enabled:
            log_entry = {
                "event": "sql_query",
                "sql": sql,
                "params": params,
                "elapsed_ms": round(elapsed_ms, 2),
                "database": self.__class__.__name__,
            }
            self.logger.debug("\n" + pprint.pformat(log_entry, indent=2, width=80, compact=False) + "\n")

    def _unpack(self, query_str, params):
        if isinstance(query_str, QueryBuilder):
            sql, built = query_str.get()
            return sql, list(built)
        return query_str, list(params or [])

    def qn(self, name: str) -> str:
        """Quote an identifier for this database's dialect."""
        return QueryBuilder.quote_identifier(name, self.driver)

    def new_query(self, table: str = None) -> QueryBuilder:
        query = QueryBuilder(driver=self.driver)
        if table:
            query.table(table)
        return query

    def connect(self):
        raise NotImplementedError

    def close(self):
        pass

    def run(self, sql: str, params: list) -> list[dict[str, Any]]:
        """Execute a statement and return rows as dicts. Implemented by drivers."""
        raise NotImplementedError

    def query(self, query_str: str | QueryBuilder, params=None) -> list[dict[str, Any]]:
        sql, params = self._unpack(query_str, params)
        started = time.perf_counter()
        self.results = self.run(sql, params)
        self._log_query(sql, params, (time.perf_counter() - started) * 1000)
        return self.results

    def get_var(self, query_str: str | QueryBuilder, params=None, default=None):
        """First column of the first row, or ``default``."""
        rows = self.query(query_str, params)
        if not rows:
            return default
        first = rows[0]
        return next(iter(first.values()), default)

    def execute(self, query_str: str | QueryBuilder, params=None) -> int:
        """Run a write statement and return the affected row count."""
        raise NotImplementedError

    def get_columns(self, table: str) -> list[dict[str, Any]]:
        """Table structure as ``Field``/``Type``/``Key``/``Null``/``Default`` dicts."""
        raise NotImplementedError

    def results_or_fail(self, query_str: str | QueryBuilder, params=None, fallback=None):
        self.results = self.query(query_str, params)
        if not self.results:
            if fallback:
                return fallback()
            raise NoResultsFound()
        return self.results
