import re
from typing import Any, Callable, List, Tuple, Union

OPERATORS = ["=", "!=", "<", "<=", ">", ">=", "<>", "LIKE", "NOT LIKE", "IN", "NOT IN", "IS", "IS NOT"]

QUOTES = {
    "mysql": ("`", "`"),
    "mssql": ("[", "]"),
    "sqlite": ('"', '"'),
}


class Raw:
    def __init__(self, expression: str, params: list = None):
        self.expression = expression
        self.params = list(params or [])

    def __str__(self):
        return self.expression


class QueryBuilder:
    """
    Fluent SELECT builder with ``%s`` placeholders.

    Every clause keeps its own bound values; they are only flattened when the
    statement is compiled, so clauses can be added in any order.
    """

    def __init__(self, table: str = None, driver: str = None):
        self.__table__ = table
        self.__driver__ = driver
        self.alias = None
        self.columns: List[str] = ["*"]
        self.column_parameters: List[Any] = []
        self.conditions: List[Tuple[str, str, list]] = []
        self.joins: List[Tuple[str, list]] = []
        self.group_by_columns: List[str] = []
        self.having_conditions: List[Tuple[str, str, list]] = []
        self.order_by_clauses: List[Tuple[str, str]] = []
        self.limit_count = None
        self.offset_count = None
        self.from_parameters: List[Any] = []

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    @staticmethod
    def quote_identifier(name, driver: str = None) -> str:
        if isinstance(name, Raw):
            return name.expression
        name = str(name)
        opening, closing = QUOTES.get(driver, ('"', '"'))
        parts = []
        for segment in name.split("."):
            if segment == "*":
                parts.append(segment)
                continue
            segment = segment.strip().strip('`"[]')
            parts.append(f"{opening}{segment.replace(closing, closing * 2)}{closing}")
        return ".".join(parts)

    def quote(self, name) -> str:
        return self.quote_identifier(name, self.__driver__)

    # ------------------------------------------------------------------
    # FROM / SELECT
    # ------------------------------------------------------------------

    def table(self, table_name: str, alias: str = None):
        self.__table__ = table_name
        if alias:
            self.alias = alias
        return self

    def get_table(self):
        return self.__table__

    def select(self, *columns):
        self.columns = []
        self.column_parameters = []
        return self.add_select(*columns)

    def add_select(self, *columns):
        if len(columns) == 1 and isinstance(columns[0], (list, tuple)) and not isinstance(columns[0], str):
            columns = columns[0]

        for col in columns:
            if isinstance(col, tuple):
                expression, alias = col
                self.columns.append(f"{expression} AS {alias}")
                if isinstance(expression, Raw):
                    self.column_parameters.extend(expression.params)
            elif isinstance(col, Raw):
                self.columns.append(col.expression)
                self.column_parameters.extend(col.params)
            else:
                self.columns.append(str(col))
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def _add_condition(self, boolean: str, sql: str, params=None):
        self.conditions.append((boolean.upper(), sql, list(params or [])))
        return self

    def _condition(self, boolean, column, operator="=", value=None):
        if value is None and operator not in OPERATORS:
            value = operator
            operator = "="

        if isinstance(column, dict):
            for col, val in column.items():
                self._condition(boolean, col, "=", val)
            return self

        if isinstance(column, QueryBuilder):
            sql, params = column._build_conditions(nested=True)
            if sql:
                self._add_condition(boolean, f"({sql})", params)
            return self

        if isinstance(column, Raw) and value is None:
            return self._add_condition(boolean, column.expression, column.params)

        column_sql = column.expression if isinstance(column, Raw) else column
        if isinstance(value, QueryBuilder):
            sub_sql, sub_params = value.get()
            return self._add_condition(boolean, f"{column_sql} {operator} ({sub_sql})", sub_params)
        if isinstance(value, Raw):
            return self._add_condition(boolean, f"{column_sql} {operator} {value.expression}", value.params)
        if value is None:
            return self._add_condition(boolean, f"{column_sql} {operator} NULL")
        return self._add_condition(boolean, f"{column_sql} {operator} %s", [value])

    def where(self, column, operator="=", value=None):
        return self._condition("AND", column, operator, value)

    def or_where(self, column, operator=None, value=None):
        return self._condition("OR", column, operator, value)

    def where_raw(self, raw_sql: str, params: list = None, boolean: str = "AND"):
        return self._add_condition(boolean, raw_sql, params)

    def where_in(self, column, values, boolean: str = "AND", negate: bool = False):
        keyword = "NOT IN" if negate else "IN"
        if isinstance(values, QueryBuilder):
            sub_sql, sub_params = values.get()
            return self._add_condition(boolean, f"{column} {keyword} ({sub_sql})", sub_params)
        if isinstance(values, Raw):
            return self._add_condition(boolean, f"{column} {keyword} ({values.expression})", values.params)
        values = list(values or [])
        if not values:
            # An empty IN list matches nothing; an empty NOT IN list matches everything.
            return self._add_condition(boolean, "1 = 1" if negate else "1 = 0")
        placeholders = ", ".join(["%s"] * len(values))
        return self._add_condition(boolean, f"{column} {keyword} ({placeholders})", values)

    def where_not_in(self, column, values):
        return self.where_in(column, values, negate=True)

    def where_null(self, column):
        return self._add_condition("AND", f"{column} IS NULL")

    def where_not_null(self, column):
        return self._add_condition("AND", f"{column} IS NOT NULL")

    def where_between(self, column, start, end, boolean: str = "AND"):
        parts, params = [], []
        for bound in (start, end):
            if isinstance(bound, Raw):
                parts.append(bound.expression)
                params.extend(bound.params)
            else:
                parts.append("%s")
                params.append(bound)
        return self._add_condition(boolean, f"{column} BETWEEN {parts[0]} AND {parts[1]}", params)

    def where_like(self, column: str, pattern: str):
        return self.where(column, "LIKE", pattern)

    def where_any_columns(self, columns: List[str], operator: str, value: Any):
        return self.nest(lambda q: [q.or_where(col, operator, value) for col in columns])

    def _nested(self, boolean: str, callback: Callable[["QueryBuilder"], Any]):
        subquery = QueryBuilder(driver=self.__driver__)
        callback(subquery)
        condition_sql, params = subquery._build_conditions(nested=True)
        if condition_sql:
            self._add_condition(boolean, f"({condition_sql})", params)
        return self

    def nest(self, callback):
        return self._nested("AND", callback)

    def or_nest(self, callback):
        return self._nested("OR", callback)

    # ------------------------------------------------------------------
    # JOIN / GROUP / HAVING
    # ------------------------------------------------------------------

    def join(self, table, column1, operator, column2, join_type="INNER"):
        clause = f"{join_type} JOIN {table} ON {column1} {operator} {column2}"
        if clause not in [sql for sql, _ in self.joins]:
            self.joins.append((clause, []))
        return self

    def join_raw(self, table, raw_condition, join_type="INNER", params: list = None):
        self.joins.append((f"{join_type} JOIN {table} ON {raw_condition}", list(params or [])))
        return self

    def left_join(self, table, column1, operator, column2):
        return self.join(table, column1, operator, column2, join_type="LEFT")

    def right_join(self, table, column1, operator, column2):
        return self.join(table, column1, operator, column2, join_type="RIGHT")

    def has_join(self, fragment: str) -> bool:
        return any(fragment in sql for sql, _ in self.joins)

    def group_by(self, *columns: Union[str, Raw, List[Union[str, Raw]]]):
        if len(columns) == 1 and isinstance(columns[0], list):
            columns = columns[0]
        for col in columns:
            self.group_by_columns.append(col.expression if isinstance(col, Raw) else col)
        return self

    def having(self, column, operator=None, value=None, boolean: str = "AND"):
        if isinstance(column, Raw) and operator is None:
            self.having_conditions.append((boolean, column.expression, column.params))
        elif isinstance(value, Raw):
            self.having_conditions.append((boolean, f"{column} {operator} {value.expression}", value.params))
        else:
            self.having_conditions.append((boolean, f"{column} {operator} %s", [value]))
        return self

    def having_raw(self, raw_sql: str, params: list = None):
        return self.having(Raw(raw_sql, params))

    # ------------------------------------------------------------------
    # ORDER / LIMIT
    # ------------------------------------------------------------------

    def order_by(self, column, direction="asc"):
        if column:
            direction = (direction or "").upper()
            if direction not in ("ASC", "DESC", ""):
                raise ValueError("Direction must be 'ASC', 'DESC', or ''")

            key = column.expression if isinstance(column, Raw) else str(column)

            for i, (col, _) in enumerate(self.order_by_clauses):
                if col == key:
                    self.order_by_clauses[i] = (col, direction)
                    break
            else:
                self.order_by_clauses.append((key, direction))
        else:
            self.remove_ordering()
        return self

    def order_by_raw(self, raw_sql: str):
        return self.order_by(Raw(raw_sql), "")

    def remove_ordering(self):
        self.order_by_clauses = []
        return self

    def limit(self, count, offset=None):
        self.limit_count = count
        if offset is not None:
            self.offset_count = offset
        return self

    def offset(self, count):
        self.offset_count = count
        return self

    def remove_limit(self):
        self.limit_count = None
        self.offset_count = None
        return self

    def clean(self, part: str = None):
        """Drop one clause (``order``, ``limit``, ``where``, ``group``) or all of them."""
        if part in (None, "order"):
            self.remove_ordering()
        if part in (None, "limit"):
            self.remove_limit()
        if part in (None, "where"):
            self.conditions = []
        if part in (None, "group"):
            self.group_by_columns = []
            self.having_conditions = []
        return self

    # ------------------------------------------------------------------
    # Derived queries
    # ------------------------------------------------------------------

    def clone(self) -> "QueryBuilder":
        cloned = self.__class__.__new__(self.__class__)
        cloned.__dict__.update(self.__dict__)
        cloned.columns = self.columns[:]
        cloned.column_parameters = self.column_parameters[:]
        cloned.conditions = self.conditions[:]
        cloned.joins = self.joins[:]
        cloned.group_by_columns = self.group_by_columns[:]
        cloned.having_conditions = self.having_conditions[:]
        cloned.order_by_clauses = self.order_by_clauses[:]
        cloned.from_parameters = self.from_parameters[:]
        return cloned

    def as_count(self, column: str = "*", alias: str = "aggregate"):
        """
        Turn the query into a COUNT query.

        Keeps WHERE and JOIN, drops ORDER BY, LIMIT and OFFSET. Grouped queries
        are wrapped in a subquery so the count is over groups.
        """
        self.remove_limit()
        self.remove_ordering()

        if self.group_by_columns:
            sub = self.clone()
            sub.columns = ["1"]
            sub.column_parameters = []
            sub_sql, sub_params = sub.get()

            self.columns = [f"COUNT(*) AS {alias}"]
            self.column_parameters = []
            self.joins = []
            self.conditions = []
            self.group_by_columns = []
            self.having_conditions = []
            self.alias = None
            self.__table__ = f"({sub_sql}) AS count_subquery"
            self.from_parameters = sub_params
            return self

        self.columns = [f"COUNT({column}) AS {alias}"]
        self.column_parameters = []
        return self

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def _build_conditions(self, nested=False) -> Tuple[str, list]:
        if not self.conditions:
            return "", []
        parts = []
        params = []
        for boolean, sql, values in self.conditions:
            parts.append(f"{boolean} {sql}")
            params.extend(values)

        result = re.sub(r"^(AND |OR )", "", " ".join(parts))
        if nested:
            return result, params
        return " WHERE " + result, params

    def _build_limit(self) -> Tuple[str, list]:
        if self.limit_count is None and self.offset_count is None:
            return "", []
        if self.__driver__ == "mssql":
            sql = " OFFSET %s ROWS"
            params = [self.offset_count or 0]
            if self.limit_count is not None:
                sql += " FETCH NEXT %s ROWS ONLY"
                params.append(self.limit_count)
            return sql, params
        if self.limit_count is None:
            # sqlite and mysql need a LIMIT before OFFSET
            return " LIMIT -1 OFFSET %s", [self.offset_count]
        sql, params = " LIMIT %s", [self.limit_count]
        if self.offset_count:
            sql += " OFFSET %s"
            params.append(self.offset_count)
        return sql, params

    def compile(self) -> Tuple[str, list]:
        if not self.__table__:
            raise ValueError("No table specified for query.")

        params: List[Any] = []
        sql = "SELECT " + ", ".join(str(c) for c in self.columns)
        params.extend(self.column_parameters)

        sql += f" FROM {self.__table__}"
        params.extend(self.from_parameters)
        if self.alias:
            sql += f" AS {self.alias}"

        for join_sql, join_params in self.joins:
            sql += f" {join_sql}"
            params.extend(join_params)

        where_sql, where_params = self._build_conditions()
        sql += where_sql
        params.extend(where_params)

        if self.group_by_columns:
            sql += f" GROUP BY {', '.join(str(g) for g in self.group_by_columns)}"

        if self.having_conditions:
            having = " ".join(f"{logic} {cond}" for logic, cond, _ in self.having_conditions)
            sql += " HAVING " + re.sub(r"^(AND |OR )", "", having)
            for _, _, values in self.having_conditions:
                params.extend(values)

        if self.order_by_clauses:
            order_by_str = ", ".join(f"{col} {dir_}".strip() for col, dir_ in self.order_by_clauses)
            sql += f" ORDER BY {order_by_str}"

        limit_sql, limit_params = self._build_limit()
        sql += limit_sql
        params.extend(limit_params)

        return sql.strip(), params

    def to_sql(self) -> str:
        return self.compile()[0]

    @property
    def parameters(self) -> list:
        return self.compile()[1]

    def get(self):
        return self.compile()

    def substitute_params(self, sql: str, params: list[Any]):
        pieces = sql.split("%s")
        out = pieces[0]
        for index, piece in enumerate(pieces[1:]):
            param = params[index] if index < len(params) else None
            if isinstance(param, str):
                value = "'" + param.replace("'", "''") + "'"
            elif param is None:
                value = "NULL"
            else:
                value = str(param)
            out += value + piece
        return out

    def to_raw_sql(self):
        sql, params = self.get()
        return self.substitute_params(sql, params)

    def __repr__(self):
        return f"<{self.__class__.__name__} table={self.__table__!r}>"
