from typing import Any, Iterable, Optional

from adminlist.core_services.Database import Database
from adminlist.database.ModelCollection import ModelCollection
from adminlist.database.QueryBuilder import QueryBuilder
from adminlist.database.fields.Fields import Field, field_for_type
from adminlist.utilities.DataKlass import DataKlass


class BelongsTo:
    """``alias`` rows point at one row of ``table`` through ``foreign_key``."""

    def __init__(self, table: str, foreign_key: str, owner_key: str = "id"):
        self.table = table
        self.foreign_key = foreign_key
        self.owner_key = owner_key


class ModelQuery(QueryBuilder):
    def __init__(self, model: "Model"):
        super().__init__(model.__table__, driver=model.get_db().driver)
        self.model = model

    def order_has(self, alias: str, field: str, direction: str = "asc"):
        """Order by a column of a belongs-to relationship, joining it once."""
        relation = self.model.get_relationship(alias)
        if relation is None:
            return self.order_by(self.quote(f"{alias}.{field}"), direction)

        joined = f"{self.quote(relation.table)} AS {self.quote(alias)}"
        if not self.has_join(joined):
            self.left_join(
                joined,
                self.quote(f"{alias}.{relation.owner_key}"),
                "=",
                self.quote(f"{self.__table__}.{relation.foreign_key}"),
            )
            if self.columns == ["*"]:
                self.columns = [f"{self.quote(self.__table__)}.*"]
        return self.order_by(self.quote(f"{alias}.{field}"), direction)


class Model:
    __table__: str = None
    __primary_key__: str = None
    __database__: Database = None
    __relationships__: dict[str, BelongsTo] = {}

    def __init__(self, db: Database = None):
        self.db = db or self.__class__.make_database()
        self._structure = None

    @classmethod
    def make_database(cls) -> Database:
        database = cls.__database__
        if database is None:
            from adminlist.core_services.Config import Config
            from adminlist.core_services.Sqlite3Database import Sqlite3Database

            config = Config()
            database = Sqlite3Database(config.database, config=config)
            cls.__database__ = database
        elif isinstance(database, type):
            database = database()
        return database

    def get_db(self) -> Database:
        return self.db

    # --------------------------------------------------------------------------
    # Schema
    # --------------------------------------------------------------------------

    @classmethod
    def get_fields(cls) -> dict[str, Field]:
        """Declared fields in declaration order, base classes first."""
        fields = {}
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, Field):
                    fields[name] = attr
        return fields

    def get_table_structure(self) -> list[dict[str, Any]]:
        if self._structure is None:
            self._structure = self.db.get_columns(self.__table__)
        return self._structure

    def get_primary_key(self) -> Optional[str]:
        if self.__primary_key__:
            return self.__primary_key__
        for name, field in self.get_fields().items():
            if field.primary_key:
                return name
        if not self.get_fields():
            for column in self.get_table_structure():
                if column.get("Key") == "PRI":
                    return column["Field"]
        return None

    def get_rules(self, kind: str = "list") -> dict[str, dict]:
        fields = self.get_fields()
        if not fields:
            fields = {}
            for column in self.get_table_structure():
                field = field_for_type(column.get("Type"))
                field.name = column["Field"]
                field.primary_key = column.get("Key") == "PRI"
                fields[column["Field"]] = field

        rules = {name: field.get_rule() for name, field in fields.items()}
        if kind == "list":
            rules = {name: rule for name, rule in rules.items() if rule["list"]}
        return rules

    def get_relationship(self, alias: str) -> Optional[BelongsTo]:
        return self.__relationships__.get(alias)

    def get_relationship_aliases(self) -> list[str]:
        return list(self.__relationships__)

    @classmethod
    def create_table_sql(cls) -> str:
        fields = cls.get_fields()
        if not fields:
            raise ValueError(f"{cls.__name__} has no declared fields.")
        columns = [f"{QueryBuilder.quote_identifier(name)} {field.column_sql()}" for name, field in fields.items()]
        return f"CREATE TABLE IF NOT EXISTS {QueryBuilder.quote_identifier(cls.__table__)} ({', '.join(columns)})"

    # --------------------------------------------------------------------------
    # Retrieval
    # --------------------------------------------------------------------------

    def query(self) -> ModelQuery:
        return ModelQuery(self)

    def hydrate(self, row: dict) -> DataKlass:
        fields = self.get_fields()
        data = {}
        for key, value in row.items():
            field = fields.get(key)
            data[key] = field.to_python(value) if field else value
        return DataKlass(data)

    def get(self, query: QueryBuilder = None, with_: Iterable[str] = None) -> ModelCollection:
        query = query if query is not None else self.query()
        rows = self.db.query(query)
        columns = list(self.db.last_columns)
        records = [self.hydrate(row) for row in rows]
        if with_:
            self.load_relationships(records, with_)
        return ModelCollection(records, columns=columns, raw=rows)

    def count(self, query: QueryBuilder = None) -> int:
        query = (query if query is not None else self.query()).clone().as_count()
        return int(self.db.get_var(query, default=0) or 0)

    def get_by_id(self, id_: Any) -> Optional[DataKlass]:
        rows = self.db.query(self.query().where(self.quote_pk(), "=", id_).limit(1))
        return self.hydrate(rows[0]) if rows else None

    def get_by_ids(self, ids: Iterable[Any]) -> ModelCollection:
        ids = [id_ for id_ in ids if id_ not in (None, "")]
        if not ids:
            return ModelCollection([])
        return self.get(self.query().where_in(self.quote_pk(), ids))

    def quote_pk(self) -> str:
        return self.db.qn(self.get_primary_key())

    def load_relationships(self, records: list[DataKlass], aliases: Iterable[str]):
        """Attach belongs-to rows under their alias (``None`` when missing)."""
        for alias in aliases:
            relation = self.get_relationship(alias)
            if relation is None:
                continue
            keys = {record.get(relation.foreign_key) for record in records}
            keys.discard(None)
            related = {}
            if keys:
                query = QueryBuilder(relation.table, self.db.driver).where_in(
                    self.db.qn(relation.owner_key), sorted(keys, key=str)
                )
                for row in self.db.query(query):
                    related[row[relation.owner_key]] = DataKlass(row)
            for record in records:
                record[alias] = related.get(record.get(relation.foreign_key))

    # --------------------------------------------------------------------------
    # Persistence
    # --------------------------------------------------------------------------

    def save(self, data: dict, id_: Any = None) -> Any:
        """Insert ``data`` (or update the row with primary key ``id_``) and return the id."""
        table = self.db.qn(self.__table__)
        if id_ is None:
            columns = ", ".join(self.db.qn(key) for key in data)
            placeholders = ", ".join(["%s"] * len(data))
            self.db.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(data.values()))
            return getattr(self.db, "last_insert_id", None)
        assignments = ", ".join(f"{self.db.qn(key)} = %s" for key in data)
        self.db.execute(
            f"UPDATE {table} SET {assignments} WHERE {self.quote_pk()} = %s",
            list(data.values()) + [id_],
        )
        return id_

    def delete(self, id_: Any) -> bool:
        affected = self.db.execute(
            f"DELETE FROM {self.db.qn(self.__table__)} WHERE {self.quote_pk()} = %s", [id_]
        )
        return affected > 0

    def get_last_error(self) -> Optional[str]:
        return self.db.last_error
