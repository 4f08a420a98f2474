import json
from typing import Any, Optional


class Field:
    # Column type used by list pages when the field is shown in a table
    list_type = "text"
    form_type = None

    def __init__(
        self,
        primary_key: bool = False,
        nullable: bool = True,
        unique: bool = False,
        default: Any = None,
        label: str = None,
        hide_from_list: bool = False,
        options: dict = None,
        comment: str = None,
    ):
        self.primary_key = primary_key
        self.nullable = nullable
        self.unique = unique
        self.default = default
        self.label = label
        self.hide_from_list = hide_from_list
        self.options = options or {}
        self.comment = comment
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name

    def get_sql_type(self) -> str:
        raise NotImplementedError("Subclasses must implement get_sql_type()")

    def get_rule(self) -> dict:
        return {
            "type": self.list_type,
            "form-type": self.form_type,
            "label": self.label or self.name,
            "primary": self.primary_key,
            "options": dict(self.options),
            "list": not self.hide_from_list,
        }

    def column_sql(self) -> str:
        sql = f"{self.get_sql_type()}"
        if self.primary_key:
            sql += " PRIMARY KEY"
        elif not self.nullable:
            sql += " NOT NULL"
        if self.unique and not self.primary_key:
            sql += " UNIQUE"
        return sql

    def to_python(self, value):
        return value


class IntegerField(Field):
    list_type = "int"

    def __init__(self, auto_increment: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.auto_increment = auto_increment

    def get_sql_type(self) -> str:
        return "INTEGER"


class CharField(Field):
    def __init__(self, max_length: int = 255, **kwargs):
        super().__init__(**kwargs)
        self.max_length = max_length

    def get_sql_type(self) -> str:
        return f"VARCHAR({self.max_length})"


class TextField(Field):
    def get_sql_type(self) -> str:
        return "TEXT"


class EmailField(CharField):
    def __init__(self, **kwargs):
        super().__init__(max_length=254, **kwargs)


class DecimalField(Field):
    list_type = "float"

    def __init__(self, precision: int = 10, scale: int = 2, **kwargs):
        super().__init__(**kwargs)
        self.precision = precision
        self.scale = scale

    def get_sql_type(self) -> str:
        return f"DECIMAL({self.precision},{self.scale})"


class BooleanField(Field):
    list_type = "bool"

    def get_sql_type(self) -> str:
        return "BOOLEAN"


class DateTimeField(Field):
    list_type = "datetime"

    def get_sql_type(self) -> str:
        return "DATETIME"


class DateField(Field):
    list_type = "date"

    def get_sql_type(self) -> str:
        return "DATE"


class EnumField(Field):
    list_type = "select"

    def __init__(self, choices: list[str] | dict, **kwargs):
        if not isinstance(choices, dict):
            choices = {choice: choice for choice in choices}
        kwargs.setdefault("options", choices)
        super().__init__(**kwargs)
        self.choices = list(choices)

    def get_sql_type(self) -> str:
        return "VARCHAR(64)"


class JsonField(Field):
    """Stored as JSON text, hydrated into Python lists or dicts."""
    list_type = "array"

    def get_sql_type(self) -> str:
        return "TEXT"

    def to_python(self, value):
        if isinstance(value, str) and value[:1] in ("[", "{"):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value


class FileField(JsonField):
    form_type = "file"


class ImageField(JsonField):
    form_type = "image"


class ForeignKeyField(IntegerField):
    def __init__(self, to_table: str, to_column: str = "id", **kwargs):
        super().__init__(**kwargs)
        self.to_table = to_table
        self.to_column = to_column

    def column_sql(self) -> str:
        return f"{super().column_sql()} REFERENCES {self.to_table}({self.to_column})"


def field_for_type(sql_type: Optional[str]) -> Field:
    """Best-effort field for an introspected column type."""
    sql_type = (sql_type or "").upper()
    if "INT" in sql_type:
        return IntegerField()
    if any(token in sql_type for token in ("CHAR", "CLOB", "TEXT")):
        return TextField()
    if "DATE" in sql_type or "TIME" in sql_type:
        return DateTimeField()
    if any(token in sql_type for token in ("REAL", "FLOA", "DOUB", "DEC", "NUM")):
        return DecimalField()
    return Field()
