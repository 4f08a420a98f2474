from typing import Callable, Iterable, Optional


class Column:
    def __init__(self, key: str, label: str = None, type: str = "text", sortable: bool = True,
                 primary: bool = False, options: dict = None, attributes_title: dict = None,
                 attributes_data: dict = None):
        self.key = key
        self.label = key if label is None else label
        self.type = type
        self.sortable = sortable
        self.primary = primary
        self.options = dict(options or {})
        self.attributes_title = dict(attributes_title or {})
        self.attributes_data = dict(attributes_data or {})

    @property
    def hidden(self) -> bool:
        return self.type == "hidden"

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "type": self.type,
            "order": self.sortable,
            "primary": self.primary,
            "options": self.options,
            "attributes_title": self.attributes_title,
            "attributes_data": self.attributes_data,
        }

    def __repr__(self):
        return f"Column({self.key!r}, type={self.type!r}, sortable={self.sortable}, primary={self.primary})"


class ListStructure:
    """
    Ordered column metadata for one list.

    Unknown keys are ignored by every operation, so callers can hide, delete
    or move columns without checking what the query actually returned.
    """

    def __init__(self):
        self._columns: dict[str, Column] = {}

    def __len__(self):
        return len(self._columns)

    def __iter__(self):
        return iter(self._columns.items())

    def __contains__(self, key):
        return key in self._columns

    def keys(self) -> list[str]:
        return list(self._columns)

    def columns(self) -> list[Column]:
        return list(self._columns.values())

    def is_empty(self) -> bool:
        return not self._columns

    def get_column(self, key: str) -> Optional[Column]:
        return self._columns.get(key)

    def has_column(self, key: str) -> bool:
        return key in self._columns

    def set_column(self, key: str, label: str = None, type: str = "text", sortable: bool = True,
                   primary: bool = False, options: dict = None, attributes_title: dict = None,
                   attributes_data: dict = None):
        """Insert or fully overwrite a column; new keys go to the end."""
        self._columns[key] = Column(key, label, type, sortable, primary, options,
                                    attributes_title, attributes_data)
        return self

    def set_action(self, options: dict, label: str = "Action"):
        self._columns.pop("action", None)
        self._columns["action"] = Column("action", label, "action", False, False, options)
        return self

    def hide_column(self, key: str):
        if key in self._columns:
            self._columns[key].type = "hidden"
        return self

    def hide_columns(self, keys: Iterable[str]):
        for key in keys:
            self.hide_column(key)
        return self

    def delete_column(self, key: str):
        self._columns.pop(key, None)
        return self

    def delete_columns(self, keys: Iterable[str]):
        for key in keys:
            self.delete_column(key)
        return self

    def reorder_columns(self, ordered_keys: Iterable[str]):
        """Given keys first (unknown ones skipped), then the rest in their current order."""
        leading = []
        for key in ordered_keys:
            if key in self._columns and key not in leading:
                leading.append(key)
        order = leading + [key for key in self._columns if key not in leading]
        self._columns = {key: self._columns[key] for key in order}
        return self

    def move_before(self, key: str, before_key: str):
        if key == before_key or key not in self._columns or before_key not in self._columns:
            return self
        order = [k for k in self._columns if k != key]
        order.insert(order.index(before_key), key)
        return self.reorder_columns(order)

    def move_after(self, key: str, after_key: str):
        if key == after_key or key not in self._columns or after_key not in self._columns:
            return self
        order = [k for k in self._columns if k != key]
        order.insert(order.index(after_key) + 1, key)
        return self.reorder_columns(order)

    def set_label(self, key: str, label: str):
        if key in self._columns:
            self._columns[key].label = label
        return self

    def set_type(self, key: str, type: str):
        if key in self._columns:
            self._columns[key].type = type
        return self

    def set_order(self, key: str, sortable: bool = True):
        if key in self._columns:
            self._columns[key].sortable = sortable
        return self

    def set_primary(self, key: str):
        if key in self._columns:
            for column in self._columns.values():
                column.primary = False
            self._columns[key].primary = True
        return self

    def get_primary_key(self) -> Optional[str]:
        for key, column in self._columns.items():
            if column.primary:
                return key
        return None

    def set_options(self, key: str, options: dict):
        if key in self._columns:
            self._columns[key].options = dict(options)
        return self

    def set_attributes_title(self, key: str, attributes: dict):
        if key in self._columns:
            self._columns[key].attributes_title = dict(attributes)
        return self

    def set_attributes_data(self, key: str, attributes: dict):
        if key in self._columns:
            self._columns[key].attributes_data = dict(attributes)
        return self

    def get_attributes_title(self, key: str) -> dict:
        column = self._columns.get(key)
        return dict(column.attributes_title) if column else {}

    def get_attributes_data(self, key: str) -> dict:
        column = self._columns.get(key)
        return dict(column.attributes_data) if column else {}

    def disable_all_order(self):
        for column in self._columns.values():
            column.sortable = False
        return self

    def enable_all_order(self):
        for column in self._columns.values():
            column.sortable = True
        return self

    def map(self, fn: Callable[[Column], None]):
        for column in self._columns.values():
            fn(column)
        return self

    def visible_keys(self) -> list[str]:
        return [key for key, column in self._columns.items() if not column.hidden]

    def to_dict(self) -> dict:
        return {key: column.to_dict() for key, column in self._columns.items()}
