from typing import Any, Callable, Iterable, Optional

from adminlist.dsl.modellist.exceptions import BuilderException
from adminlist.dsl.modellist.filters import passes_filter_condition
from adminlist.dsl.modellist.model_list import UI_COLUMNS


class ColumnManager:
    """
    Collects column intents (add, modify, delete, hide, reorder, move) while a
    list is being declared and replays them once onto the ListStructure.

    Ordering intents are replayed in the order they were declared, so the
    final column order can be predicted from the sequence of ``field()`` calls.
    """

    def __init__(self, context):
        self.context = context
        self.custom_columns: dict[str, dict[str, Any]] = {}
        self.hidden_columns: list[str] = []
        self.column_properties: dict[str, dict[str, Any]] = {}
        self.ordering: list[tuple] = []
        self.current_field: Optional[str] = None
        self.previous_field: Optional[str] = None
        self.selection_history: list[str] = []
        self.selected_fields: list[str] = []
        self.reset_requested = False

    # ------------------------------------------------------------------
    # Field cursor
    # ------------------------------------------------------------------

    def set_current_field(self, key: str):
        if not key:
            raise BuilderException.invalid_field(key)
        self.current_field = key

    def get_current_field(self) -> Optional[str]:
        return self.current_field

    def reset_current_field(self):
        self.current_field = None
        self.previous_field = None

    def require_current_field(self, method: str) -> str:
        if self.current_field is None:
            raise BuilderException.no_current_field(method)
        return self.current_field

    def select_field(self, key: str):
        """Select ``key`` and queue it right after the previously selected field."""
        self.set_current_field(key)
        if key not in self.selected_fields:
            self.selected_fields.append(key)
        if self.previous_field and self.previous_field != key:
            self.ordering.append(("move_after", key, self.previous_field))
        self.selection_history.append(key)
        self.previous_field = key
        return key

    # ------------------------------------------------------------------
    # Column configuration
    # ------------------------------------------------------------------

    def _structure(self):
        return self.context.get_model_list().list_structure

    def configure(self, key: str, config: dict):
        existing = self.custom_columns.get(key)
        if existing is None or existing.get("action") == "delete":
            action = "modify" if self._structure().has_column(key) else "add"
            existing = {"action": action}
            self.custom_columns[key] = existing
        existing.update(config)
        if key in self.hidden_columns:
            self.hidden_columns.remove(key)

    def set_label(self, key: str, label: str):
        self.configure(key, {"label": label})

    def set_type(self, key: str, type_: str):
        self.configure(key, {"type": type_})

    def set_options(self, key: str, options: dict):
        self.configure(key, {"options": dict(options)})

    def set_function(self, key: str, fn: Callable):
        self.configure(key, {"fn": fn})

    def set_disable_sort(self, key: str, disable: bool = True):
        self.configure(key, {"disable_sort": disable})

    def set_show_if_filter(self, key: str, condition: dict):
        self.configure(key, {"show_if_filter": dict(condition)})

    def set_truncate(self, key: str, length: int, suffix: str = "..."):
        self.column_properties.setdefault(key, {})["truncate"] = {"length": int(length), "suffix": suffix}

    # ------------------------------------------------------------------
    # Visibility & ordering
    # ------------------------------------------------------------------

    def hide(self, key: str):
        if key not in self.hidden_columns:
            self.hidden_columns.append(key)

    def delete(self, key: str):
        self.custom_columns[key] = {"action": "delete"}

    def reorder(self, keys: Iterable[str]):
        self.ordering.append(("reorder", list(keys)))

    def move_before(self, key: str, target: str):
        """
        Queue ``key`` before ``target``; the cursor goes back to the field
        selected before ``key`` so that chaining continues from there.
        """
        self.ordering.append(("move_before", key, target))
        earlier = [field for field in self.selection_history if field != key]
        previous = earlier[-1] if earlier else None
        self.current_field = previous
        self.previous_field = previous

    def move_after(self, key: str, target: str):
        self.ordering.append(("move_after", key, target))
        self.current_field = key
        self.previous_field = key

    def reset_fields(self):
        """Only fields selected through ``field()``/``column()`` stay visible."""
        self.reset_requested = True

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_custom_columns(self) -> dict[str, dict[str, Any]]:
        return self.custom_columns

    def get_column_config(self, key: str) -> Optional[dict]:
        return self.custom_columns.get(key)

    def get_hidden_columns(self) -> list[str]:
        return list(self.hidden_columns)

    def has_custom_column(self, key: str) -> bool:
        return key in self.custom_columns or key in self.hidden_columns

    def get_properties(self, key: str) -> dict:
        return self.column_properties.get(key, {})

    def get_all_properties(self) -> dict[str, dict[str, Any]]:
        return self.column_properties

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def apply_to_model_list(self):
        structure = self._structure()
        filters = self.context.get_filters()

        for key, config in self.custom_columns.items():
            condition = config.get("show_if_filter")
            if condition and not passes_filter_condition(condition, filters):
                structure.hide_column(key)
                continue
            self._apply_column_config(structure, key, config)

        for operation in self.ordering:
            if operation[0] == "reorder":
                structure.reorder_columns(operation[1])
            elif operation[0] == "move_before":
                structure.move_before(operation[1], operation[2])
            else:
                structure.move_after(operation[1], operation[2])

        structure.hide_columns(self.hidden_columns)

        if self.reset_requested:
            for key in structure.keys():
                if key not in self.selected_fields and key not in UI_COLUMNS:
                    structure.hide_column(key)
        return structure

    @staticmethod
    def _apply_column_config(structure, key: str, config: dict):
        action = config.get("action", "modify")
        if action == "delete":
            structure.delete_column(key)
        elif action == "add":
            structure.set_column(
                key,
                config.get("label", key),
                config.get("type", "html"),
                not config.get("disable_sort", False),
                False,
                config.get("options"),
            )
        else:
            if "label" in config:
                structure.set_label(key, config["label"])
            if "type" in config:
                structure.set_type(key, config["type"])
            if "disable_sort" in config:
                structure.set_order(key, not config["disable_sort"])
            if "options" in config:
                structure.set_options(key, config["options"])
