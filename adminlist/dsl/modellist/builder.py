from typing import Any, Callable, Iterable, Optional

from adminlist.core_services.Config import Config
from adminlist.core_services.Database import DatabaseError
from adminlist.core_services.Request import RequestContext
from adminlist.dsl.modellist.actions import ActionManager
from adminlist.dsl.modellist.columns import ColumnManager
from adminlist.dsl.modellist.context import BuilderContext
from adminlist.dsl.modellist.export import ListExportMixin
from adminlist.dsl.modellist.filters import filter_between, filter_equals, filter_like, qualify
from adminlist.dsl.modellist.formatters import file_formatter, image_formatter, link_formatter
from adminlist.dsl.modellist.processor import DataProcessor


class TableBuilder(ListExportMixin):
    """
    Fluent facade over one admin list.

    Column calls act on the field selected with ``field()`` or ``column()``;
    query calls clear that selection::

        TableBuilder(Patient(), "patients", request) \\
            .field("name").label("Patient").truncate(20) \\
            .field("doctor.name").label("Doctor").sort_by("doctor.name") \\
            .where('"active" = %s', [1]) \\
            .set_default_actions() \\
            .to_dict()
    """

    def __init__(self, model, table_id: str, request: RequestContext = None, page: str = None,
                 config: Config = None):
        self.model = model
        self.table_id = table_id
        self.context = BuilderContext(model, table_id, request, page, config)
        self.columns = ColumnManager(self.context)
        self.actions = ActionManager(self.context)
        self.processor = DataProcessor(self.context, self.columns)
        self.cached_data: Optional[dict] = None
        self.page_info_flags: dict[str, Any] = {}

        self.configure()
        self.auto_configure_array_columns()

    def configure(self):
        """Hook for subclasses declaring a list in one place."""

    def auto_configure_array_columns(self):
        for key, rule in self.model.get_rules("list").items():
            if rule.get("type") != "array" or self.columns.has_custom_column(key):
                continue
            form_type = rule.get("form-type")
            if form_type == "image":
                self.columns.set_type(key, "html")
                self.columns.set_function(key, image_formatter(key))
            elif form_type == "file":
                self.columns.set_type(key, "html")
                self.columns.set_function(key, file_formatter(key))
            else:
                self.columns.hide(key)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def query(self):
        return self.context.get_query()

    @property
    def request(self) -> RequestContext:
        return self.context.request

    def get_context(self) -> BuilderContext:
        return self.context

    def get_column_manager(self) -> ColumnManager:
        return self.columns

    def get_data_processor(self) -> DataProcessor:
        return self.processor

    def get_filters(self) -> dict:
        return self.context.get_filters()

    def get_actions(self) -> dict:
        return self.actions.get_row_actions()

    def get_bulk_actions(self) -> dict:
        return self.actions.get_bulk_actions()

    def get_function_results(self):
        return self.actions.get_function_results()

    def to_sql(self) -> str:
        return self.query.to_raw_sql()

    def has_error(self) -> bool:
        return self.processor.has_error()

    def get_error_message(self, custom_message: str = None) -> str:
        if not self.has_error():
            return ""
        if self.context.config.debug:
            return str(self.processor.get_error())
        return custom_message or "An error occurred while loading the data."

    # ------------------------------------------------------------------
    # Field cursor
    # ------------------------------------------------------------------

    def field(self, key: str):
        self.columns.select_field(key)
        return self

    def column(self, key: str, label: str = None, type: str = "html", fn: Callable = None):
        self.columns.select_field(key)
        self.columns.configure(key, {"label": label or key, "type": type})
        if fn is not None:
            self.columns.set_function(key, fn)
        return self

    def label(self, label: str):
        self.columns.set_label(self.columns.require_current_field("label"), label)
        return self

    def type(self, type_: str):
        self.columns.set_type(self.columns.require_current_field("type"), type_)
        return self

    def options(self, options: dict):
        self.columns.set_options(self.columns.require_current_field("options"), options)
        return self

    def fn(self, fn: Callable):
        self.columns.set_function(self.columns.require_current_field("fn"), fn)
        return self

    def truncate(self, length: int, suffix: str = "..."):
        self.columns.set_truncate(self.columns.require_current_field("truncate"), length, suffix)
        return self

    def hide(self):
        self.columns.hide(self.columns.require_current_field("hide"))
        return self

    def delete(self):
        self.columns.delete(self.columns.require_current_field("delete"))
        return self

    def no_sort(self):
        self.columns.set_disable_sort(self.columns.require_current_field("no_sort"))
        return self

    def sort_by(self, real_field: str):
        self.context.add_sort_mapping(self.columns.require_current_field("sort_by"), real_field)
        self.context.refresh_query_pagination()
        return self

    def show_if_filter(self, condition: dict):
        self.columns.set_show_if_filter(self.columns.require_current_field("show_if_filter"), condition)
        return self

    def move_before(self, target: str):
        self.columns.move_before(self.columns.require_current_field("move_before"), target)
        return self

    def move_after(self, target: str):
        self.columns.move_after(self.columns.require_current_field("move_after"), target)
        return self

    def link(self, template: str, **attrs):
        key = self.columns.require_current_field("link")
        if self.context.is_fetch_mode() and "data-fetch" not in attrs:
            attrs["data-fetch"] = "post"
        self.columns.set_type(key, "html")
        self.columns.set_function(key, link_formatter(key, template, attrs))
        return self

    def file(self, **options):
        key = self.columns.require_current_field("file")
        self.columns.set_type(key, "html")
        self.columns.set_function(key, file_formatter(key, options))
        return self

    def image(self, **options):
        key = self.columns.require_current_field("image")
        self.columns.set_type(key, "html")
        self.columns.set_function(key, image_formatter(key, options))
        return self

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def hide_columns(self, keys: Iterable[str]):
        for key in keys:
            self.columns.hide(key)
        return self

    def delete_columns(self, keys: Iterable[str]):
        for key in keys:
            self.columns.delete(key)
        return self

    def reorder_columns(self, keys: Iterable[str]):
        self.columns.reorder(keys)
        return self

    def reset_fields(self):
        self.columns.reset_fields()
        return self

    def disable_sort(self, keys: Iterable[str] = None):
        if keys is None:
            self.context.get_model_list().set_no_order()
            return self
        for key in keys:
            self.columns.set_disable_sort(key)
        return self

    def map_sort(self, virtual_field: str, real_field: str):
        self.context.add_sort_mapping(virtual_field, real_field)
        self.context.refresh_query_pagination()
        return self

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def select(self, *columns):
        self.columns.reset_current_field()
        self.query.select(*columns)
        return self

    def where(self, condition: str, params: list = None, boolean: str = "AND"):
        self.columns.reset_current_field()
        self.query.where_raw(condition, params, boolean)
        return self

    def where_in(self, field: str, values: list):
        self.columns.reset_current_field()
        self.query.where_in(qualify(self.query, field), list(values))
        return self

    def where_like(self, field: str, value: str, position: str = "both"):
        self.columns.reset_current_field()
        filter_like(field, position)(self.query, value)
        return self

    def where_between(self, field: str, start, end):
        self.columns.reset_current_field()
        self.query.where_between(qualify(self.query, field), start, end)
        return self

    def join(self, table: str, condition: str, join_type: str = "INNER"):
        self.columns.reset_current_field()
        self.query.join_raw(table, condition, join_type)
        return self

    def left_join(self, table: str, condition: str):
        return self.join(table, condition, "LEFT")

    def right_join(self, table: str, condition: str):
        return self.join(table, condition, "RIGHT")

    def group_by(self, *fields):
        self.columns.reset_current_field()
        self.query.group_by(*fields)
        return self

    def having(self, condition: str, params: list = None):
        self.columns.reset_current_field()
        self.query.having_raw(condition, params)
        return self

    def order_by(self, field: str, direction: str = "asc"):
        """Default order; a request ``order_field`` still wins."""
        self.columns.reset_current_field()
        self.context.set_order(field, direction)
        return self

    def limit(self, limit: int):
        self.columns.reset_current_field()
        self.context.set_default_limit(limit)
        return self

    def query_custom_callback(self, callback: Callable):
        self.columns.reset_current_field()
        callback(self.query, self.model.db)
        return self

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def filter(self, name: str, callback: Callable, default: Any = None):
        self.columns.reset_current_field()
        self.context.get_model_list().add_filter(name, callback)
        if default is not None:
            self.context.set_filter_default(name, default)
        return self

    def filter_equals(self, name: str, column: str = None, default: Any = None):
        return self.filter(name, filter_equals(column or name), default)

    def filter_like(self, name: str, column: str = None, position: str = "both", default: Any = None):
        return self.filter(name, filter_like(column or name, position), default)

    def filter_between(self, name: str, column: str = None, separator: str = ",", default: Any = None):
        return self.filter(name, filter_between(column or name, separator), default)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def set_actions(self, actions: dict[str, dict]):
        self.columns.reset_current_field()
        self.actions.set_row_actions(actions)
        return self

    def add_action(self, key: str, config: dict):
        self.columns.reset_current_field()
        self.actions.add_row_action(key, config)
        self.actions.execute_row_action_if_requested()
        return self

    def set_bulk_actions(self, actions: dict[str, dict]):
        self.columns.reset_current_field()
        self.actions.set_bulk_actions(actions)
        return self

    def add_bulk_action(self, config: dict, key: str = None):
        self.columns.reset_current_field()
        self.actions.add_bulk_action(config, key)
        self.actions.execute_bulk_action_if_requested()
        return self

    def set_default_actions(self, custom_actions: dict = None):
        self.columns.reset_current_field()
        self.actions.set_default_actions(custom_actions, self.delete_records)
        return self

    def delete_records(self, records, request) -> dict:
        """Default ``delete`` row action: remove every selected record by primary key."""
        primary_key = self.context.get_primary_key()
        deleted = 0
        for record in records:
            try:
                if self.model.delete(record[primary_key]):
                    deleted += 1
            except DatabaseError as e:
                return {"success": False, "msg": str(e)}
        if not deleted:
            return {"success": False, "msg": "Nothing was deleted"}
        return {"success": True, "msg": "Item deleted successfully" if deleted == 1 else f"{deleted} items deleted"}

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def set_page(self, page: str):
        self.context.page = page
        return self

    def set_fetch_mode(self, enabled: bool = True):
        self.context.set_fetch_mode(enabled)
        return self

    def set_footer(self, values: list):
        self.processor.set_footer(values)
        return self

    def set_custom_data(self, data: dict):
        for key, value in data.items():
            self.context.add_custom_data(key, value)
        return self

    def custom_data(self, key: str, value: Any):
        self.context.add_custom_data(key, value)
        return self

    def set_page_info_flags(self, **flags):
        self.page_info_flags.update(flags)
        return self

    def get_data(self) -> dict:
        if self.cached_data is None:
            data = self.processor.process(self.actions.get_row_actions(), self.actions.get_bulk_actions())
            flags = self.page_info_flags
            if flags:
                data["page_info"].set_pagination_flags(**flags)
                for name in ("footer", "ajax", "pagination", "json"):
                    if name in flags:
                        setattr(data["page_info"], name, flags[name])
            self.cached_data = data
        return self.cached_data

    def get_rows(self) -> list:
        return self.get_data()["rows"]

    def to_dict(self) -> dict:
        data = self.get_data()
        return {
            "table_id": self.table_id,
            "rows": [row.to_dict() for row in data["rows"]],
            "info": data["info"].to_dict(),
            "page_info": data["page_info"].to_dict(),
            "error": self.get_error_message(),
        }

    def get_response(self) -> dict:
        response = self.actions.get_action_results()
        response["update_table"] = self.actions.should_update_table()
        if self.actions.should_update_table():
            response["data"] = self.to_dict()
        response["table_id"] = self.table_id
        return response
