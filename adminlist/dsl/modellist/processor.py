from typing import Any, Optional

from adminlist.core_services.Database import DatabaseError
from adminlist.core_services.ErrorHandler import ErrorHandler
from adminlist.dsl.modellist.filters import encode_filter_tokens
from adminlist.dsl.modellist.formatters import extract_dot_notation_value, truncate
from adminlist.utilities.DataKlass import DataKlass


class DataProcessor:
    """
    Runs the list query and shapes the fetched records for display.

    Formatter callbacks always receive the hydrated record as it came from the
    database; the values they return are written onto a display copy.
    """

    def __init__(self, context, columns):
        self.context = context
        self.columns = columns
        self.rows_raw: list[dict] = []
        self.records: list[DataKlass] = []
        self.query_columns: list[str] = []
        self.footer_data: Optional[list] = None
        self.error: Optional[DatabaseError] = None
        self.errors = ErrorHandler("adminlist", log_to_file=context.config.log_file)

    def set_footer(self, data: list):
        self.footer_data = list(data)

    def get_raw_rows(self) -> list[dict]:
        return self.rows_raw

    def get_query_columns(self) -> list[str]:
        return self.query_columns

    def has_error(self) -> bool:
        return self.error is not None

    def get_error(self) -> Optional[DatabaseError]:
        return self.error

    def _store_error(self, message, error):
        if self.error is None:
            self.error = error

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def process(self, row_actions: dict, bulk_actions: dict) -> dict[str, Any]:
        modellist = self.context.get_model_list()
        query = self.context.get_query()

        self.apply_filters(query)

        rows = self.fetch_rows()
        total = self.fetch_total()

        info = modellist.get_list_structure(self.query_columns, self.context.get_primary_key())
        page_info = modellist.get_page_info(total)

        self.columns.apply_to_model_list()
        self.configure_page_info(page_info, bulk_actions)

        if row_actions:
            info.set_action(row_actions)

        if self.footer_data is not None:
            page_info.set_footer(True)
            rows.append(self.create_footer_row())

        return {"rows": rows, "info": info, "page_info": page_info}

    def apply_filters(self, query):
        """Request filter tokens first, then defaults for types the request did not carry."""
        modellist = self.context.get_model_list()
        modellist.apply_filters(query)
        for name, value in self.context.filter_defaults.items():
            if value in ("", None) or self.context.request_has_filter_token(name):
                continue
            modellist.filters.apply(name, query, value)
        return query

    def relationship_aliases(self) -> list[str]:
        aliases = []
        for key in self.columns.get_custom_columns():
            prefix = key.split(".", 1)[0]
            if "." in key and prefix not in aliases and self.context.has_relationship_alias(prefix):
                aliases.append(prefix)
        return aliases

    def fetch_rows(self) -> list[DataKlass]:
        model = self.context.model
        query = self.context.get_query()

        with self.errors.handle_errors(
            {DatabaseError: f"Could not load list '{self.context.table_id}'"},
            fallback=self._store_error,
            reraise=self.context.config.debug,
        ):
            result = model.get(query, with_=self.relationship_aliases())
            self.rows_raw = result.raw
            self.records = list(result)
            self.query_columns = list(result.columns)
            return self.transform_rows(self.records)
        return []

    def fetch_total(self) -> int:
        with self.errors.handle_errors(
            {DatabaseError: f"Could not count list '{self.context.table_id}'"},
            fallback=self._store_error,
            reraise=self.context.config.debug,
        ):
            return self.context.model.count(self.context.get_query())
        return 0

    def transform_rows(self, records: list[DataKlass]) -> list[DataKlass]:
        custom_columns = self.columns.get_custom_columns()
        properties = self.columns.get_all_properties()

        rows = []
        for record in records:
            row = record.copy()
            self.extract_dot_notation_values(row, record, custom_columns)
            self.apply_custom_functions(row, record, custom_columns)
            self.apply_column_properties(row, properties)
            rows.append(row)
        return rows

    @staticmethod
    def extract_dot_notation_values(row: DataKlass, record: DataKlass, custom_columns: dict):
        for key, config in custom_columns.items():
            if "." in key and config.get("action") != "delete":
                row[key] = extract_dot_notation_value(record, key)

    def apply_custom_functions(self, row: DataKlass, record: DataKlass, custom_columns: dict):
        for column in self.query_columns:
            config = custom_columns.get(column)
            if "." in column or not config or not callable(config.get("fn")):
                continue
            row[column] = config["fn"](record)

        for key, config in custom_columns.items():
            if not callable(config.get("fn")):
                continue
            if "." not in key and key in self.query_columns:
                continue
            row[key] = config["fn"](record)

    @staticmethod
    def apply_column_properties(row: DataKlass, properties: dict):
        for key, props in properties.items():
            if key not in row:
                continue
            if "truncate" in props:
                row[key] = truncate(row[key], props["truncate"]["length"], props["truncate"]["suffix"])

    # ------------------------------------------------------------------
    # Page info
    # ------------------------------------------------------------------

    def configure_page_info(self, page_info, bulk_actions: dict):
        context = self.context
        if context.request_action:
            page_info.set_action(context.request_action)
        if not page_info.page_name:
            page_info.page_name = context.page

        page_info.set_primary_key(context.get_primary_key())
        page_info.set_default_limit(context.default_limit)

        if bulk_actions:
            page_info.set_bulk_actions(
                {key: config["label"] for key, config in bulk_actions.items() if config.get("label")}
            )

        if context.filter_defaults and not context.has_request_filters():
            encoded = encode_filter_tokens(context.filter_defaults)
            if encoded:
                page_info.set_filters(encoded)

        if context.custom_data:
            page_info.set_custom_data(context.custom_data)
        return page_info

    def create_footer_row(self) -> DataKlass:
        footer = DataKlass()
        for index, column in enumerate(self.query_columns):
            footer[column] = self.footer_data[index] if index < len(self.footer_data) else ""
        return footer
