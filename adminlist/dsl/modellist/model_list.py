import json
from typing import Iterable, Optional

from adminlist.core_services.Request import RequestContext, absint
from adminlist.dsl.modellist.filters import FilterRegistry, parse_filter_tokens, qualify
from adminlist.dsl.modellist.page_info import PageInfo
from adminlist.dsl.modellist.structure import ListStructure

TEXT_TYPES = ("CHAR", "TEXT", "CLOB", "ENUM", "SET")

UI_COLUMNS = ("checkbox", "action")


class ModelList:
    """
    Turns one table's request parameters into a bounded, ordered, filtered
    query and the PageInfo that describes it.

    ``request`` is always the table-scoped bag (what the browser sent under
    ``<table_id>[...]``).
    """

    def __init__(self, model, table_id: str = "", default_limit: int = 10, request: RequestContext = None):
        self.model = model
        self.table_id = table_id
        self.request = request or RequestContext()
        self.list_structure = ListStructure()
        self.filters = FilterRegistry()
        self.order = True
        self.default_limit = default_limit
        self.default_order_field = ""
        self.default_order_dir = "desc"
        self.primary_key = model.get_primary_key() if model is not None else None

        self.page = 1
        self.limit = default_limit
        self.order_field = ""
        self.order_dir = "desc"

        self.filters.register("search", self.filter_search)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_request(self, request: RequestContext):
        self.request = request
        return self

    def set_list_structure(self, structure: ListStructure):
        self.list_structure = structure
        return self

    def set_limit(self, limit):
        limit = absint(limit)
        self.default_limit = limit if limit >= 1 else self.default_limit
        return self

    def set_order(self, field: str, direction: str = "desc"):
        self.default_order_field = field
        self.default_order_dir = (direction or "desc").lower()
        return self

    def set_no_order(self):
        self.order = False
        if not self.list_structure.is_empty():
            self.list_structure.disable_all_order()
        return self

    def add_filter(self, type_: str, callback):
        self.filters.register(type_, callback)
        return self

    # ------------------------------------------------------------------
    # Request -> query
    # ------------------------------------------------------------------

    def resolve_order(self, request: RequestContext = None) -> tuple[str, str]:
        request = request or self.request
        if not self.default_order_field and self.primary_key:
            self.default_order_field = self.primary_key
            self.default_order_dir = "desc"

        if not request.filled("order_field"):
            field, direction = self.default_order_field, self.default_order_dir
        else:
            field = request.string("order_field")
            direction = request.string("order_dir", "desc") or "desc"

        direction = direction.lower()
        return field or "", direction if direction in ("asc", "desc") else "desc"

    def resolve_pagination(self, request: RequestContext = None) -> tuple[int, int]:
        request = request or self.request
        limit = request.absint("limit", self.default_limit) if request.has("limit") else self.default_limit
        if limit < 1:
            limit = self.default_limit
        page = request.absint("page", 1) if request.has("page") else 1
        if page < 1:
            page = 1
        return page, limit

    @property
    def limit_start(self) -> int:
        return max(0, self.page * self.limit - self.limit)

    def query_from_request(self, query=None, request: RequestContext = None):
        """Apply limit, order and request filters to ``query`` (a fresh model query by default)."""
        if request is not None:
            self.request = request
        if query is None:
            query = self.model.query()

        self.order_field, self.order_dir = self.resolve_order()
        self.page, self.limit = self.resolve_pagination()

        if self.limit > 0:
            query.limit(self.limit, self.limit_start)
        if self.order_field:
            query.order_by(query.quote(self.order_field), self.order_dir)

        self.apply_filters(query)
        return query

    def apply_filters(self, query, request: RequestContext = None):
        """Dispatch the request's filter tokens; types already applied this pass are skipped."""
        request = request or self.request
        tokens = parse_filter_tokens(request.input("filters"))
        self.filters.apply_tokens(query, tokens)
        return query

    # ------------------------------------------------------------------
    # Built-in search
    # ------------------------------------------------------------------

    def get_table_structure(self) -> list[dict]:
        if self.model is None:
            return []
        return self.model.get_table_structure()

    def get_textual_columns(self) -> list[str]:
        return [
            column["Field"]
            for column in self.get_table_structure()
            if any(token in (column.get("Type") or "").upper() for token in TEXT_TYPES)
        ]

    def filter_search(self, query, value):
        columns = self.get_textual_columns()
        if not columns:
            return
        value = value.strip() if isinstance(value, str) else ""
        if len(value) < 2:
            return
        query.nest(lambda q: [q.or_where(qualify(query, column), "LIKE", f"%{value}%") for column in columns])

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def get_list_structure(self, columns: Iterable[str] = None, primary_key: Optional[str] = None) -> ListStructure:
        """
        Column metadata for the rendered list.

        An empty structure is discovered from ``columns`` (or the table
        itself) behind a leading ``checkbox`` column. A configured structure
        loses the columns the query did not return, except the primary key,
        which is kept hidden.
        """
        columns = list(columns or [])
        if primary_key:
            self.primary_key = primary_key

        structure = self.list_structure
        if structure.is_empty():
            structure.set_column("checkbox", "", "checkbox", self.order)
            if columns:
                for field in columns:
                    structure.set_column(field, field, "text", self.order, field == self.primary_key)
            else:
                for row in self.get_table_structure():
                    field = row["Field"]
                    is_primary = row.get("Key") == "PRI"
                    structure.set_column(field, field, "text", self.order, is_primary)
                    if is_primary and not self.primary_key:
                        self.primary_key = field
        elif columns:
            for field in structure.keys():
                if field in UI_COLUMNS:
                    continue
                if field == self.primary_key:
                    structure.set_primary(field)
                    if field not in columns:
                        structure.hide_column(field)
                elif field not in columns:
                    structure.delete_column(field)
        return structure

    def get_page_info(self, total: int = 0) -> PageInfo:
        page_info = PageInfo(
            page=self.page,
            page_name=self.request.string("page_name", ""),
            action=self.request.string("action", ""),
            id=self.table_id,
            limit=self.limit,
            default_limit=self.default_limit,
            order_field=self.order_field,
            total_record=int(total or 0),
            filters=self.request.input("filters", "") or "",
            footer=False,
            ajax=True,
            pagination=True,
            json=self.request.input("page-output") == "json",
        )
        page_info.order_dir = self.order_dir
        if not isinstance(page_info.filters, str):
            page_info.filters = json.dumps(page_info.filters)
        return page_info
