from typing import Any

from adminlist.core_services.Config import Config
from adminlist.core_services.Request import RequestContext, absint
from adminlist.dsl.modellist.filters import parse_filter_tokens
from adminlist.dsl.modellist.model_list import ModelList
from adminlist.dsl.modellist.structure import ListStructure


class BuilderContext:
    """Shared state behind one TableBuilder: model, namespaced request, live query."""

    def __init__(self, model, table_id: str, request: RequestContext = None, page: str = None,
                 config: Config = None):
        self.model = model
        self.table_id = table_id
        self.config = config or Config()
        self.full_request = request or RequestContext()
        self.request = self.full_request.table(table_id)
        self.page = page or "admin"
        self.request_action = self.full_request.string("action", "")
        self.fetch_mode = False
        self.default_limit = self.config.page_limit
        self.filter_defaults: dict[str, Any] = {}
        self.sort_mappings: dict[str, str] = {}
        self.custom_data: dict[str, Any] = {}

        self.modellist = ModelList(model, table_id, self.default_limit, self.request)
        self.modellist.set_list_structure(self.create_list_structure())
        self.query = self.model.query()
        self.refresh_query_pagination()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_query(self):
        return self.query

    def set_query(self, query):
        self.query = query
        return self

    def get_model_list(self) -> ModelList:
        return self.modellist

    def get_primary_key(self):
        return self.model.get_primary_key()

    def set_fetch_mode(self, enabled: bool = True):
        self.fetch_mode = enabled
        return self

    def is_fetch_mode(self) -> bool:
        return self.fetch_mode

    def set_default_limit(self, limit: int):
        self.default_limit = max(1, absint(limit, 1))
        self.modellist.set_limit(self.default_limit)
        self.refresh_query_pagination()
        return self

    def add_sort_mapping(self, virtual_field: str, real_field: str):
        self.sort_mappings[virtual_field] = real_field
        return self

    def set_filter_default(self, name: str, value: Any):
        self.filter_defaults[name] = value
        return self

    def add_custom_data(self, key: str, value: Any):
        if value is None:
            self.custom_data.pop(key, None)
        else:
            self.custom_data[key] = value
        return self

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def has_request_filters(self) -> bool:
        return self.request.filled("filters")

    def get_filters(self) -> dict[str, Any]:
        """Filter defaults overlaid with the request's ``type:value`` tokens."""
        applied = dict(self.filter_defaults)
        for type_, value in parse_filter_tokens(self.request.input("filters")):
            applied[type_] = value
        return applied

    def has_filter(self, name: str) -> bool:
        value = self.get_filters().get(name)
        return value is not None and value != ""

    def request_has_filter_token(self, name: str) -> bool:
        return any(type_ == name for type_, _ in parse_filter_tokens(self.request.input("filters")))

    # ------------------------------------------------------------------
    # Order & pagination
    # ------------------------------------------------------------------

    def set_order(self, field: str, direction: str = "asc"):
        self.modellist.set_order(field, (direction or "asc").lower())
        self.refresh_query_pagination()
        return self

    def resolve_order(self) -> tuple[str, str]:
        modellist = self.modellist
        field = (self.request.input("order_field") or modellist.default_order_field
                 or modellist.primary_key or "")
        direction = str(self.request.input("order_dir") or modellist.default_order_dir or "desc").lower()
        return field, direction if direction in ("asc", "desc") else "desc"

    def refresh_query_pagination(self):
        """Re-apply order and limit from the request (or defaults) onto the live query."""
        order_field, order_dir = self.resolve_order()
        real_field = self.sort_mappings.get(order_field, order_field)

        limit = absint(self.request.input("limit", self.default_limit))
        if limit < 1:
            limit = max(1, self.default_limit)
        page = max(1, absint(self.request.input("page", 1)))
        offset = max(0, page * limit - limit)

        modellist = self.modellist
        modellist.page, modellist.limit = page, limit
        modellist.order_field, modellist.order_dir = order_field, order_dir

        self.query.clean("limit")
        self.query.limit(limit, offset)

        self.query.clean("order")
        if not real_field:
            return self
        if "." in real_field:
            relation, field = real_field.split(".", 1)
            if self.has_relationship_alias(relation):
                self.query.order_has(relation, field, order_dir)
                return self
        self.query.order_by(self.query.quote(real_field), order_dir)
        return self

    def has_relationship_alias(self, alias: str) -> bool:
        return self.model.get_relationship(alias) is not None

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def create_list_structure(self) -> ListStructure:
        structure = ListStructure()
        for key, rule in self.model.get_rules("list").items():
            structure.set_column(key, rule.get("label") or key, self.determine_column_type(rule),
                                 options=rule.get("options"))
        return structure

    @staticmethod
    def determine_column_type(rule: dict) -> str:
        if rule.get("type") == "select":
            return "select"
        if rule.get("type") != "array":
            return "html"
        return "file" if rule.get("form-type") == "file" else "array"
