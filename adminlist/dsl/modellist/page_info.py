from typing import Any

PAGINATION_FLAGS = ("auto_scroll", "pag_total_show", "pag_number_show", "pag_goto_show", "pag_elperpage_show")


class PageInfo:
    """
    Pagination, sort and display state for one rendered list.

    ``limit_start`` is never stored: it is derived from ``page`` and ``limit``
    every time it is read.
    """

    def __init__(self, **values):
        self.page = 1
        self.page_name = ""
        self.action = ""
        self.id = ""
        self._limit = 10
        self.default_limit = 10
        self.order_field = ""
        self._order_dir = "desc"
        self.total_record = 0
        self.filters = ""
        self.footer = False
        self.ajax = True
        self.pagination = True
        self.json = False
        self.auto_scroll = True
        self.pag_total_show = True
        self.pag_number_show = True
        self.pag_goto_show = True
        self.pag_elperpage_show = True
        self.pagination_limit = 14
        self.bulk_actions: dict[str, str] = {}
        self.primary_key = ""
        self.input_hidden: dict[str, Any] = {}
        self.table_attrs: dict[str, Any] = {}
        self.custom_data: dict[str, Any] = {}
        for key, value in values.items():
            setattr(self, key, value)

    @property
    def order_dir(self) -> str:
        return self._order_dir

    @order_dir.setter
    def order_dir(self, value):
        value = str(value or "").lower()
        self._order_dir = value if value in ("asc", "desc") else "desc"

    @property
    def limit(self) -> int:
        return self._limit

    @limit.setter
    def limit(self, value):
        self._limit = max(1, int(value))

    @property
    def limit_start(self) -> int:
        return max(0, self.page * self.limit - self.limit)

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total_record // self.limit))

    def set_page(self, page: int):
        self.page = max(1, int(page))
        return self

    def set_limit(self, limit: int):
        self.limit = limit
        return self

    def set_default_limit(self, limit: int):
        self.default_limit = int(limit)
        return self

    def set_order(self, field: str, direction: str = "desc"):
        self.order_field = field or ""
        self.order_dir = direction
        return self

    def set_total(self, total: int):
        self.total_record = int(total)
        return self

    def set_filters(self, filters: str):
        self.filters = filters
        return self

    def set_footer(self, footer: bool = True):
        self.footer = footer
        return self

    def set_ajax(self, ajax: bool = True):
        self.ajax = ajax
        return self

    def set_pagination(self, pagination: bool = True):
        self.pagination = pagination
        return self

    def set_json(self, json: bool = True):
        self.json = json
        return self

    def set_primary_key(self, key: str):
        self.primary_key = key or ""
        return self

    def set_action(self, action: str):
        self.action = action
        return self

    def add_bulk_action(self, key: str, label: str):
        self.bulk_actions[key] = label
        return self

    def set_bulk_actions(self, actions: dict[str, str]):
        self.bulk_actions = dict(actions)
        return self

    def set_input_hidden(self, name: str, value: Any):
        self.input_hidden[name] = value
        return self

    def set_table_attrs(self, attrs: dict):
        self.table_attrs.update(attrs)
        return self

    def set_custom_data(self, data: dict):
        self.custom_data = dict(data)
        return self

    def set_pagination_flags(self, **flags):
        for name, value in flags.items():
            if name in PAGINATION_FLAGS or name == "pagination_limit":
                setattr(self, name, value)
        return self

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "page_name": self.page_name,
            "action": self.action,
            "id": self.id,
            "limit": self.limit,
            "default_limit": self.default_limit,
            "limit_start": self.limit_start,
            "order_field": self.order_field,
            "order_dir": self.order_dir,
            "total_record": self.total_record,
            "total_pages": self.total_pages,
            "filters": self.filters,
            "footer": self.footer,
            "ajax": self.ajax,
            "pagination": self.pagination,
            "json": self.json,
            "auto_scroll": self.auto_scroll,
            "pag_total_show": self.pag_total_show,
            "pag_number_show": self.pag_number_show,
            "pag_goto_show": self.pag_goto_show,
            "pag_elperpage_show": self.pag_elperpage_show,
            "pagination_limit": self.pagination_limit,
            "bulk_actions": dict(self.bulk_actions),
            "primary_key": self.primary_key,
            "input_hidden": dict(self.input_hidden),
            "table_attrs": dict(self.table_attrs),
            "custom_data": dict(self.custom_data),
        }
