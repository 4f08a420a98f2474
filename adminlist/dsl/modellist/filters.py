import json
from typing import Any, Callable, Iterable

FilterCallback = Callable[[Any, str], Any]

LIKE_PATTERNS = {
    "both": "%{}%",
    "start": "{}%",
    "end": "%{}",
}


def parse_filter_tokens(raw) -> list[tuple[str, str]]:
    """
    Decode the ``filters`` request value into ``(type, value)`` pairs.

    Accepts a JSON string or an already decoded list. Anything that does not
    decode to a list of strings counts as "no filters".
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    tokens = []
    for item in raw:
        if not isinstance(item, str):
            continue
        type_, _, value = item.partition(":")
        tokens.append((type_, value))
    return tokens


def encode_filter_tokens(filters: dict) -> str:
    """``{"status": "active"}`` -> ``'["status:active"]'``; empty values are dropped."""
    tokens = [f"{name}:{value}" for name, value in filters.items() if value not in ("", None)]
    return json.dumps(tokens) if tokens else ""


class FilterRegistry:
    """Filter type -> callback(query, value), applied at most once per type per pass."""

    def __init__(self):
        self._callbacks: dict[str, FilterCallback] = {}
        self.applied: list[str] = []

    def register(self, type_: str, callback: FilterCallback):
        self._callbacks[type_] = callback
        return self

    def unregister(self, type_: str):
        self._callbacks.pop(type_, None)
        return self

    def has(self, type_: str) -> bool:
        return type_ in self._callbacks

    def types(self) -> list[str]:
        return list(self._callbacks)

    def is_applied(self, type_: str) -> bool:
        return type_ in self.applied

    def apply(self, type_: str, query, value: str) -> bool:
        """Run the callback for ``type_`` unless unknown or already applied in this pass."""
        callback = self._callbacks.get(type_)
        if callback is None or type_ in self.applied:
            return False
        self.applied.append(type_)
        callback(query, value)
        return True

    def apply_tokens(self, query, tokens: Iterable[tuple[str, str]]) -> list[str]:
        return [type_ for type_, value in tokens if self.apply(type_, query, value)]

    def reset(self):
        self.applied = []
        return self


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ("" if value is None else str(value))


def qualify(query, column: str) -> str:
    """Quote ``column``, prefixing bare names with the query's table so joins stay unambiguous."""
    table = query.get_table()
    if "." in column or not table:
        return query.quote(column)
    return query.quote(f"{table}.{column}")


def filter_equals(column: str) -> FilterCallback:
    def callback(query, value):
        value = _clean(value)
        if value == "":
            return
        query.where(qualify(query, column), "=", value)
    return callback


def filter_like(column: str, position: str = "both") -> FilterCallback:
    pattern = LIKE_PATTERNS.get(position, LIKE_PATTERNS["both"])

    def callback(query, value):
        value = _clean(value)
        if value == "":
            return
        query.where(qualify(query, column), "LIKE", pattern.format(value))
    return callback


def filter_between(column: str, separator: str = ",") -> FilterCallback:
    def callback(query, value):
        value = _clean(value)
        if value == "" or separator not in value:
            return
        start, _, end = value.partition(separator)
        start, end = start.strip(), end.strip()
        if start == "" or end == "":
            return
        query.where_between(qualify(query, column), start, end)
    return callback


def passes_filter_condition(condition: dict, active_filters: dict) -> bool:
    """
    ``show_if_filter`` check: only the first key of ``condition`` is compared.

    ``{"status": "active"}`` passes when the active ``status`` filter equals
    ``"active"``. An empty condition always passes.
    """
    for name, expected in (condition or {}).items():
        if name not in active_filters or active_filters[name] is None:
            return False
        return str(active_filters[name]) == str(expected)
    return True
