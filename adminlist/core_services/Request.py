import re
from typing import Any

KEY_PATTERN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
LEADING_INT = re.compile(r"^\s*[-+]?\d+")


def absint(value, default: int = 0) -> int:
    """Non-negative integer from loose request input ("12abc" -> 12, "x" -> 0)."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return abs(int(value))
    if value is None:
        return default
    match = LEADING_INT.match(str(value))
    if not match:
        return default
    return abs(int(match.group(0)))


def parse_key(key: str) -> list[str]:
    """``users[filters]`` -> ``["users", "filters"]``; ``ids[]`` -> ``["ids", ""]``."""
    match = KEY_PATTERN.match(key)
    if not match or not match.group(2):
        return [key]
    return [match.group(1)] + re.findall(r"\[([^\[\]]*)\]", match.group(2))


def nest_params(flat: dict) -> dict:
    """
    Turn bracketed form keys into nested dicts.

    Example: ``{"users[page]": "2", "users[table_ids][]": ["1", "2"]}``
    becomes ``{"users": {"page": "2", "table_ids": ["1", "2"]}}``.
    """
    result: dict = {}
    for key, value in flat.items():
        parts = parse_key(key)
        target = result
        for index, part in enumerate(parts):
            last = index == len(parts) - 1
            next_is_list = not last and parts[index + 1] == ""
            if last:
                if isinstance(target, list):
                    target.extend(value if isinstance(value, list) else [value])
                elif part == "":
                    continue
                elif isinstance(value, dict) and isinstance(target.get(part), dict):
                    target[part].update(value)
                else:
                    target[part] = value
                break
            if next_is_list:
                if not isinstance(target.get(part), list):
                    target[part] = []
                target = target[part]
                if index + 1 == len(parts) - 1:
                    target.extend(value if isinstance(value, list) else [value])
                    break
                continue
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
    return result


class RequestContext:
    """
    One request's parameters as an explicit value.

    List pages never read Flask's global request; the caller builds a
    RequestContext (``from_flask`` inside a view, a plain dict in tests and the
    CLI) and hands it to the builder.
    """

    def __init__(self, data: dict = None):
        self._data = nest_params(dict(data or {}))

    @classmethod
    def from_flask(cls, flask_request=None) -> "RequestContext":
        if flask_request is None:
            from flask import request as flask_request

        data = {
            **(flask_request.view_args or {}),
            **flask_request.args.to_dict(),
            **flask_request.form.to_dict(),
        }

        # list-style keys from both args and form
        for source in (flask_request.args, flask_request.form):
            for key in source.keys():
                if key.endswith("[]"):
                    data[key] = source.getlist(key)

        if flask_request.is_json:
            payload = flask_request.get_json(silent=True)
            if isinstance(payload, dict):
                data.update(payload)

        return cls(data)

    def all(self) -> dict:
        return self._data

    def input(self, key, default=None, cast: type = None) -> Any:
        value = self._data.get(key)
        if value is None:
            return default

        if cast:
            try:
                if cast is bool:
                    return str(value).lower() in ["true", "1", "yes", "on"]
                if isinstance(value, list):
                    return [cast(v) for v in value]
                return cast(value)
            except (ValueError, TypeError):
                return default

        return value

    def string(self, key, default="") -> str:
        value = self.input(key, default)
        return value if isinstance(value, str) else str(value)

    def integer(self, key, default=None) -> int:
        return self.input(key, default, cast=int)

    def absint(self, key, default: int = 0) -> int:
        return absint(self.input(key), default)

    def to_list(self, key, default=None, cast: type = str) -> list:
        val = self.input(key, default)
        if val is None:
            return []
        if isinstance(val, (int, float)):
            val = [val]
        if isinstance(val, str):
            val = [part.strip() for part in val.split(",") if part.strip()]
        if isinstance(val, list) and cast:
            try:
                return [cast(v) for v in val]
            except (ValueError, TypeError):
                return val
        return list(val)

    def has(self, key: str) -> bool:
        return key in self._data

    def filled(self, key: str) -> bool:
        val = self._data.get(key)
        return val is not None and val != ""

    def missing(self, key: str) -> bool:
        return not self.has(key)

    def form(self, group: str) -> dict:
        """
        Extract inputs sent as group[field].
        Example: <input name="users[page]"> ➜ request.form("users") ➜ {"page": "2"}
        """
        value = self._data.get(group)
        return dict(value) if isinstance(value, dict) else {}

    def table(self, table_id: str) -> "RequestContext":
        """Parameters namespaced under one table id."""
        scoped = RequestContext()
        scoped._data = self.form(table_id)
        return scoped

    def merge(self, data: dict) -> "RequestContext":
        merged = RequestContext()
        merged._data = {**self._data, **nest_params(data)}
        return merged

    def __repr__(self):
        return f"RequestContext({self._data!r})"
