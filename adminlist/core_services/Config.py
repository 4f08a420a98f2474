import os
from typing import Any

from dotenv import load_dotenv

TRUTHY = ("true", "1", "yes", "on")


class Config:
    """
    Environment-backed settings for list pages.

    Values come from the process environment (optionally seeded from a .env
    file). An explicit override mapping wins over the environment, which keeps
    tests independent of whatever the developer has exported.
    """

    DEFAULTS = {
        "ADMINLIST_DEBUG": "false",
        "ADMINLIST_PAGE_LIMIT": "20",
        "ADMINLIST_SQL_LOG": "false",
        "ADMINLIST_LOG_FILE": None,
        "ADMINLIST_DATABASE": ":memory:",
    }

    def __init__(self, overrides: dict = None, dotenv: bool = False):
        if dotenv:
            load_dotenv()
        self.overrides = dict(overrides or {})

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.overrides:
            return self.overrides[key]
        value = os.getenv(key)
        if value is None:
            return self.DEFAULTS.get(key, default) if default is None else default
        return value

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).lower() in TRUTHY

    def integer(self, key: str, default: int = 0) -> int:
        try:
            return int(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def set(self, key: str, value: Any):
        self.overrides[key] = value
        return self

    @property
    def debug(self) -> bool:
        return self.boolean("ADMINLIST_DEBUG")

    @property
    def page_limit(self) -> int:
        return self.integer("ADMINLIST_PAGE_LIMIT", 20)

    @property
    def sql_log(self) -> bool:
        return self.boolean("ADMINLIST_SQL_LOG")

    @property
    def log_file(self):
        return self.get("ADMINLIST_LOG_FILE")

    @property
    def database(self) -> str:
        return self.get("ADMINLIST_DATABASE")
