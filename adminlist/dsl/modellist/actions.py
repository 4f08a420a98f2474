from typing import Any, Callable, Optional

from slugify import slugify

from adminlist.dsl.modellist.exceptions import BuilderException
from adminlist.dsl.modellist.filters import passes_filter_condition

ROW_ACTION_ATTRS = ("target", "class", "confirm", "fetch")


class ActionManager:
    """
    Row and bulk actions for one list.

    At most one action runs per request: the first one whose key matches the
    request's ``table_action``. After that ``has_executed()`` stays true and
    further resolution attempts do nothing.
    """

    def __init__(self, context):
        self.context = context
        self.row_actions: dict[str, dict] = {}
        self.row_action_configs: dict[str, dict] = {}
        self.bulk_actions: dict[str, dict] = {}
        self.action_functions: dict[str, Callable] = {}
        self.function_results: Any = None
        self.action_response: dict = {}
        self.update_table = True
        self.executed = False

    def _passes(self, config: dict) -> bool:
        filters = self.context.get_filters()
        condition = config.get("show_if_filter")
        if not condition or not filters:
            return True
        return passes_filter_condition(condition, filters)

    # ------------------------------------------------------------------
    # Row actions
    # ------------------------------------------------------------------

    def add_row_action(self, key: str, config: dict):
        if not self._passes(config):
            return
        self.row_action_configs[key] = dict(config)
        self.row_actions[key] = self.build_row_action_config(key, config)
        if callable(config.get("action")):
            self.action_functions[key] = config["action"]

    def set_row_actions(self, actions: dict[str, dict]):
        self.row_actions = {}
        self.row_action_configs = {}
        self.action_functions = {}
        for key, config in actions.items():
            self.add_row_action(key, config)
        self.execute_row_action_if_requested()

    def get_row_actions(self) -> dict[str, dict]:
        return self.row_actions

    def build_row_action_config(self, key: str, config: dict) -> dict:
        action_config = {"label": config.get("label", key)}
        if config.get("link") is not None:
            action_config["link"] = config["link"]

        for attr in ROW_ACTION_ATTRS:
            if config.get(attr) is None:
                continue
            if attr == "fetch":
                action_config["fetch"] = "post"
            elif attr == "class":
                action_config["class"] = f"js-single-action {config[attr]}"
            else:
                action_config[attr] = config[attr]

        if self.context.is_fetch_mode() and "link" in action_config and "fetch" not in action_config:
            action_config["fetch"] = "post"
        return action_config

    def execute_row_action_if_requested(self) -> bool:
        request = self.context.request
        table_action = request.string("table_action", "")
        if not table_action or table_action not in self.action_functions or self.executed:
            return False

        records = self.context.model.get_by_ids(self.parse_ids())
        self.executed = True
        self.function_results = self.action_functions[table_action](records, request)
        return True

    # ------------------------------------------------------------------
    # Bulk actions
    # ------------------------------------------------------------------

    def add_bulk_action(self, config: dict, key: Optional[str] = None):
        config = dict(config)
        if not config.get("label"):
            raise BuilderException.missing_label(key)
        key = key or config.pop("key", None) or slugify(config["label"], separator="_")
        config.pop("key", None)
        self.bulk_actions[key] = config
        return key

    def set_bulk_actions(self, actions: dict[str, dict]):
        self.action_response = {}
        self.update_table = True
        self.bulk_actions = {key: config for key, config in actions.items() if self._passes(config)}
        self.execute_bulk_action_if_requested()

    def get_bulk_actions(self) -> dict[str, dict]:
        return self.bulk_actions

    def get_bulk_action_labels(self) -> dict[str, str]:
        return {key: config["label"] for key, config in self.bulk_actions.items() if config.get("label")}

    def execute_bulk_action_if_requested(self) -> bool:
        request = self.context.request
        table_action = request.string("table_action", "")
        if not table_action or not request.filled("table_ids") or self.executed:
            return False

        config = self.bulk_actions.get(table_action)
        if config is None or not callable(config.get("action")):
            return False

        if config.get("update_table", True) is False:
            self.update_table = False

        self.executed = True
        self.execute_bulk_action(config["action"], self.parse_ids(), config.get("mode", "single"))
        return True

    def execute_bulk_action(self, action: Callable, ids: list, mode: str = "single"):
        model = self.context.model
        request = self.context.request

        if mode == "batch":
            self._merge_response(action(model.get_by_ids(ids), request))
            return

        for id_ in ids:
            self._merge_response(action(model.get_by_id(id_), request))

    def _merge_response(self, result):
        if isinstance(result, dict):
            self.action_response.update(result)

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def set_default_actions(self, custom_actions: dict = None, delete_handler: Callable = None):
        page = self.context.page
        defaults = {
            "edit": {
                "label": "Edit",
                "link": f"?page={page}&action=edit&id=%id%",
            },
            "delete": {
                "label": "Delete",
                "class": "link-action-danger",
                "action": delete_handler,
                "confirm": "Are you sure you want to delete this item?",
            },
        }
        merged = {key: dict(config) for key, config in self.row_action_configs.items()}
        merged.update(defaults)
        merged.update(custom_actions or {})
        self.set_row_actions(merged)

    # ------------------------------------------------------------------
    # Results & state
    # ------------------------------------------------------------------

    def parse_ids(self) -> list:
        return self.context.request.to_list("table_ids")

    @staticmethod
    def normalize_results(results) -> dict:
        if isinstance(results, dict):
            return results
        if isinstance(results, bool):
            return {"success": results}
        return {"function_results": results}

    def get_function_results(self):
        return self.function_results

    def get_action_results(self) -> dict:
        if not self.executed and self.action_functions:
            self.execute_row_action_if_requested()

        response = {}
        if self.function_results is not None:
            response = self.normalize_results(self.function_results)
        return {**self.action_response, **response}

    def should_update_table(self) -> bool:
        return self.update_table

    def has_executed(self) -> bool:
        return self.executed

    def reset(self):
        self.function_results = None
        self.action_response = {}
        self.update_table = True
        self.executed = False
        return self
