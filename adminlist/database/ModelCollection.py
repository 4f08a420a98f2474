from typing import Any, List


class ModelCollection(list):
    """
    Rows returned by ``Model.get``.

    ``columns`` lists the column names the query produced, in order.
    ``raw`` keeps the undecorated database rows (plain dicts).
    """

    def __init__(self, items: List[Any] = None, columns: List[str] = None, raw: List[dict] = None):
        super().__init__(items or [])
        self.columns = list(columns or [])
        self.raw = list(raw or [])

    def to_list_dict(self) -> List[dict[str, Any]]:
        return [item.to_dict() if hasattr(item, "to_dict") else dict(item) for item in self]

    def pluck(self, column: str) -> List[Any]:
        """Get a list of values from a specific column"""
        return [item.get(column) for item in self]

    def where(self, callback) -> "ModelCollection":
        """Filter the collection using a callback"""
        kept = [(item, raw) for item, raw in zip(self, self.raw or [None] * len(self)) if callback(item)]
        return ModelCollection(
            [item for item, _ in kept],
            self.columns,
            [raw for _, raw in kept if raw is not None],
        )

    def first(self):
        """Get first item from collection"""
        return self[0] if len(self) > 0 else None

    def last(self):
        """Get last item from collection"""
        return self[-1] if len(self) > 0 else None
