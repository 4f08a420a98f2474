from pprint import pformat


class DataKlass:
    """
    Attribute and key access over one fetched row.

    Nested dicts and lists stay as they are; ``get_path`` walks them with
    dot notation (``doctor.name``, ``files.0.url``).
    """

    def __init__(self, initial_data=None, safe_mode=False):
        self._data = dict(initial_data or {})
        self._safe_mode = safe_mode

    def __getattr__(self, key):
        if key.startswith("__"):
            raise AttributeError(key)
        data = self.__dict__.get("_data", {})
        if key in data:
            return data[key]
        if self.__dict__.get("_safe_mode"):
            return None
        raise AttributeError(f"{self.__class__.__name__} object has no attribute '{key}'")

    def __setattr__(self, key, value):
        if key in ("_data", "_safe_mode"):
            super().__setattr__(key, value)
        else:
            self._data[key] = value

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value

    def __delattr__(self, key):
        if key in self._data:
            del self._data[key]
        else:
            raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{key}'")

    def __delitem__(self, key):
        del self._data[key]

    def __contains__(self, key):
        return key in self._data

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)

    def __eq__(self, other):
        if isinstance(other, DataKlass):
            return self._data == other._data
        if isinstance(other, dict):
            return self._data == other
        return NotImplemented

    def keys(self):
        return self._data.keys()

    def items(self):
        return self._data.items()

    def get(self, key, default=None):
        return self._data.get(key, default)

    def get_path(self, path: str, default=""):
        """
        Walk a dot-notation path through dicts, lists and records.
        Any missing or non-indexable segment yields ``default``.
        """
        current = self
        for key in path.split("."):
            if isinstance(current, DataKlass):
                if key not in current._data:
                    return default
                current = current._data[key]
            elif isinstance(current, dict):
                if key not in current:
                    return default
                current = current[key]
            elif isinstance(current, (list, tuple)):
                if not key.isdigit() or int(key) >= len(current):
                    return default
                current = current[int(key)]
            elif current is not None and not isinstance(current, (str, bytes, int, float, bool)) \
                    and hasattr(current, key):
                current = getattr(current, key)
            else:
                return default
        return default if current is None else current

    def safe_getattr(self, path, default=None):
        return self.get_path(path, default)

    def to_dict(self):
        """Recursively convert DataKlass into dicts."""
        def convert(value):
            if isinstance(value, DataKlass):
                return value.to_dict()
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            if isinstance(value, (list, tuple)):
                return [convert(v) for v in value]
            return value

        return {k: convert(v) for k, v in self._data.items()}

    def copy(self):
        return self.__class__(dict(self._data), self._safe_mode)

    def update(self, new_data):
        self._data.update(new_data)

    def __repr__(self):
        return f"{self.__class__.__name__}({pformat(self.to_dict(), indent=2, width=100)})"

    def __str__(self):
        return pformat(self.to_dict(), indent=2, width=100)
