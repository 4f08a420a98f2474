class BuilderException(Exception):
    """Misuse of the fluent list builder API."""

    @classmethod
    def invalid_field(cls, key) -> "BuilderException":
        return cls(f"Invalid field key: {key!r}. A field key cannot be empty.")

    @classmethod
    def no_current_field(cls, method: str) -> "BuilderException":
        return cls(f"{method}() requires a selected field. Call field('name') first.")

    @classmethod
    def missing_label(cls, key) -> "BuilderException":
        return cls(f"Bulk action {key!r} needs a 'label'.")
