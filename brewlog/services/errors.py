"""Domain exceptions raised by services and translated to HTTP errors by routers."""


class RecipeValidationError(ValueError):
    """Recipe input rejected; carries every (field path, message) pair."""

    def __init__(self, errors: list[tuple[str, str]]):
        self.errors = errors
        summary = "; ".join(f"{path}: {message}" for path, message in errors)
        super().__init__(f"Recipe validation failed: {summary}")


class RecipeNotFoundError(LookupError):
    pass


class CollectionNotFoundError(LookupError):
    pass


class DuplicateCollectionError(ValueError):
    pass


class BackupFormatError(ValueError):
    pass


class ExportError(RuntimeError):
    pass


class TemplateNotFoundError(LookupError):
    pass


class ReadOnlyTemplateError(ValueError):
    """Built-in export templates cannot be edited or deleted."""
