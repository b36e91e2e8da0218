"""Exceptions raised while assembling the assistant."""


class CatalogError(ValueError):
    """Raised when a catalog file cannot provide a usable set of replies."""

    def __init__(self, message: str, path=None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
