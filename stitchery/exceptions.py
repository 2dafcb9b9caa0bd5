"""Exception classes for catalogue operations."""

from typing import Optional


class CatalogError(Exception):
    """Base exception for catalogue operations."""

    error_prefix: str = "Catalog operation failed"

    def __init__(self, message: str, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class PopulationError(CatalogError):
    """Raised when the cache could not be loaded from the backing store.

    Every caller that triggered or waited on the failed attempt receives
    this error; the original exception is available as ``__cause__``.
    """

    error_prefix = "Catalog population failed"
