"""Detection errors."""


class DetectionError(Exception):
    """Base exception for detection failures that indicate programmer error."""


class CatalogError(DetectionError):
    """Raised when a signature rule violates the catalog invariants."""
