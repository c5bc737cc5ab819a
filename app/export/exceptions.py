class NothingToExportError(Exception):
    """Raised when an export is requested before any results are loaded."""
