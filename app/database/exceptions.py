class StorageError(Exception):
    """Base exception for storage platform failures."""


class TableMissingError(StorageError):
    """Raised when a table the dashboard relies on has not been created."""


class RecordNotFoundError(StorageError):
    """Raised when a row cannot be found by its identifier."""
