class ExtractionApiError(Exception):
    """Raised when the extraction API rejects a request."""


class ExtractionNetworkError(ExtractionApiError):
    """Raised when the extraction API cannot be reached."""


class EmptyQueueError(ExtractionApiError):
    """Raised when processing is requested with nothing queued."""
