"""Domain exceptions."""


class ImageServiceError(Exception):
    """Base exception for errors raised while serving a page image."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConfigError(ImageServiceError):
    """Exception raised when the service cannot be configured (fatal at startup)."""
    pass


class SecurityError(ImageServiceError):
    """Exception raised when a requested path escapes the served root."""

    def __init__(self, reference: str, resolved: str):
        super().__init__(f"Detected directory-traversal attempt: {reference!r} resolved to {resolved}")
        self.reference = reference
        self.resolved = resolved


class NotFoundError(ImageServiceError):
    """Exception raised when a file, or the image on a page, does not exist."""
    pass


class RangeError(ImageServiceError):
    """Exception raised when a page index falls outside the document."""

    def __init__(self, page_index: int, page_count: int):
        super().__init__(
            f"Page number {page_index + 1} out of range 1 to {page_count} (inclusive)"
        )
        self.page_index = page_index
        self.page_count = page_count


class ParseError(ImageServiceError):
    """Exception raised when document content or page metadata is malformed."""
    pass


class EncodeError(ImageServiceError):
    """Exception raised when a pixel buffer cannot be encoded."""
    pass


class ServiceBusyError(ImageServiceError):
    """Exception raised when every page image producer is already in use."""

    def __init__(self, max_producers: int):
        super().__init__(f"All {max_producers} page image producers are busy")
        self.max_producers = max_producers
