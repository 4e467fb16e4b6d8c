"""
Exception taxonomy for the store asset extractor.

Page-level errors end a job; asset-level errors only drop the asset (or a
single output size) they were raised for.
"""


class StoreAssetsError(Exception):
    """Base class for all extractor errors."""


class FetchExhausted(StoreAssetsError):
    """Every fetch strategy failed or was rejected."""

    def __init__(self, url: str, attempts: int, last_error: str = ""):
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        message = f"All {attempts} fetch strategies failed for {url}"
        if last_error:
            message += f" (last error: {last_error})"
        super().__init__(message)


class NoAssetsFound(StoreAssetsError):
    """The listing page yielded neither an icon nor screenshots."""


class AllAssetsUnusable(StoreAssetsError):
    """Asset URLs were found but none could be fetched and rendered."""


class SourceTooSmall(StoreAssetsError):
    """A decoded source image is below the floor for its asset type."""

    def __init__(self, width: int, height: int, min_size: int):
        self.width = width
        self.height = height
        self.min_size = min_size
        super().__init__(f"Source {width}x{height} is below {min_size}x{min_size}")


class RenderFailure(StoreAssetsError):
    """Drawing one output size failed."""


class ImageDecodeError(StoreAssetsError):
    """The fetched payload could not be decoded as an image."""


class InvalidTransition(StoreAssetsError):
    """A job status change would move backwards or leave a terminal state."""
