class ReportError(Exception):
    """Base class for report generation errors."""


class ImageLoadError(ReportError):
    """An image could not be fetched or decoded. Recoverable: the report shows a placeholder."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class ReportGenerationError(ReportError):
    """Layout or serialization failed; no document is produced."""
