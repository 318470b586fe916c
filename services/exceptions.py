"""Error kinds raised by the grading and report pipeline."""


class GradingError(Exception):
    """Base class for pipeline errors."""


class InvalidInput(GradingError):
    """Activity or grade data that cannot be defaulted (e.g. max_score <= 0)."""


class RenderingFailure(GradingError):
    """The spreadsheet / PDF / archive engine failed or is not installed."""


class ResourceUnavailable(GradingError):
    """A template asset such as a logo image is missing.

    Renderers catch this and omit the asset instead of failing the export.
    """


class RecordNotFound(GradingError):
    """A course, section or student referenced by the request does not exist."""
