"""Error taxonomy for a batch run.

Row-level problems are recovered locally by the caller (row skipped,
warning recorded). Store problems and empty batches abort the run.
"""


class PipelineError(Exception):
    """Base class for every failure surfaced to the caller of a run."""


class ValidationFailure(PipelineError):
    """Input has the wrong shape (missing column, unusable row)."""


class EmptyResultFailure(ValidationFailure):
    """The batch yields zero usable records after validation."""

    def __init__(self, message: str = "No usable records in batch", dropped: int = 0) -> None:
        super().__init__(message)
        self.dropped = dropped


class IOFailure(PipelineError):
    """The history store could not complete a read or write."""
