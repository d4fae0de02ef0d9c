"""Batch run identifiers for log correlation.

Every upload processed by BatchPipeline gets a ``RUN-xxxxxxxx`` id.
Loggers obtained from get_run_logger stamp that id on their records as
``run_id``, so the classifier, detector and pipeline lines for one
upload can be grepped together even when the CLI is driven in a loop.

    with run_scope(new_run_id()):
        logger.info("Loading %s", path)  # run_id=RUN-1f3a9c0e

Outside any run the id is ``-``.
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

OUTSIDE_RUN = "-"

_run_id: ContextVar[str] = ContextVar("run_id", default=OUTSIDE_RUN)


def new_run_id() -> str:
    return f"RUN-{uuid.uuid4().hex[:8]}"


def get_run_id() -> str:
    return _run_id.get()


@contextmanager
def run_scope(run_id: str) -> Iterator[str]:
    """Tag log records with ``run_id`` until the block exits, then restore the previous id."""
    token = _run_id.set(run_id)
    try:
        yield run_id
    finally:
        _run_id.reset(token)


class RunIdFilter(logging.Filter):
    """Stamps the active batch run id on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get()  # type: ignore[attr-defined]
        return True


def get_run_logger(name: str) -> logging.Logger:
    """Module logger whose records carry ``run_id`` (attached once per logger)."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, RunIdFilter) for f in logger.filters):
        logger.addFilter(RunIdFilter())
    return logger
