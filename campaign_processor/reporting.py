"""Progress reporting hooks used by the pipeline stages.

Stages never print or configure logging themselves; they report through a
:class:`PipelineReporter`.  The default :class:`LoggingReporter` forwards every
event to :mod:`logging`, while tests inject a recorder.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

LOGGER = logging.getLogger("campaign_processor.pipeline")


class PipelineReporter(Protocol):
    """Observer interface receiving progress and error events."""

    def stage(self, title: str) -> None:  # pragma: no cover - runtime protocol
        """A new pipeline stage has started."""

    def info(self, message: str) -> None:  # pragma: no cover - runtime protocol
        ...

    def success(self, message: str) -> None:  # pragma: no cover - runtime protocol
        ...

    def warning(self, message: str) -> None:  # pragma: no cover - runtime protocol
        ...

    def error(self, message: str) -> None:  # pragma: no cover - runtime protocol
        ...


class LoggingReporter:
    """Reporter that writes events to a :class:`logging.Logger`."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER

    def stage(self, title: str) -> None:
        self._logger.info("=== %s ===", title)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def success(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


def report_errors(
    reporter: PipelineReporter,
    errors: Sequence[str],
    *,
    limit: int = 10,
    title: Optional[str] = None,
) -> None:
    """Report the first ``limit`` errors and a count of the remainder."""

    if not errors:
        return
    if title:
        reporter.warning(title)
    for error in errors[:limit]:
        reporter.warning(f"  {error}")
    if len(errors) > limit:
        reporter.warning(f"  ... and {len(errors) - limit} more errors")


def resolve_reporter(reporter: Optional[PipelineReporter]) -> PipelineReporter:
    return reporter if reporter is not None else LoggingReporter()


__all__ = ["PipelineReporter", "LoggingReporter", "report_errors", "resolve_reporter"]
