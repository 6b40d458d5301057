"""Logging helpers for the prediction kernel."""

from __future__ import annotations

import logging
from typing import Iterable


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    level: int | str = logging.INFO, handlers: Iterable[logging.Handler] | None = None
) -> None:
    """Configure root logging for interactive sessions.

    The kernel itself only emits records; applications embedding it (or the
    bundled CLI) call this helper to establish a consistent format so that
    out-of-range input warnings and skipped evaluation rows are visible.
    Unknown level names raise :class:`ValueError`.
    """

    logging.basicConfig(
        level=_resolve_level(level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=list(handlers) if handlers else None,
    )
