from __future__ import annotations

import logging

import pytest

from matchprob.logging import configure_logging


@pytest.mark.parametrize("level", ["debug", " Warning ", logging.ERROR])
def test_configure_logging_accepts_levels(level) -> None:
    configure_logging(level, handlers=[logging.NullHandler()])


def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("bogus")
