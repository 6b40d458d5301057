"""Exception and warning types raised by the prediction kernel."""

from __future__ import annotations


class MatchprobError(Exception):
    """Base class for every error raised by matchprob."""


class InvalidInput(MatchprobError, ValueError):
    """Raised when caller supplied parameters cannot be used.

    Covers non-numeric, NaN, infinite or negative rate parameters, trial
    counts below one and unknown method names.  Nothing is computed or cached
    before this is raised.
    """


class NumericDegeneracy(MatchprobError, ArithmeticError):
    """Raised if a computed distribution contains a non-finite value."""


class OutOfRangeWarning(UserWarning):
    """Issued for inputs that are valid but outside their typical range."""


__all__ = [
    "InvalidInput",
    "MatchprobError",
    "NumericDegeneracy",
    "OutOfRangeWarning",
]
