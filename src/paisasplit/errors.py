"""
errors.py — Error taxonomy for money parsing and split allocation

Every failure in this package is synchronous and typed. There is no
partial result and no "success with warnings": an operation either
returns a fully valid value or raises one of the errors below.

    PaisaSplitError
    ├── ParseError            text that is not a monetary amount
    └── AllocationError
        ├── InvalidArgument   malformed split request (caller's fault)
        └── InvariantViolation  shares do not sum to the total (engine bug)

All of them are also ValueError, so callers that only know the standard
library can still catch bad input the usual way.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .money import Money


class PaisaSplitError(Exception):
    """Base class for every error raised by paisasplit."""


class ParseError(PaisaSplitError, ValueError):
    """Input could not be interpreted as a monetary amount or record."""

    def __init__(self, text: object, reason: str = "not a monetary amount"):
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid money format {text!r}: {reason}")


class AllocationError(PaisaSplitError, ValueError):
    """A split could not be produced."""


class InvalidArgument(AllocationError):
    """
    Malformed allocation request.

    For sum mismatches `actual` and `expected` carry the computed sum and
    the total the shares were supposed to reach.
    """

    def __init__(
        self,
        message: str,
        actual: Optional[Money] = None,
        expected: Optional[Money] = None,
    ):
        self.actual = actual
        self.expected = expected
        super().__init__(message)


class InvariantViolation(AllocationError):
    """Computed shares do not add up to the total. Never the caller's fault."""

    def __init__(self, total: Money, actual: Money):
        self.total = total
        self.actual = actual
        super().__init__(
            f"Allocation leaked money: shares sum to {actual!r}, total is {total!r}"
        )
