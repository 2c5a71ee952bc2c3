"""
paisasplit — Exact money and deterministic expense splitting

Integer-backed money plus a pure split engine for a shared-expense ledger.
No floating-point drift, no leaked paise, and the same shares for the same
request on every run.

================================================================================
QUICK START
================================================================================

Money:

    from paisasplit import Money

    bill = Money.parse("₹1,234.50")      # 123450 paise, never a float
    bill.format_full()                    # '₹1,234.50'
    Money.parse(bill.format_plain()) == bill   # always True

Splitting:

    from paisasplit import Money, split_equally, split_by_percentage

    result = split_equally(Money.of(100), ["c", "a", "b"])
    result.subunits()                     # {'a': 3334, 'b': 3333, 'c': 3333}
    result.is_valid                       # sum of shares == total, always

    split_by_percentage(Money.of(100), {"x": 33.33, "y": 33.33, "z": 33.34})

Errors:

    ParseError       text is not an amount
    InvalidArgument  malformed split request (empty, sums do not match, ...)

================================================================================
"""

import logging

from .money import (
    Money,
    Currency,
    Grouping,
    RoundingMode,
    SUBUNITS_PER_UNIT,
)

from .errors import (
    PaisaSplitError,
    ParseError,
    AllocationError,
    InvalidArgument,
    InvariantViolation,
)

from .config import SplitPolicy, DEFAULT_POLICY

from .allocation import (
    SplitMethod,
    EqualSplit,
    ExactSplit,
    PercentageSplit,
    AllocationResult,
    allocate,
    split_equally,
    split_exact,
    split_by_percentage,
    validate_split,
    extra_subunit_count,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Money
    "Money",
    "Currency",
    "Grouping",
    "RoundingMode",
    "SUBUNITS_PER_UNIT",
    # Errors
    "PaisaSplitError",
    "ParseError",
    "AllocationError",
    "InvalidArgument",
    "InvariantViolation",
    # Config
    "SplitPolicy",
    "DEFAULT_POLICY",
    # Allocation
    "SplitMethod",
    "EqualSplit",
    "ExactSplit",
    "PercentageSplit",
    "AllocationResult",
    "allocate",
    "split_equally",
    "split_exact",
    "split_by_percentage",
    "validate_split",
    "extra_subunit_count",
]
