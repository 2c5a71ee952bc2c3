"""
config.py — Split policy

Tunable limits for the allocation engine. The defaults reproduce the
historical behaviour of the ledger; change them only together with a
migration plan for stored allocations.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

from .money import Currency


@dataclass(frozen=True)
class SplitPolicy:
    """
    Limits applied by every split strategy.

    - percentage_total / percentage_tolerance: weights must sum to
      percentage_total within +/- percentage_tolerance (absolute)
    - max_participants: DoS protection, same order as Money distribution limits
    - default_currency: preset used when results are rendered in messages
    """
    percentage_total: float = 100.0
    percentage_tolerance: float = 0.01
    max_participants: int = 10_000
    default_currency: Currency = Currency.INR

    def __post_init__(self):
        if self.percentage_total <= 0:
            raise ValueError(
                f"percentage_total must be > 0, got {self.percentage_total}"
            )
        if self.percentage_tolerance < 0:
            raise ValueError(
                f"percentage_tolerance must be >= 0, got {self.percentage_tolerance}"
            )
        if self.max_participants < 1:
            raise ValueError(
                f"max_participants must be >= 1, got {self.max_participants}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "percentage_total": self.percentage_total,
            "percentage_tolerance": self.percentage_tolerance,
            "max_participants": self.max_participants,
            "default_currency": self.default_currency.code,
        }


DEFAULT_POLICY = SplitPolicy()
