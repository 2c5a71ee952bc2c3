"""
allocation.py — Deterministic split engine

================================================================================
STRATEGIES
================================================================================

Three ways to divide a total among participants:

    split_equally(total, ["c", "a", "b"])
    split_exact(total, {"a": Money.of(60), "b": Money.of(40)})
    split_by_percentage(total, {"x": 33.33, "y": 33.33, "z": 33.34})

Every strategy returns an AllocationResult or raises InvalidArgument.
There are no partial results.

================================================================================
REMAINDER RULE
================================================================================

Integer division leaves subunits over. They are handed out one per
participant in lexical order of the participant ids:

    total = 10000, participants = ["c", "a", "b"]
    divmod(10000, 3) = (3333, 1)
    sorted ids       = ["a", "b", "c"]
    result           = {"a": 3334, "b": 3333, "c": 3333}

The input order never matters, so the same request always yields the
same shares, on any machine. Audit and reconciliation depend on this.

Negative totals use floor division: divmod(-100, 3) = (-34, 2), which
gives {"a": -33, "b": -33, "c": -34}.

================================================================================
INVARIANT
================================================================================

    sum(result.shares.values()) == result.total

Checked before any result leaves this module.
================================================================================
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Iterable, Iterator, List, Mapping, Tuple, Union
import hashlib
import hmac
import json
import logging
import math

from .config import DEFAULT_POLICY, SplitPolicy
from .errors import InvalidArgument, InvariantViolation, ParseError
from .money import Money

logger = logging.getLogger(__name__)


# ==============================================================================
# STRATEGY TAGS
# ==============================================================================

class SplitMethod(Enum):
    """Strategy tag stored next to every allocation."""
    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"

    @classmethod
    def from_string(cls, value: str) -> SplitMethod:
        """
        Parses a stored tag. Older records use "equally" for EQUAL.

        Unknown tags are an error, never a silent fallback.
        """
        if not isinstance(value, str):
            raise ParseError(value, "split method must be a string")
        key = value.strip().lower()
        key = _METHOD_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ParseError(value, "unknown split method") from None


_METHOD_ALIASES = {"equally": "equal"}


# ==============================================================================
# REQUESTS
# ==============================================================================

@dataclass(frozen=True)
class EqualSplit:
    """Everyone pays the same, give or take one subunit."""
    participants: Tuple[str, ...]

    method: ClassVar[SplitMethod] = SplitMethod.EQUAL

    def __post_init__(self):
        if isinstance(self.participants, str):
            raise InvalidArgument("participants must be a collection of ids, not a single string")
        object.__setattr__(self, "participants", tuple(self.participants))


@dataclass(frozen=True)
class ExactSplit:
    """The caller states every share; they must add up to the total."""
    shares: Mapping[str, Money]

    method: ClassVar[SplitMethod] = SplitMethod.EXACT

    def __post_init__(self):
        object.__setattr__(self, "shares", MappingProxyType(dict(self.shares)))

    def __hash__(self) -> int:
        return hash(frozenset(self.shares.items()))


@dataclass(frozen=True)
class PercentageSplit:
    """Shares proportional to percentage weights summing to 100."""
    weights: Mapping[str, float]

    method: ClassVar[SplitMethod] = SplitMethod.PERCENTAGE

    def __post_init__(self):
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    def __hash__(self) -> int:
        return hash(frozenset(self.weights.items()))


SplitRequest = Union[EqualSplit, ExactSplit, PercentageSplit]


# ==============================================================================
# RESULT
# ==============================================================================

@dataclass(frozen=True)
class AllocationResult:
    """
    Participant -> share mapping, tagged with the strategy and the total.

    INVARIANT: sum(shares.values()) == total for every result produced by
    the engine. Results rebuilt with from_dict() are NOT re-checked; call
    is_valid to detect corrupt records.

    shares is a read-only view over a private copy, so a produced result
    cannot be edited into an unbalanced one.

    SERIALIZATION:
        {"method": "equal", "total": {"subunits": 10000},
         "shares": {"a": 3334, "b": 3333, "c": 3333}}
    """
    shares: Mapping[str, Money]
    method: SplitMethod
    total: Money

    def __post_init__(self):
        object.__setattr__(self, "shares", MappingProxyType(dict(self.shares)))

    def __hash__(self) -> int:
        return hash((self.method, self.total, frozenset(self.shares.items())))

    @property
    def is_valid(self) -> bool:
        return validate_split(self.total, self.shares)

    @property
    def participant_ids(self) -> List[str]:
        return list(self.shares)

    @property
    def participant_count(self) -> int:
        return len(self.shares)

    def share_for(self, participant_id: str) -> Money:
        """Share of one participant; zero if they are not part of the split."""
        return self.shares.get(participant_id, Money.zero())

    def has_participant(self, participant_id: str) -> bool:
        return participant_id in self.shares

    def subunits(self) -> Dict[str, int]:
        """Plain participant -> subunit mapping, ready for share records."""
        return {pid: share.subunits for pid, share in self.shares.items()}

    def __len__(self) -> int:
        return len(self.shares)

    def __iter__(self) -> Iterator[Tuple[str, Money]]:
        return iter(self.shares.items())

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method.value,
            "total": self.total.to_dict(),
            "shares": self.subunits(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AllocationResult:
        """
        Rebuilds a result from to_dict() output.

        Raises:
            ParseError: if the record is malformed
        """
        if not isinstance(data, Mapping):
            raise ParseError(data, "allocation record must be a mapping")
        try:
            method = SplitMethod.from_string(data["method"])
            total = Money.from_dict(data["total"])
            raw_shares = data["shares"]
        except KeyError as e:
            raise ParseError(data, f"missing field {e.args[0]!r}") from None

        if not isinstance(raw_shares, Mapping):
            raise ParseError(data, "'shares' must be a mapping")

        shares = {}
        for pid, subunits in raw_shares.items():
            if not isinstance(pid, str):
                raise ParseError(data, f"participant id {pid!r} is not a string")
            if isinstance(subunits, bool) or not isinstance(subunits, int):
                raise ParseError(data, f"share of {pid!r} must be an int")
            shares[pid] = Money.of_subunits(subunits)

        return cls(shares=shares, method=method, total=total)

    def digest(self) -> str:
        """
        SHA-256 fingerprint of the canonical serialized form.

        Two results have the same digest iff they have the same method, total
        and per-participant shares. Lets reconciliation jobs compare
        allocations without comparing every share.
        """
        content = json.dumps(
            self.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
        )
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def matches_digest(self, expected: str) -> bool:
        """Checks a stored fingerprint (constant-time comparison)."""
        if not isinstance(expected, str):
            return False
        return hmac.compare_digest(self.digest().encode("utf-8"), expected.encode("utf-8"))

    def __str__(self) -> str:
        return f"AllocationResult({self.method.value}, {len(self.shares)} participants, {self.total})"


# ==============================================================================
# VALIDATION
# ==============================================================================

def validate_split(total: Money, shares: Mapping[str, Money]) -> bool:
    """True iff the shares add up to the total, to the subunit."""
    return Money.sum(shares.values()) == total


def extra_subunit_count(total_subunits: int, participant_count: int) -> int:
    """How many participants get one extra subunit in an equal split."""
    if participant_count < 1:
        raise InvalidArgument(f"participant_count must be >= 1, got {participant_count}")
    return total_subunits % participant_count


def _check_total(total: Money) -> None:
    if not isinstance(total, Money):
        raise TypeError(f"total must be Money, not {type(total).__name__}")


def _check_participants(ids: List[str], policy: SplitPolicy) -> None:
    for pid in ids:
        if not isinstance(pid, str):
            raise InvalidArgument(f"Participant id must be a string, got {pid!r}")
    if len(ids) > policy.max_participants:
        raise InvalidArgument(
            f"Too many participants: {len(ids)} (limit {policy.max_participants})"
        )


def _spread_remainder(
    base: Mapping[str, int],
    remainder: int,
    recipients: List[str],
) -> Dict[str, Money]:
    """
    Hands the remainder out to recipients in order, one subunit at a time.

    For 0 <= remainder < len(recipients) the first `remainder` recipients
    get +1. Larger or negative remainders wrap around: divmod keeps the sum
    exact. Ids in base but not in recipients keep their base amount.
    """
    per_head, extra = divmod(remainder, len(recipients))
    bonus = {pid: per_head + (1 if i < extra else 0) for i, pid in enumerate(recipients)}
    return {
        pid: Money.of_subunits(amount + bonus.get(pid, 0))
        for pid, amount in base.items()
    }


def _finish(
    total: Money,
    shares: Dict[str, Money],
    method: SplitMethod,
) -> AllocationResult:
    if not validate_split(total, shares):
        actual = Money.sum(shares.values())
        logger.warning(
            "%s split leaked money: shares sum to %d, total is %d",
            method.value, actual.subunits, total.subunits,
        )
        raise InvariantViolation(total, actual)
    return AllocationResult(shares=shares, method=method, total=total)


# ==============================================================================
# STRATEGIES
# ==============================================================================

def split_equally(
    total: Money,
    participants: Iterable[str],
    policy: SplitPolicy = DEFAULT_POLICY,
) -> AllocationResult:
    """
    Splits total into equal shares.

    Shares differ by at most one subunit. The lexically first participants
    get the extra subunits. "Lexical" is Python str ordering, by Unicode code
    point. UTF-16 based sorts disagree for ids that mix characters outside
    the BMP with BMP characters above U+D7FF: here "\uff01" sorts before
    "\U0001f600", in UTF-16 order it sorts after.

    Raises:
        InvalidArgument: no participants, duplicate ids, non-string ids,
            more than policy.max_participants
    """
    _check_total(total)
    if isinstance(participants, str):
        raise InvalidArgument("participants must be a collection of ids, not a single string")

    ids = list(participants)
    if not ids:
        raise InvalidArgument("Cannot split among zero participants")
    _check_participants(ids, policy)

    ordered = sorted(ids)
    duplicates = sorted({a for a, b in zip(ordered, ordered[1:]) if a == b})
    if duplicates:
        raise InvalidArgument(f"Duplicate participants: {', '.join(duplicates)}")

    base, remainder = divmod(total.subunits, len(ordered))
    logger.debug(
        "equal split: total=%d participants=%d base=%d remainder=%d",
        total.subunits, len(ordered), base, remainder,
    )
    shares = _spread_remainder(dict.fromkeys(ordered, base), remainder, ordered)
    return _finish(total, shares, SplitMethod.EQUAL)


def split_exact(
    total: Money,
    shares: Mapping[str, Money],
    policy: SplitPolicy = DEFAULT_POLICY,
) -> AllocationResult:
    """
    Accepts caller-provided shares if they add up to total exactly.

    No tolerance and no remainder: exactness is the contract.

    Raises:
        InvalidArgument: empty mapping, non-Money share, or sum != total
            (the error carries `actual` and `expected`)
    """
    _check_total(total)
    if not shares:
        raise InvalidArgument("Cannot split with no shares specified")
    _check_participants(list(shares), policy)

    for pid, share in shares.items():
        if not isinstance(share, Money):
            raise InvalidArgument(
                f"Share of {pid!r} must be Money, not {type(share).__name__}"
            )

    actual = Money.sum(shares.values())
    if actual != total:
        currency = policy.default_currency
        raise InvalidArgument(
            f"Shares must sum to the total amount: shares sum to "
            f"{actual.format_full(currency)}, total is {total.format_full(currency)}",
            actual=actual,
            expected=total,
        )

    logger.debug("exact split: total=%d participants=%d", total.subunits, len(shares))
    return _finish(total, dict(shares), SplitMethod.EXACT)


def split_by_percentage(
    total: Money,
    weights: Mapping[str, float],
    policy: SplitPolicy = DEFAULT_POLICY,
) -> AllocationResult:
    """
    Splits total proportionally to percentage weights.

    ALGORITHM:
    1. Check weights sum to 100 (+/- policy.percentage_tolerance)
    2. base share = floor(total * weight / 100), always rounding down
    3. remainder = total - sum(base shares)
    4. remainder handed out in lexical order, same rule as split_equally

    Floor (not round) in step 2 is the historical behaviour; changing it
    would change stored allocations.

    Raises:
        InvalidArgument: empty mapping, bad weight, weights not summing to 100
    """
    _check_total(total)
    if not weights:
        raise InvalidArgument("Cannot split with no percentages specified")
    _check_participants(list(weights), policy)

    for pid, weight in weights.items():
        if (
            isinstance(weight, bool)
            or not isinstance(weight, (int, float))
            or not math.isfinite(weight)
            or weight < 0
        ):
            raise InvalidArgument(
                f"Percentage of {pid!r} must be a finite number >= 0, got {weight!r}"
            )

    weight_sum = sum(float(w) for w in weights.values())
    if abs(weight_sum - policy.percentage_total) > policy.percentage_tolerance:
        raise InvalidArgument(
            f"Percentages must sum to {policy.percentage_total:g}, got {weight_sum}"
        )

    ordered = sorted(weights)
    base = {
        pid: math.floor(total.subunits * float(weights[pid]) / policy.percentage_total)
        for pid in ordered
    }
    remainder = total.subunits - sum(base.values())
    logger.debug(
        "percentage split: total=%d participants=%d remainder=%d",
        total.subunits, len(ordered), remainder,
    )

    # Weights within tolerance but not exactly 100 can leave a remainder
    # outside [0, n); only participants with a positive weight absorb it.
    recipients = ordered
    if not 0 <= remainder < len(ordered):
        recipients = [pid for pid in ordered if weights[pid] > 0]
    shares = _spread_remainder(base, remainder, recipients)
    return _finish(total, shares, SplitMethod.PERCENTAGE)


def allocate(
    total: Money,
    request: SplitRequest,
    policy: SplitPolicy = DEFAULT_POLICY,
) -> AllocationResult:
    """Runs the strategy matching the request type."""
    if isinstance(request, EqualSplit):
        return split_equally(total, request.participants, policy)
    if isinstance(request, ExactSplit):
        return split_exact(total, request.shares, policy)
    if isinstance(request, PercentageSplit):
        return split_by_percentage(total, request.weights, policy)
    raise TypeError(f"Unknown split request: {type(request).__name__}")
