"""
money.py — Exact monetary value for the expense ledger

================================================================================
DESIGN PRINCIPLES
================================================================================

1. INTERNAL REPRESENTATION
   A signed int count of subunits (paise: 100 paise = 1 rupee).
   Never floating point internally.

2. IDENTITY
   Equality, ordering and hashing use the subunit count and nothing else.
   Currency presets only affect how a value is printed and parsed.

3. IMMUTABILITY
   Frozen dataclass. Every operation returns a new instance.
   No side effects, safe to share across threads.

4. ONE ROUNDING POINT
   The only place a float touches a value is when a float factor is applied
   (from_major, multiply, divide). The result is rounded back to an int
   immediately, half away from zero unless the caller picks another mode.

5. LOSSLESS TEXT
   format_plain() prints digits through Decimal and parse() reads them back
   with Decimal quantize, never float and never str(int), so
   parse(format_plain(m)) == m for every int, no matter how large.

================================================================================
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation, MAX_EMAX, MIN_EMIN, ROUND_HALF_UP
from enum import Enum
from typing import ClassVar, Iterable, Optional, Union
import math
import re

from .errors import ParseError


SUBUNITS_PER_UNIT = 100
DECIMALS = 2


# ==============================================================================
# CURRENCY PRESETS (display only)
# ==============================================================================

class Grouping(Enum):
    """Digit grouping for the integer part of an amount."""
    INDIAN = "indian"    # 12,34,567
    WESTERN = "western"  # 1,234,567


class Currency(Enum):
    """
    Formatting presets.

    Every preset uses the same scale (2 decimals), so switching preset never
    changes what a Money is worth. There is no exchange-rate logic here.
    """
    INR = ("INR", "₹", Grouping.INDIAN, (("Cr", 10**7), ("L", 10**5), ("K", 10**3)))
    USD = ("USD", "$", Grouping.WESTERN, (("B", 10**9), ("M", 10**6), ("K", 10**3)))
    EUR = ("EUR", "€", Grouping.WESTERN, (("B", 10**9), ("M", 10**6), ("K", 10**3)))
    GBP = ("GBP", "£", Grouping.WESTERN, (("B", 10**9), ("M", 10**6), ("K", 10**3)))

    def __init__(self, code: str, symbol: str, grouping: Grouping, compact_suffixes):
        self._code = code
        self._symbol = symbol
        self._grouping = grouping
        self._compact_suffixes = compact_suffixes

    @property
    def code(self) -> str:
        return self._code

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def grouping(self) -> Grouping:
        return self._grouping

    @property
    def compact_suffixes(self) -> tuple[tuple[str, int], ...]:
        """(suffix, major units) pairs, largest first."""
        return self._compact_suffixes


# ==============================================================================
# ROUNDING STRATEGIES
# ==============================================================================

class RoundingMode(Enum):
    """
    Rounding strategies.

    - HALF_UP: commercial rounding, ties go away from zero (2.5 -> 3, -2.5 -> -3).
      This is the default everywhere in the package.
    - HALF_EVEN: banker's rounding
    - DOWN: toward zero (truncation)
    - UP: away from zero
    - FLOOR: toward negative infinity
    - CEILING: toward positive infinity
    """
    HALF_UP = "half_up"
    HALF_EVEN = "half_even"
    DOWN = "down"
    UP = "up"
    FLOOR = "floor"
    CEILING = "ceiling"


def _apply_rounding(value: float, mode: RoundingMode) -> int:
    """Applies the rounding mode to a float and returns an int."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value: {value}")

    def _half_up(v: float) -> int:
        magnitude = math.floor(abs(v))
        if abs(v) - magnitude >= 0.5:
            magnitude += 1
        return magnitude if v >= 0 else -magnitude

    def _half_even(v: float) -> int:
        return round(v)

    def _down(v: float) -> int:
        return math.trunc(v)

    def _up(v: float) -> int:
        return math.ceil(v) if v >= 0 else math.floor(v)

    strategies = {
        RoundingMode.HALF_UP: _half_up,
        RoundingMode.HALF_EVEN: _half_even,
        RoundingMode.DOWN: _down,
        RoundingMode.UP: _up,
        RoundingMode.FLOOR: math.floor,
        RoundingMode.CEILING: math.ceil,
    }

    strategy = strategies.get(mode)
    if strategy is None:
        raise ValueError(f"Unknown rounding mode: {mode}")

    return strategy(value)


def _round_ratio(numerator: int, denominator: int, mode: RoundingMode) -> int:
    """Rounds numerator / denominator exactly, without going through float."""
    if denominator == 0:
        raise ZeroDivisionError("Money division by zero")
    if denominator < 0:
        numerator, denominator = -numerator, -denominator

    # floor quotient; 0 <= rest < denominator
    quotient, rest = divmod(numerator, denominator)
    if rest == 0:
        return quotient

    negative = numerator < 0
    if mode is RoundingMode.FLOOR:
        return quotient
    if mode is RoundingMode.CEILING:
        return quotient + 1
    if mode is RoundingMode.DOWN:
        return quotient + 1 if negative else quotient
    if mode is RoundingMode.UP:
        return quotient if negative else quotient + 1

    twice = 2 * rest
    if twice < denominator:
        return quotient
    if twice > denominator:
        return quotient + 1
    if mode is RoundingMode.HALF_UP:
        return quotient if negative else quotient + 1
    if mode is RoundingMode.HALF_EVEN:
        return quotient if quotient % 2 == 0 else quotient + 1

    raise ValueError(f"Unknown rounding mode: {mode}")


# ==============================================================================
# TEXT HELPERS
# ==============================================================================

_AMOUNT_CHARS = frozenset("0123456789+-.")
_CENT = Decimal("0.01")
_SIGN_GAP = re.compile(r"^([+-])\s+")


def _digits(value: int) -> str:
    # str(int) is capped by sys.get_int_max_str_digits(); Decimal is not.
    return str(Decimal(value))


def _group_digits(digits: str, grouping: Grouping) -> str:
    if len(digits) <= 3:
        return digits

    head, tail = digits[:-3], digits[-3:]
    size = 2 if grouping is Grouping.INDIAN else 3
    groups = [tail]
    while len(head) > size:
        groups.insert(0, head[-size:])
        head = head[:-size]
    groups.insert(0, head)
    return ",".join(groups)


def _is_plain_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ==============================================================================
# MONEY CLASS
# ==============================================================================

@dataclass(frozen=True, slots=True, order=False)
class Money:
    """
    Domain Primitive for amounts of money.

    INVARIANTS:
    1. _subunits is always an int (never float, never bool)
    2. ==, <, hash() depend only on _subunits
    3. Every operation returns a new Money

    USAGE:
        bill = Money.parse("₹1,234.50")
        bill.subunits            # 123450
        bill.format_display()    # '₹1,234.50'
        bill * 0.5               # Money(subunits=61725)

    SERIALIZATION:
        to_dict() / from_dict(), format: {"subunits": int}
        NEVER serialize as float.
    """
    _subunits: int

    SCALE: ClassVar[int] = SUBUNITS_PER_UNIT

    def __post_init__(self):
        if not _is_plain_int(self._subunits):
            raise TypeError(
                f"Money needs an int count of subunits, not {type(self._subunits).__name__}. "
                f"Use Money.from_major() or Money.parse() to convert."
            )

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def of_subunits(cls, subunits: int) -> Money:
        """From subunits (paise). No conversion, full precision."""
        return cls(_subunits=subunits)

    from_subunits = of_subunits

    @classmethod
    def of(cls, major_units: int) -> Money:
        """
        From whole major units (rupees).
        Integers only. For fractional amounts use from_major() or parse().
        """
        if not _is_plain_int(major_units):
            raise TypeError(
                f"Money.of() takes an int, not {type(major_units).__name__}. "
                f"Use Money.from_major() for fractional amounts."
            )
        return cls(_subunits=major_units * cls.SCALE)

    @classmethod
    def from_major(
        cls,
        value: Union[int, float],
        rounding: RoundingMode = RoundingMode.HALF_UP
    ) -> Money:
        """
        From a float number of major units.

        WARNING: rounding happens HERE, exactly once.
        From this point on everything is an integer.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Money.from_major() takes a number, not {type(value).__name__}")
        if _is_plain_int(value):
            return cls(_subunits=value * cls.SCALE)
        return cls(_subunits=_apply_rounding(value * cls.SCALE, rounding))

    @classmethod
    def zero(cls) -> Money:
        """Zero. Handy as the start value of a sum."""
        return cls(_subunits=0)

    @classmethod
    def parse(cls, text: str) -> Money:
        """
        Parses user input such as "₹1,234.50", "-₹5", " 12 " or "0.5".

        Currency symbols, thousands separators and surrounding whitespace are
        stripped; what remains must be a plain decimal number of major units.
        Digits past the second decimal are rounded half away from zero.

        Raises:
            ParseError: for anything that is not a monetary amount
        """
        if not isinstance(text, str):
            raise ParseError(text, "expected a string")

        cleaned = text
        for currency in Currency:
            cleaned = cleaned.replace(currency.symbol, "")
        cleaned = _SIGN_GAP.sub(r"\1", cleaned.replace(",", "").strip())

        if not cleaned or not _AMOUNT_CHARS.issuperset(cleaned):
            raise ParseError(text)

        # Room for every digit of the input plus the two decimals and a carry.
        context = Context(prec=len(cleaned) + DECIMALS + 1, Emax=MAX_EMAX, Emin=MIN_EMIN)
        try:
            amount = Decimal(cleaned)
            rounded = amount.quantize(_CENT, rounding=ROUND_HALF_UP, context=context)
        except InvalidOperation:
            raise ParseError(text) from None

        return cls(_subunits=int(rounded.scaleb(DECIMALS, context=context)))

    @classmethod
    def try_parse(cls, text: str) -> Optional[Money]:
        """Like parse(), but returns None for invalid input."""
        try:
            return cls.parse(text)
        except ParseError:
            return None

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            raise TypeError(
                f"Operation not allowed: Money + {type(other).__name__}. "
                f"Use Money.of_subunits() or Money.parse() to convert."
            )
        return Money(_subunits=self._subunits + other._subunits)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            raise TypeError(
                f"Operation not allowed: Money - {type(other).__name__}."
            )
        return Money(_subunits=self._subunits - other._subunits)

    def __neg__(self) -> Money:
        return Money(_subunits=-self._subunits)

    def __abs__(self) -> Money:
        return Money(_subunits=abs(self._subunits))

    def multiply(
        self,
        factor: Union[int, float],
        rounding: RoundingMode = RoundingMode.HALF_UP
    ) -> Money:
        """
        Scales by a factor.

        int factors are exact. float factors are applied once and rounded back
        to whole subunits with the given mode.
        """
        if _is_plain_int(factor):
            return Money(_subunits=self._subunits * factor)
        if isinstance(factor, float):
            return Money(_subunits=_apply_rounding(self._subunits * factor, rounding))
        raise TypeError(
            f"Money can only be multiplied by int or float, not {type(factor).__name__}."
        )

    def divide(
        self,
        divisor: Union[int, float],
        rounding: RoundingMode = RoundingMode.HALF_UP
    ) -> Money:
        """
        Divides by a scalar and rounds back to whole subunits.

        For splitting among people use split_equally(): plain division
        loses the remainder.
        """
        if _is_plain_int(divisor):
            return Money(_subunits=_round_ratio(self._subunits, divisor, rounding))
        if isinstance(divisor, float):
            if divisor == 0:
                raise ZeroDivisionError("Money division by zero")
            return Money(_subunits=_apply_rounding(self._subunits / divisor, rounding))
        raise TypeError(
            f"Money can only be divided by int or float, not {type(divisor).__name__}."
        )

    def __mul__(self, factor: Union[int, float]) -> Money:
        return self.multiply(factor)

    def __rmul__(self, factor: Union[int, float]) -> Money:
        return self.multiply(factor)

    def __truediv__(self, divisor: Union[int, float]) -> Money:
        return self.divide(divisor)

    # -------------------------------------------------------------------------
    # Rounding to whole units
    # -------------------------------------------------------------------------

    def round_to_major(self, rounding: RoundingMode = RoundingMode.HALF_UP) -> Money:
        """Rounds to a whole number of major units (rupees)."""
        units = _round_ratio(self._subunits, self.SCALE, rounding)
        return Money(_subunits=units * self.SCALE)

    def round_to_unit(self) -> Money:
        return self.round_to_major(RoundingMode.HALF_UP)

    def ceil_to_unit(self) -> Money:
        return self.round_to_major(RoundingMode.CEILING)

    def floor_to_unit(self) -> Money:
        return self.round_to_major(RoundingMode.FLOOR)

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    @staticmethod
    def sum(amounts: Iterable[Money]) -> Money:
        """Sum of amounts; zero for an empty iterable."""
        total = Money.zero()
        for amount in amounts:
            total = total + amount
        return total

    @staticmethod
    def max(amounts: Iterable[Money]) -> Optional[Money]:
        """Largest amount, or None for an empty iterable."""
        best = None
        for amount in amounts:
            if best is None or amount > best:
                best = amount
        return best

    @staticmethod
    def min(amounts: Iterable[Money]) -> Optional[Money]:
        """Smallest amount, or None for an empty iterable."""
        best = None
        for amount in amounts:
            if best is None or amount < best:
                best = amount
        return best

    # -------------------------------------------------------------------------
    # Comparison
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Money):
            return self._subunits == other._subunits
        return NotImplemented

    def __lt__(self, other: Money) -> bool:
        self._check_comparable(other)
        return self._subunits < other._subunits

    def __le__(self, other: Money) -> bool:
        self._check_comparable(other)
        return self._subunits <= other._subunits

    def __gt__(self, other: Money) -> bool:
        self._check_comparable(other)
        return self._subunits > other._subunits

    def __ge__(self, other: Money) -> bool:
        self._check_comparable(other)
        return self._subunits >= other._subunits

    def _check_comparable(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot compare Money with {type(other).__name__}")

    def __hash__(self) -> int:
        return hash(self._subunits)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def subunits(self) -> int:
        """Value in subunits (paise). For persistence and calculations."""
        return self._subunits

    @property
    def major_units(self) -> float:
        """
        Value in major units (rupees).

        WARNING: returns a float, use ONLY for display.
        """
        return self._subunits / self.SCALE

    def is_positive(self) -> bool:
        return self._subunits > 0

    def is_negative(self) -> bool:
        return self._subunits < 0

    def is_zero(self) -> bool:
        return self._subunits == 0

    # -------------------------------------------------------------------------
    # Formatting
    # -------------------------------------------------------------------------

    def format(
        self,
        show_symbol: bool = True,
        show_decimals: bool = True,
        currency: Optional[Currency] = None,
    ) -> str:
        """
        General formatter: '₹12,34,567.89'.

        With show_decimals=False the amount is rounded to whole units
        (half away from zero): '₹1,235' for 1234.56.
        """
        currency = currency or Currency.INR
        symbol = currency.symbol if show_symbol else ""

        if show_decimals:
            negative = self._subunits < 0
            units, cents = divmod(abs(self._subunits), self.SCALE)
            body = f"{_group_digits(_digits(units), currency.grouping)}.{cents:0{DECIMALS}d}"
        else:
            rounded = _round_ratio(self._subunits, self.SCALE, RoundingMode.HALF_UP)
            negative = rounded < 0
            body = _group_digits(_digits(abs(rounded)), currency.grouping)

        sign = "-" if negative else ""
        return f"{sign}{symbol}{body}"

    def format_full(self, currency: Optional[Currency] = None) -> str:
        """Symbol and both decimals, always: '₹1,000.00'."""
        return self.format(show_symbol=True, show_decimals=True, currency=currency)

    def format_display(self, currency: Optional[Currency] = None) -> str:
        """Like format_full(), but whole amounts drop the decimals: '₹1,000'."""
        whole = self._subunits % self.SCALE == 0
        return self.format(show_symbol=True, show_decimals=not whole, currency=currency)

    def format_plain(self) -> str:
        """
        Symbol-free, ungrouped text for input fields: '1000', '1000.50', '-0.05'.

        Guaranteed: Money.parse(m.format_plain()) == m
        """
        sign = "-" if self._subunits < 0 else ""
        units, cents = divmod(abs(self._subunits), self.SCALE)
        if cents == 0:
            return f"{sign}{_digits(units)}"
        return f"{sign}{_digits(units)}.{cents:0{DECIMALS}d}"

    def format_compact(self, currency: Optional[Currency] = None) -> str:
        """
        Short form for tight layouts: '₹15L', '₹1.2K', '₹3.5Cr'.

        One decimal, truncated toward zero, '.0' dropped. Below the
        smallest suffix this is format_display().
        """
        currency = currency or Currency.INR
        magnitude = abs(self._subunits)
        sign = "-" if self._subunits < 0 else ""

        for suffix, units in currency.compact_suffixes:
            threshold = units * self.SCALE
            if magnitude >= threshold:
                whole, tenth = divmod(magnitude * 10 // threshold, 10)
                body = _group_digits(_digits(whole), currency.grouping)
                if tenth:
                    body = f"{body}.{tenth}"
                return f"{sign}{currency.symbol}{body}{suffix}"

        return self.format_display(currency)

    def __repr__(self) -> str:
        return f"Money(subunits={self._subunits})"

    def __str__(self) -> str:
        return self.format_full()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Serializes for persistence/API.

        Format: {"subunits": int}
        """
        return {"subunits": self._subunits}

    @classmethod
    def from_dict(cls, data: dict) -> Money:
        """
        Deserializes from dict.

        Accepts: {"subunits": int}
        """
        try:
            subunits = data["subunits"]
        except (KeyError, TypeError):
            raise ParseError(data, "missing 'subunits' field") from None
        if not _is_plain_int(subunits):
            raise ParseError(data, "'subunits' must be an int")
        return cls(_subunits=subunits)
