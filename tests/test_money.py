"""
test_money.py — Test suite for the Money value type

================================================================================
TEST STRUCTURE
================================================================================

1. UNIT TESTS
   Deterministic tests for specific cases and edge cases.

2. PROPERTY-BASED TESTS (Hypothesis)
   Properties that must hold for ANY input. Hypothesis generates
   thousands of random cases looking for a counterexample.

3. INVARIANT TESTS
   Checks that the invariants declared in the code actually hold.

================================================================================
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from paisasplit import Money, Currency, RoundingMode, ParseError


# ==============================================================================
# TEST HELPERS
# ==============================================================================

@st.composite
def money_strategy(draw, min_value=-10_000_000_00, max_value=10_000_000_00):
    """Random Money for property testing."""
    return Money.of_subunits(draw(st.integers(min_value=min_value, max_value=max_value)))


# ==============================================================================
# UNIT TESTS: Constructors
# ==============================================================================

class TestConstructors:

    def test_of_creates_from_major_units(self):
        assert Money.of(100).subunits == 10000  # 100 rupees = 10000 paise

    def test_of_subunits_is_exact(self):
        assert Money.of_subunits(123450).subunits == 123450

    def test_from_subunits_alias(self):
        assert Money.from_subunits(42) == Money.of_subunits(42)

    def test_from_major(self):
        assert Money.from_major(99.99).subunits == 9999

    def test_from_major_rounds_to_nearest_paisa(self):
        assert Money.from_major(123.456).subunits == 12346

    def test_from_major_half_goes_away_from_zero(self):
        # 0.125 * 100 = 12.5 exactly
        assert Money.from_major(0.125).subunits == 13
        assert Money.from_major(-0.125).subunits == -13

    def test_from_major_with_half_even_rounding(self):
        assert Money.from_major(0.125, RoundingMode.HALF_EVEN).subunits == 12

    def test_from_major_with_down_rounding(self):
        assert Money.from_major(1.999, RoundingMode.DOWN).subunits == 199

    def test_from_major_accepts_int(self):
        assert Money.from_major(5) == Money.of(5)

    def test_from_major_rejects_non_finite(self):
        with pytest.raises(ValueError):
            Money.from_major(float("nan"))
        with pytest.raises(ValueError):
            Money.from_major(float("inf"))

    def test_float_subunits_rejected(self):
        with pytest.raises(TypeError):
            Money.of_subunits(1.5)

    def test_bool_subunits_rejected(self):
        with pytest.raises(TypeError):
            Money.of_subunits(True)

    def test_of_rejects_float(self):
        with pytest.raises(TypeError):
            Money.of(1.5)

    def test_zero(self):
        m = Money.zero()
        assert m.subunits == 0
        assert m.is_zero()

    def test_immutable(self):
        m = Money.of(1)
        with pytest.raises(AttributeError):
            m._subunits = 5


# ==============================================================================
# UNIT TESTS: Parsing
# ==============================================================================

class TestParse:

    def test_rupee_symbol_and_separators(self):
        assert Money.parse("₹1,234.50").subunits == 123450

    @pytest.mark.parametrize("text, subunits", [
        ("123.45", 12345),
        ("₹123.45", 12345),
        ("1,234.56", 123456),
        (" 123.45 ", 12345),
        ("1000", 100000),
        ("12,34,567.89", 123456789),
        (".5", 50),
        ("5.", 500),
        ("+7", 700),
        ("-₹5", -500),
        ("₹-5", -500),
        ("- ₹5", -500),
        ("$12", 1200),
        ("0", 0),
    ])
    def test_valid_input(self, text, subunits):
        assert Money.parse(text).subunits == subunits

    def test_extra_digits_round_half_away_from_zero(self):
        assert Money.parse("0.005").subunits == 1
        assert Money.parse("0.004").subunits == 0
        assert Money.parse("-0.005").subunits == -1
        assert Money.parse("123.456").subunits == 12346

    @pytest.mark.parametrize("text", [
        "", "   ", "abc", "12.34.56", "1e5", "NaN", "Infinity",
        "₹", ".", "+", "--5", "5-", "12abc", "١٢", "1_000", "inf", "1E2",
    ])
    def test_invalid_input_raises(self, text):
        with pytest.raises(ParseError):
            Money.parse(text)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            Money.parse("abc")

    def test_parse_error_keeps_input(self):
        with pytest.raises(ParseError) as exc_info:
            Money.parse("12.34.56")
        assert exc_info.value.text == "12.34.56"

    def test_non_string_raises(self):
        with pytest.raises(ParseError):
            Money.parse(None)

    def test_try_parse(self):
        assert Money.try_parse("123.45") == Money.of_subunits(12345)
        assert Money.try_parse("") is None
        assert Money.try_parse("abc") is None

    def test_very_long_input_is_exact(self):
        # 5000 ones, past the default int <-> str digit limit
        repunit = (10 ** 5000 - 1) // 9
        assert Money.parse("1" * 5000).subunits == repunit * 100
        assert Money.parse("1" * 5000 + ".005").subunits == repunit * 100 + 1

    def test_very_long_invalid_input(self):
        with pytest.raises(ParseError):
            Money.parse("1" * 5000 + "x")
        assert Money.try_parse("1" * 5000 + "x") is None


# ==============================================================================
# UNIT TESTS: Arithmetic
# ==============================================================================

class TestArithmetic:

    def test_add(self):
        assert Money.of(100) + Money.of(50) == Money.of(150)

    def test_add_non_money_raises(self):
        a = Money.of(100)

        with pytest.raises(TypeError):
            a + 100

        with pytest.raises(TypeError):
            a + 100.0

    def test_subtract(self):
        assert Money.of(100) - Money.of(30) == Money.of(70)

    def test_negate(self):
        assert -Money.of(100) == Money.of_subunits(-10000)

    def test_abs(self):
        assert abs(Money.of_subunits(-500)) == Money.of_subunits(500)

    def test_multiply_by_int_is_exact(self):
        assert Money.of(10) * 5 == Money.of(50)
        assert 3 * Money.of_subunits(1000) == Money.of_subunits(3000)

    def test_multiply_by_float_rounds_half_away_from_zero(self):
        assert Money.of_subunits(10001) * 0.5 == Money.of_subunits(5001)
        assert Money.of_subunits(-10001) * 0.5 == Money.of_subunits(-5001)

    def test_multiply_with_explicit_rounding(self):
        m = Money.of_subunits(10001).multiply(0.5, RoundingMode.HALF_EVEN)
        assert m == Money.of_subunits(5000)

    def test_multiply_by_other_types_raises(self):
        with pytest.raises(TypeError):
            Money.of(1) * "2"
        with pytest.raises(TypeError):
            Money.of(1) * True

    def test_divide_by_int(self):
        assert Money.of(100) / 3 == Money.of_subunits(3333)
        assert Money.of_subunits(5) / 2 == Money.of_subunits(3)
        assert Money.of_subunits(-5) / 2 == Money.of_subunits(-3)

    def test_divide_by_float(self):
        assert Money.of_subunits(5) / 2.0 == Money.of_subunits(3)

    def test_divide_with_explicit_rounding(self):
        assert Money.of_subunits(5).divide(2, RoundingMode.HALF_EVEN) == Money.of_subunits(2)
        assert Money.of_subunits(5).divide(2, RoundingMode.FLOOR) == Money.of_subunits(2)
        assert Money.of_subunits(-5).divide(2, RoundingMode.DOWN) == Money.of_subunits(-2)

    def test_divide_by_zero_raises(self):
        with pytest.raises(ZeroDivisionError):
            Money.of(1) / 0
        with pytest.raises(ZeroDivisionError):
            Money.of(1) / 0.0

    def test_operations_return_new_instances(self):
        a = Money.of(1)
        b = a + Money.zero()
        assert a == b
        assert a.subunits == 100


class TestRoundToUnit:

    def test_round_to_unit(self):
        assert Money.of_subunits(123456).round_to_unit() == Money.of_subunits(123500)
        assert Money.of_subunits(123449).round_to_unit() == Money.of_subunits(123400)

    def test_round_half_goes_away_from_zero(self):
        assert Money.of_subunits(150).round_to_unit() == Money.of(2)
        assert Money.of_subunits(-150).round_to_unit() == Money.of(-2)

    def test_ceil_and_floor(self):
        assert Money.of_subunits(123401).ceil_to_unit() == Money.of(1235)
        assert Money.of_subunits(123499).floor_to_unit() == Money.of(1234)
        assert Money.of_subunits(-150).ceil_to_unit() == Money.of(-1)
        assert Money.of_subunits(-150).floor_to_unit() == Money.of(-2)

    def test_whole_amount_unchanged(self):
        assert Money.of(7).round_to_major(RoundingMode.UP) == Money.of(7)


class TestAggregates:

    def test_sum(self):
        amounts = [Money.of(100), Money.of(200), Money.of(300)]
        assert Money.sum(amounts) == Money.of(600)

    def test_max_and_min(self):
        amounts = [Money.of(100), Money.of(200), Money.of(50)]
        assert Money.max(amounts) == Money.of(200)
        assert Money.min(amounts) == Money.of(50)

    def test_empty(self):
        assert Money.sum([]) == Money.zero()
        assert Money.max([]) is None
        assert Money.min([]) is None

    def test_sum_rejects_non_money(self):
        with pytest.raises(TypeError):
            Money.sum([Money.of(1), 2])


# ==============================================================================
# UNIT TESTS: Comparison
# ==============================================================================

class TestComparison:

    def test_equal(self):
        assert Money.of(100) == Money.of(100)
        assert Money.of(100) != Money.of(99)

    def test_ordering(self):
        assert Money.of(50) < Money.of(100)
        assert Money.of(100) >= Money.of(100)
        assert not Money.of(100) < Money.of(50)
        assert sorted([Money.of(3), Money.of(1), Money.of(2)]) == [Money.of(1), Money.of(2), Money.of(3)]

    def test_hash_follows_subunits(self):
        assert hash(Money.of(1)) == hash(Money.of_subunits(100))
        assert len({Money.of(1), Money.of_subunits(100), Money.parse("1.00")}) == 1

    def test_compare_with_non_money_raises(self):
        with pytest.raises(TypeError):
            Money.of(1) < 100

    def test_not_equal_to_int(self):
        assert Money.of_subunits(100) != 100

    def test_predicates(self):
        assert Money.of(1).is_positive()
        assert Money.of(-1).is_negative()
        assert not Money.zero().is_positive()

    def test_major_units_for_display(self):
        assert Money.of_subunits(1).major_units == 0.01


# ==============================================================================
# UNIT TESTS: Formatting
# ==============================================================================

class TestFormatting:

    def test_full_basic(self):
        assert Money.of_subunits(123456).format_full() == "₹1,234.56"

    def test_full_indian_grouping(self):
        assert Money.of_subunits(123456789).format_full() == "₹12,34,567.89"
        assert Money.of_subunits(1234567890).format_full() == "₹1,23,45,678.90"

    def test_full_small_and_negative(self):
        assert Money.of_subunits(1).format_full() == "₹0.01"
        assert Money.of_subunits(-123450).format_full() == "-₹1,234.50"
        assert Money.zero().format_full() == "₹0.00"

    def test_full_western_grouping(self):
        assert Money.of_subunits(123456789).format_full(Currency.USD) == "$1,234,567.89"
        assert Money.of_subunits(99).format_full(Currency.EUR) == "€0.99"

    def test_without_symbol(self):
        assert Money.of_subunits(123456).format(show_symbol=False) == "1,234.56"

    def test_without_decimals_rounds(self):
        assert Money.of_subunits(123456).format(show_decimals=False) == "₹1,235"
        assert Money.of_subunits(-40).format(show_decimals=False) == "₹0"

    def test_display(self):
        assert Money.of(1000).format_display() == "₹1,000"
        assert Money.of_subunits(100050).format_display() == "₹1,000.50"
        assert Money.of_subunits(123450).format_display() == "₹1,234.50"

    def test_plain(self):
        assert Money.of(1000).format_plain() == "1000"
        assert Money.of_subunits(100050).format_plain() == "1000.50"
        assert Money.of_subunits(-5).format_plain() == "-0.05"
        assert Money.of_subunits(123456789).format_plain() == "1234567.89"

    def test_compact_indian(self):
        assert Money.of(1_500_000).format_compact() == "₹15L"
        assert Money.of(1200).format_compact() == "₹1.2K"
        assert Money.of(35_000_000).format_compact() == "₹3.5Cr"
        assert Money.of(-1250).format_compact() == "-₹1.2K"

    def test_compact_below_thousand_is_display(self):
        assert Money.of(999).format_compact() == "₹999"
        assert Money.of_subunits(1050).format_compact() == "₹10.50"

    def test_compact_western(self):
        assert Money.of(2_500_000).format_compact(Currency.USD) == "$2.5M"

    def test_str_is_full_format(self):
        m = Money.of_subunits(12345)
        assert str(m) == m.format_full()

    def test_repr(self):
        assert repr(Money.of_subunits(12345)) == "Money(subunits=12345)"


# ==============================================================================
# UNIT TESTS: Serialization
# ==============================================================================

class TestSerialization:

    def test_to_dict(self):
        assert Money.of_subunits(12345).to_dict() == {"subunits": 12345}

    def test_from_dict(self):
        assert Money.from_dict({"subunits": 12345}) == Money.of_subunits(12345)

    @pytest.mark.parametrize("data", [{}, {"subunits": 1.5}, {"subunits": "10"}, {"paise": 10}, None])
    def test_from_dict_malformed(self, data):
        with pytest.raises(ParseError):
            Money.from_dict(data)


# ==============================================================================
# PROPERTY-BASED TESTS (Hypothesis)
# ==============================================================================

class TestTextProperties:

    @given(subunits=st.integers())
    @settings(max_examples=1000)
    def test_plain_round_trip(self, subunits: int):
        """
        PROPERTY: parse(format_plain(m)) == m for every int, however large.
        """
        m = Money.of_subunits(subunits)
        assert Money.parse(m.format_plain()) == m

    @pytest.mark.parametrize("subunits", [10 ** 5000, -(10 ** 5000) - 7, 10 ** 5000 + 99], ids=["pow", "neg-pow-minus-7", "pow-plus-99"])
    def test_text_round_trip_past_int_str_limit(self, subunits: int):
        m = Money.of_subunits(subunits)
        assert Money.parse(m.format_plain()) == m
        assert Money.parse(m.format_full()) == m
        assert Money.parse(m.format_full(Currency.USD)) == m

    @given(money=money_strategy(), currency=st.sampled_from(list(Currency)))
    @settings(max_examples=500)
    def test_full_format_round_trip(self, money: Money, currency: Currency):
        assert Money.parse(money.format_full(currency)) == money

    @given(money=money_strategy())
    @settings(max_examples=500)
    def test_display_format_round_trip(self, money: Money):
        assert Money.parse(money.format_display()) == money

    @given(money=money_strategy())
    @settings(max_examples=500)
    def test_serialization_round_trip(self, money: Money):
        assert Money.from_dict(money.to_dict()) == money


class TestArithmeticProperties:

    @given(a=money_strategy(), b=money_strategy())
    @settings(max_examples=500)
    def test_addition_commutative(self, a: Money, b: Money):
        assert a + b == b + a

    @given(a=money_strategy(), b=money_strategy(), c=money_strategy())
    @settings(max_examples=500)
    def test_addition_associative(self, a: Money, b: Money, c: Money):
        assert (a + b) + c == a + (b + c)

    @given(a=money_strategy())
    @settings(max_examples=200)
    def test_add_negative_equals_zero(self, a: Money):
        assert (a + (-a)).is_zero()

    @given(a=money_strategy(), b=money_strategy())
    @settings(max_examples=200)
    def test_subtract_is_add_negative(self, a: Money, b: Money):
        assert a - b == a + (-b)

    @given(a=money_strategy())
    @settings(max_examples=200)
    def test_multiply_by_one_float_is_identity(self, a: Money):
        assert a * 1.0 == a

    @given(subunits=st.integers(min_value=-10**9, max_value=10**9))
    @settings(max_examples=500)
    def test_from_major_recovers_subunits(self, subunits: int):
        assert Money.from_major(subunits / 100).subunits == subunits

    @given(a=money_strategy())
    @settings(max_examples=200)
    def test_round_to_unit_is_whole(self, a: Money):
        rounded = a.round_to_unit()
        assert rounded.subunits % 100 == 0
        assert abs(rounded - a) <= Money.of_subunits(50)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
