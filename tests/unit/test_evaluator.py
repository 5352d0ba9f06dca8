#!/usr/bin/env python3
"""Tests for the line evaluator pipeline.

Covers:
- Arithmetic and natural-language operators
- Sections and aggregates (sum, average, count)
- Percentages, units, currencies and crypto prices
- Comments and block comments
- Error and pending-price results
"""
import math

import pytest

from linecalc.engine.common import LOADING, ErrorResult, NumberResult, TextResult


def number(result):
    assert isinstance(result, NumberResult), f"expected a number, got {result!r}"
    return result.value


class TestArithmetic:
    """Plain expressions and spoken operators."""

    def test_basic_expressions(self, assert_line):
        test_cases = [
            ("18 + 23", "41"),
            ("6 times 7", "42"),
            ("2 + 3 * 4", "14"),
            ("(2 + 3) * 4", "20"),
            ("10 - 4 - 3", "3"),
            ("100 / 8", "12.5"),
            ("2 ^ 10", "1,024"),
            ("-2 ^ 2", "4"),
            ("20 divided by 4", "5"),
            ("10 divided  by 2", "5"),
            ("3  times  4", "12"),
            ("7 minus 2", "5"),
            ("1 plus 1", "2"),
            ("5 x 3", "15"),
            ("4 × 4", "16"),
            ("5 squared", "25"),
            ("2 cubed", "8"),
            ("half 10", "5"),
            ("double 5", "10"),
            ("1/3", "0.333333"),
        ]

        for line, expected in test_cases:
            assert_line(line, expected)

    def test_result_without_unit(self, evaluator):
        result = evaluator.evaluate("18 + 23")
        assert result == NumberResult(41.0, None)

    def test_descriptive_words_are_ignored(self, assert_line):
        test_cases = [
            ("18 apples + 23 oranges", "41"),
            ("$20 for lunch + $15 for dinner", "$35.00"),
            ("120 on groceries", "120"),
            ("3 boxes * 4", "12"),
        ]

        for line, expected in test_cases:
            assert_line(line, expected)

    def test_division_by_zero_is_nan(self, evaluator):
        result = evaluator.evaluate("5 / 0")
        assert isinstance(result, NumberResult)
        assert math.isnan(result.value)

    def test_text_lines_give_no_result(self, evaluator):
        for line in ["hello world", "Groceries", "notes about the budget"]:
            assert evaluator.evaluate(line) is None

    def test_unparsable_lines_give_no_result(self, evaluator):
        for line in ["* 5", "=", ")"]:
            assert evaluator.evaluate(line) is None


class TestFunctions:
    def test_math_functions(self, assert_line):
        test_cases = [
            ("sqrt 16", "4"),
            ("sqrt(16)", "4"),
            ("square root of 81", "9"),
            ("log 100", "2"),
            ("log 2 8", "3"),
            ("ln 1", "0"),
            ("abs(-5)", "5"),
            ("floor 2.7", "2"),
            ("ceil 2.1", "3"),
            ("round 2.5", "3"),
            ("round(-2.5)", "-3"),
            ("cos 0", "1"),
        ]

        for line, expected in test_cases:
            assert_line(line, expected)

    def test_degrees(self, evaluator):
        assert number(evaluator.evaluate("sin 90°")) == pytest.approx(1.0)

    def test_domain_errors_do_not_raise(self, evaluator):
        assert math.isnan(number(evaluator.evaluate("sqrt(-4)")))
        assert number(evaluator.evaluate("ln 0")) == -math.inf
        assert math.isnan(number(evaluator.evaluate("log(-1)")))


class TestVariables:
    def test_assignment_and_use(self, evaluate_lines):
        results = evaluate_lines("rent = 1200", "rent * 12")
        assert number(results[0]) == 1200
        assert number(results[1]) == 14400

    def test_variables_are_case_insensitive(self, evaluate_lines):
        results = evaluate_lines("Rent = 100", "rent + 1")
        assert number(results[1]) == 101

    def test_unknown_variable(self, evaluator):
        assert evaluator.evaluate("foo + 1") == ErrorResult("Unknown variable: foo")

    def test_unknown_function_name_is_a_variable(self, evaluator):
        assert evaluator.evaluate("cosh(1) + 1") == ErrorResult("Unknown variable: cosh")

    def test_variables_survive_section_breaks(self, evaluate_lines):
        results = evaluate_lines("x = 5", "", "x * 2")
        assert number(results[2]) == 10

    def test_reset_forgets_everything(self, evaluator):
        evaluator.evaluate("x = 5")
        evaluator.evaluate("/* open")
        evaluator.reset()
        assert evaluator.variables == {}
        assert len(evaluator.section) == 0
        assert evaluator.in_block_comment is False
        assert evaluator.evaluate("x + 1") == ErrorResult("Unknown variable: x")


class TestSections:
    """Aggregates only see the current section."""

    def test_sum_and_section_reset(self, evaluate_lines):
        results = evaluate_lines("a = 10", "b = 20", "sum", "", "sum")
        assert results[2] == NumberResult(30.0, None, is_aggregate=True)
        assert results[3] is None
        assert number(results[4]) == 0

    def test_total_average_count(self, evaluate_lines):
        results = evaluate_lines("10", "20", "30", "total", "average", "avg", "count")
        assert [number(result) for result in results[3:]] == [60, 20, 20, 3]

    def test_average_of_empty_section(self, evaluator):
        assert number(evaluator.evaluate("average")) == 0

    def test_aggregates_are_not_added_to_section(self, evaluate_lines):
        results = evaluate_lines("5", "sum", "sum", "count")
        assert number(results[2]) == 5
        assert number(results[3]) == 1

    def test_lone_variable_is_added_again(self, evaluate_lines):
        results = evaluate_lines("x = 5", "", "x", "x", "sum")
        assert number(results[4]) == 10

    def test_aggregate_assignment(self, evaluate_lines):
        results = evaluate_lines("3", "4", "subtotal = sum", "subtotal * 2")
        assert number(results[2]) == 7
        assert results[2].is_aggregate
        assert number(results[3]) == 14

    def test_aggregate_assignment_adds_to_section(self, evaluate_lines):
        results = evaluate_lines("3", "4", "subtotal = sum", "count")
        assert number(results[3]) == 3

    def test_aggregate_assignment_without_equals(self, evaluate_lines):
        results = evaluate_lines("1", "2", "t sum", "t")
        assert number(results[2]) == 3
        assert number(results[3]) == 3

    def test_default_currency_is_most_frequent(self, evaluate_lines):
        results = evaluate_lines("$10", "€20", "$5", "sum")
        total = results[3]
        assert total.unit.name == "usd"
        assert total.value == pytest.approx(10 + 20 * 1.1 + 5)

    def test_default_currency_tie_goes_to_first_seen(self, evaluate_lines):
        results = evaluate_lines("€20", "$11", "sum")
        total = results[2]
        assert total.unit.name == "eur"
        assert total.value == pytest.approx(30.0)

    def test_non_currency_values_add_directly(self, evaluate_lines):
        results = evaluate_lines("$10", "5", "sum")
        assert results[2].unit.name == "usd"
        assert number(results[2]) == 15

    def test_sum_in_currency(self, evaluate_lines):
        results = evaluate_lines("$11", "$22", "sum in eur", "average to eur")
        assert results[2].unit.name == "eur"
        assert number(results[2]) == pytest.approx(30.0)
        assert number(results[3]) == pytest.approx(15.0)

    def test_sum_in_unknown_currency(self, evaluate_lines):
        results = evaluate_lines("$1", "sum in zorkmids")
        assert results[1] == ErrorResult("Unknown currency: zorkmids")

    def test_assignment_sum_in_currency(self, evaluate_lines):
        results = evaluate_lines("$11", "eur_total = sum in eur", "eur_total")
        assert number(results[1]) == pytest.approx(10.0)
        assert results[2].unit.name == "eur"


class TestPercentages:
    def test_percentage_idioms(self, assert_line):
        test_cases = [
            ("100 + 10%", "110"),
            ("100 - 10%", "90"),
            ("15% of 200", "30"),
            ("10% off $100", "$90.00"),
            ("$5 as a % of $10", "50"),
            ("5%", "0.05"),
            ("50 % of 200", "100"),
            ("100 + 10 %", "110"),
        ]

        for line, expected in test_cases:
            assert_line(line, expected)

    def test_percent_off_keeps_target_unit(self, evaluator):
        result = evaluator.evaluate("10% off $100")
        assert result.value == 90
        assert result.unit.name == "usd"

    def test_as_percent_of_zero_is_nan(self, evaluator):
        assert math.isnan(number(evaluator.evaluate("5 as a % of 0")))

    def test_reverse_percentage(self, evaluator):
        result = evaluator.evaluate("20% of what is 30 cm")
        assert result.value == pytest.approx(150.0)
        assert result.unit.name == "centimeter"

    def test_reverse_percentage_of_zero_percent_falls_through(self, evaluator):
        # A zero percentage is not inverted; the words are read as an expression
        assert evaluator.evaluate("0% of what is 30") == ErrorResult("Unknown variable: what")


class TestUnits:
    def test_unit_conversions(self, evaluator):
        test_cases = [
            ("5 km to m", 5000.0, "meter"),
            ("1 mile in km", 1.609344, "kilometer"),
            ("100 celsius to fahrenheit", 212.0, "fahrenheit"),
            ("32 fahrenheit to celsius", 0.0, "celsius"),
            ("0 degc in kelvin", 273.15, "kelvin"),
            ("2 GB to MB", 2048.0, "megabyte"),
            ("90 minutes in hours", 1.5, "hour"),
        ]

        for line, expected, unit in test_cases:
            result = evaluator.evaluate(line)
            assert result.value == pytest.approx(expected), f"Input '{line}' should give {expected}"
            assert result.unit.name == unit
            assert result.is_currency_conversion is False

    def test_expression_conversion(self, evaluator):
        result = evaluator.evaluate("(2 + 3) km to m")
        assert result.value == pytest.approx(5000.0)
        assert result.unit.name == "meter"

    def test_incompatible_units_are_nan(self, evaluator):
        assert math.isnan(number(evaluator.evaluate("5 km to kg")))

    def test_unknown_target_unit(self, evaluator):
        assert evaluator.evaluate("5 km to parsecs") == ErrorResult("Unknown unit: parsecs")

    def test_unit_arithmetic_keeps_left_unit(self, evaluator):
        result = evaluator.evaluate("5 km + 3")
        assert result.value == 8
        assert result.unit.name == "kilometer"

    def test_variable_conversion(self, evaluate_lines):
        results = evaluate_lines("d = 5 km", "d in m")
        assert number(results[1]) == pytest.approx(5000.0)
        assert results[1].is_currency_conversion is False


class TestCss:
    def test_default_bases(self, assert_line):
        assert_line("72pt in px", "96 px")
        assert_line("2rem in px", "32 px")
        assert_line("32px in em", "2 em")

    def test_em_assignment_changes_base(self, evaluate_lines):
        results = evaluate_lines("em = 14px", "1em in px")
        assert number(results[1]) == pytest.approx(14.0)

    def test_css_assignment_does_not_bind_variable(self, evaluator):
        evaluator.evaluate("ppi = 72px")
        assert "ppi" not in evaluator.variables
        assert evaluator.registry.ppi == 72
        assert number(evaluator.evaluate("72pt in px")) == pytest.approx(72.0)

    def test_em_in_other_units_binds_normally(self, evaluator):
        evaluator.evaluate("em = 5")
        assert "em" in evaluator.variables
        assert evaluator.registry.em_size == 16


class TestCurrency:
    def test_currency_conversion_flag(self, evaluator):
        result = evaluator.evaluate("$110 to eur")
        assert result.value == pytest.approx(100.0)
        assert result.unit.name == "eur"
        assert result.is_currency_conversion is True

    def test_unit_conversion_is_not_currency(self, evaluator):
        assert evaluator.evaluate("10 cm to inches").is_currency_conversion is False

    def test_thousands_separator_in_conversion(self, evaluator):
        result = evaluator.evaluate("$1,100 to eur")
        assert result.value == pytest.approx(1000.0)

    def test_code_conversion(self, evaluator):
        result = evaluator.evaluate("100 eur in gbp")
        assert result.value == pytest.approx(100 * 1.1 / 1.25)

    def test_static_fallback_without_rate(self, evaluator):
        # No live CHF rate in the test table: the static factor is used
        result = evaluator.evaluate("100 chf to usd")
        assert result.value == pytest.approx(113.0)

    def test_currency_variable_conversion(self, evaluate_lines):
        results = evaluate_lines("budget = $55", "budget in eur")
        assert number(results[1]) == pytest.approx(50.0)
        assert results[1].is_currency_conversion is True


class TestCrypto:
    def test_crypto_amount_to_usd(self, evaluator):
        result = evaluator.evaluate("2 btc")
        assert result.value == pytest.approx(100000.0)
        assert result.unit.name == "usd"

    def test_crypto_to_crypto(self, evaluator):
        result = evaluator.evaluate("1 btc in eth")
        assert result.value == pytest.approx(20.0)
        assert result.unit.symbol == "Ξ"
        assert result.is_currency_conversion is True

    def test_fiat_to_crypto(self, evaluator):
        result = evaluator.evaluate("$100 to btc")
        assert result.value == pytest.approx(0.002)
        assert result.unit.name == "btc"

    def test_crypto_to_fiat(self, evaluator):
        result = evaluator.evaluate("0.5 btc to eur")
        assert result.value == pytest.approx(25000 / 1.1)
        assert result.unit.name == "eur"

    def test_variable_to_crypto(self, evaluate_lines):
        results = evaluate_lines("savings = $5,000", "savings in eth")
        assert number(results[1]) == pytest.approx(2.0)

    def test_sum_in_crypto(self, evaluate_lines):
        results = evaluate_lines("$100", "$400", "sum in btc")
        assert results[2].value == pytest.approx(0.01)
        assert results[2].is_aggregate
        assert results[2].is_currency_conversion

    def test_missing_price(self, evaluator):
        assert evaluator.evaluate("3 doge") == ErrorResult("Price unavailable")

    def test_missing_price_in_aggregate(self, evaluate_lines):
        results = evaluate_lines("$100", "sum in doge")
        assert results[1] == ErrorResult("DOGE price unavailable")

    def test_ton_stays_a_mass_unit(self, evaluator):
        result = evaluator.evaluate("2 ton to kg")
        assert result.value == pytest.approx(2000.0)


class TestPendingPrices:
    """A price being fetched always reads as Loading..."""

    def test_loading_while_fetching(self, fetching_evaluator):
        for line in ["1 btc", "2 btc", "3 sol", "1 btc", "$100 to sol", "1 sol in usd"]:
            assert fetching_evaluator.evaluate(line) == LOADING, f"'{line}' should be loading"

    def test_loading_is_text(self, fetching_evaluator):
        result = fetching_evaluator.evaluate("1 sol")
        assert isinstance(result, TextResult)
        assert result.text == "Loading..."

    def test_aggregate_into_fetching_crypto(self, fetching_evaluator):
        fetching_evaluator.evaluate("$10")
        assert fetching_evaluator.evaluate("sum in sol") == LOADING


class TestComments:
    def test_line_comments(self, evaluator):
        assert evaluator.evaluate("// a comment") is None
        assert evaluator.evaluate("# Heading") is None
        assert number(evaluator.evaluate("5 + 5 // ten")) == 10

    def test_comment_lines_do_not_reset_section(self, evaluate_lines):
        results = evaluate_lines("5", "// note", "# Heading", "sum")
        assert number(results[3]) == 5

    def test_inline_block_comment(self, evaluator):
        assert number(evaluator.evaluate("1 + 1 /* two */ + 2")) == 4
        assert evaluator.evaluate("/* only a comment */") is None

    def test_multi_line_block_comment(self, evaluate_lines):
        results = evaluate_lines("3 /* start", "5 + 5", "still inside", "end */ 2 + 2", "sum")
        assert number(results[0]) == 3
        assert results[1] is None
        assert results[2] is None
        assert number(results[3]) == 4
        assert number(results[4]) == 7
