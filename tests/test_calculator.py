"""Tests for the calculator tool."""

from datetime import date

import pytest

from hrbot.errors import ToolExecutionError
from hrbot.tools.calculator import (
    CalculatorTool,
    evaluate_expression,
    monthly_working_days,
    working_days_between,
)
from hrbot.tools.registry import ToolRegistry


@pytest.fixture
def calculator() -> CalculatorTool:
    return CalculatorTool()


@pytest.fixture
def registry(calculator) -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(calculator)
    return reg


# -- Expression evaluation -------------------------------------------------------


class TestEvaluateExpression:
    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("15 + 3 * 2", 21),
            ("(2 + 3) * 4", 20),
            ("10 / 4", 2.5),
            ("-5 + 2", -3),
            ("7 % 3", 1),
            ("0.1 + 0.2", 0.3),
            ("20 - 4.5", 15.5),
        ],
    )
    def test_arithmetic(self, expression, expected):
        assert evaluate_expression(expression) == expected

    def test_integral_result_is_int(self):
        assert isinstance(evaluate_expression("10 / 2"), int)

    def test_strips_disallowed_characters(self):
        assert evaluate_expression("15 days - 5 days") == 10

    @pytest.mark.parametrize("expression", ["2 ** 3", "7 // 2", "1 / 0", "(", "3 +"])
    def test_rejected_expressions(self, expression):
        with pytest.raises(ToolExecutionError, match="Invalid mathematical expression"):
            evaluate_expression(expression)

    def test_code_is_not_executed(self):
        # Letters and quotes are stripped before parsing, leaving "().()"
        with pytest.raises(ToolExecutionError):
            evaluate_expression("__import__('os').system('ls')")

    def test_empty_expression(self):
        with pytest.raises(ToolExecutionError, match="Invalid expression"):
            evaluate_expression("abc")


# -- Working days --------------------------------------------------------------


class TestWorkingDays:
    def test_one_week(self):
        # 2024-01-01 is a Monday
        assert working_days_between(date(2024, 1, 1), date(2024, 1, 7)) == 5

    def test_weekend_only(self):
        assert working_days_between(date(2024, 1, 6), date(2024, 1, 7)) == 0

    def test_end_before_start(self):
        assert working_days_between(date(2024, 1, 7), date(2024, 1, 1)) == 0

    @pytest.mark.parametrize(
        ("month", "year", "expected"),
        [(9, 2025, 22), (4, 2024, 22), (2, 2024, 21), (2, 2023, 20)],
    )
    def test_monthly(self, month, year, expected):
        assert monthly_working_days(month, year) == expected


# -- Tool execution ------------------------------------------------------------


async def test_general_calculation(calculator):
    result = await calculator.execute(expression="8 * 5")
    assert result.success
    assert result.data["result"] == 40
    assert result.data["explanation"] == "Calculation: 8 * 5 = 40"
    assert result.data["type"] == "general"


async def test_expression_required(calculator):
    result = await calculator.execute(type="general")
    assert result.error == "Expression parameter is required"


async def test_invalid_expression_is_tool_error(calculator):
    result = await calculator.execute(expression="2 ** 10")
    assert not result.success
    assert result.error == "Invalid mathematical expression"


async def test_vacation_calculation_via_registry(registry):
    result = await registry.execute(
        "calculator",
        {
            "expression": "15 - 20",
            "type": "vacation_calculation",
            "context": {"currentBalance": 15, "daysToTake": 20},
        },
    )
    assert result.success
    calc = result.data["result"]
    assert calc["remaining_balance"] == -5
    assert calc["sufficient_balance"] is False
    assert calc["deficit"] == 5
    assert "5 additional days" in result.data["explanation"]


async def test_vacation_accrual_and_span(calculator):
    result = await calculator.execute(
        expression="accrual",
        type="vacation_calculation",
        context={
            "current_balance": 10,
            "accrual_rate": 1.5,
            "pay_periods": 4,
            "start_date": "2024-01-01",
            "end_date": "2024-01-12",
        },
    )
    calc = result.data["result"]
    assert calc["accrual_amount"] == 6
    assert calc["projected_balance"] == 16
    assert calc["working_days"] == 10


async def test_vacation_bad_date(calculator):
    result = await calculator.execute(
        expression="span",
        type="vacation_calculation",
        context={"start_date": "01/02/2024", "end_date": "2024-01-12"},
    )
    assert "Invalid date" in result.error


async def test_percentage(calculator):
    result = await calculator.execute(
        expression="25 / 200", type="percentage", context={"value": 25, "total": 200}
    )
    assert result.data["result"]["percentage"] == 12.5
    assert result.data["result"]["formatted_percentage"] == "12.50%"


async def test_percentage_of_zero(calculator):
    result = await calculator.execute(
        expression="5 / 0", type="percentage", context={"value": 5, "total": 0}
    )
    assert result.error == "Cannot calculate a percentage of zero"


async def test_prorated(calculator):
    result = await calculator.execute(
        expression="prorate",
        type="prorated_calculation",
        context={"annual_amount": 36500, "days_worked": 10},
    )
    assert result.data["result"] == {"prorated_amount": 1000, "daily_rate": 100}


async def test_time_conversion(calculator):
    result = await calculator.execute(
        expression="hours", type="time_calculation", context={"total_hours": 40}
    )
    calc = result.data["result"]
    assert calc["days"] == 5
    assert calc["weeks"] == 1
    assert calc["annual_hours"] == 2080


async def test_monthly_working_days_tool(calculator):
    result = await calculator.execute(
        type="monthly_working_days", context={"month": 9, "year": 2025}
    )
    assert result.success
    assert result.data["result"] == {
        "month": 9,
        "year": 2025,
        "month_name": "September",
        "working_days": 22,
    }
    assert "holidays" in result.data["explanation"]


async def test_monthly_requires_month_and_year(calculator):
    result = await calculator.execute(type="monthly_working_days", context={"month": 9})
    assert "Month and year are required" in result.error


async def test_monthly_month_out_of_range(registry):
    result = await registry.execute(
        "calculator", {"type": "monthly_working_days", "context": {"month": 13, "year": 2025}}
    )
    assert result.error == "Invalid arguments for tool 'calculator'"


async def test_context_none_values_dropped(calculator):
    result = await calculator.execute(
        expression="1 + 1", context={"current_balance": None, "days_to_take": 2}
    )
    assert result.data["context"] == {"days_to_take": 2}
