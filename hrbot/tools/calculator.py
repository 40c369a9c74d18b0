"""calculator — arithmetic and HR-specific calculations.

Arithmetic expressions are evaluated by walking a restricted AST, never by
``eval``. Working-day counts exclude Saturdays and Sundays only; public
holidays are not known to the calculator.
"""

from __future__ import annotations

import ast
import calendar
import logging
import operator
import re
from datetime import date, timedelta
from typing import Any, Literal

from pydantic import ConfigDict, Field

from hrbot.errors import ToolExecutionError
from hrbot.tools.base import BaseTool, ToolParams, ToolResult

logger = logging.getLogger(__name__)

CalculationType = Literal[
    "general",
    "vacation_calculation",
    "percentage",
    "prorated_calculation",
    "time_calculation",
    "monthly_working_days",
]

_ALLOWED_CHARS = re.compile(r"[^0-9+\-*/().%\s]")

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}


class CalculationContext(ToolParams):
    """Inputs for the specialised calculation types."""

    model_config = ConfigDict(populate_by_name=True)

    current_balance: float | None = Field(
        default=None, alias="currentBalance", description="Current vacation balance"
    )
    days_to_take: float | None = Field(
        default=None, alias="daysToTake", description="Days to take off"
    )
    accrual_rate: float | None = Field(
        default=None, alias="accrualRate", description="Vacation accrual rate per pay period"
    )
    pay_periods: float | None = Field(
        default=None, alias="payPeriods", description="Number of pay periods"
    )
    start_date: str | None = Field(
        default=None, alias="startDate", description="Start date (YYYY-MM-DD)"
    )
    end_date: str | None = Field(default=None, alias="endDate", description="End date (YYYY-MM-DD)")
    value: float | None = Field(default=None, description="Value for percentage calculation")
    total: float | None = Field(default=None, description="Total for percentage calculation")
    percentage: float | None = Field(default=None, description="Percentage value")
    annual_amount: float | None = Field(
        default=None, alias="annualAmount", description="Annual amount for proration"
    )
    days_worked: float | None = Field(
        default=None, alias="daysWorked", description="Days worked for proration"
    )
    total_days: float | None = Field(
        default=None, alias="totalDays", description="Total days (proration period or time conversion)"
    )
    hours_per_day: float | None = Field(
        default=None, alias="hoursPerDay", description="Hours per day"
    )
    days_per_week: float | None = Field(
        default=None, alias="daysPerWeek", description="Days per week"
    )
    total_hours: float | None = Field(default=None, alias="totalHours", description="Total hours")
    month: int | None = Field(
        default=None, ge=1, le=12, description="Month number (1-12) for monthly working days"
    )
    year: int | None = Field(default=None, description="Year for monthly working days")


class CalculatorParams(ToolParams):
    expression: str | None = Field(
        default=None, description='Mathematical expression to evaluate (e.g., "15 + 3 * 2")'
    )
    type: CalculationType = Field(default="general", description="Type of calculation to perform")
    context: CalculationContext | None = Field(
        default=None, description="Context for specialized calculations"
    )


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def _tidy(value: float) -> float | int:
    """Round to 10 places and drop a trailing .0."""
    value = round(value, 10)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _eval_node(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, int | float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_eval_node(node.left), _eval_node(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    msg = "Invalid mathematical expression"
    raise ToolExecutionError(msg)


def evaluate_expression(expression: str) -> float | int:
    """Evaluate basic arithmetic (+ - * / % and parentheses)."""
    sanitized = _ALLOWED_CHARS.sub("", expression).strip()
    if not sanitized:
        msg = "Invalid expression"
        raise ToolExecutionError(msg)
    try:
        tree = ast.parse(sanitized, mode="eval")
        return _tidy(_eval_node(tree))
    except (SyntaxError, ZeroDivisionError, OverflowError, RecursionError) as exc:
        msg = "Invalid mathematical expression"
        raise ToolExecutionError(msg) from exc


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date '{value}', expected YYYY-MM-DD"
        raise ToolExecutionError(msg) from exc


def working_days_between(start: date, end: date) -> int:
    """Weekdays from start to end inclusive."""
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def monthly_working_days(month: int, year: int) -> int:
    """Weekdays in the given month. Holidays are not excluded."""
    _, days_in_month = calendar.monthrange(year, month)
    return working_days_between(date(year, month, 1), date(year, month, days_in_month))


# ---------------------------------------------------------------------------
# Calculation types
# ---------------------------------------------------------------------------


def _vacation(ctx: dict[str, Any]) -> tuple[dict[str, Any], str]:
    result: dict[str, Any] = {}
    parts: list[str] = []
    balance = ctx.get("current_balance")
    days = ctx.get("days_to_take")

    if balance is not None and days is not None:
        remaining = _tidy(balance - days)
        result.update(
            days_to_take=days,
            remaining_balance=remaining,
            sufficient_balance=remaining >= 0,
            deficit=abs(remaining) if remaining < 0 else 0,
        )
        parts.append(
            f"After taking {_tidy(days)} days off, you would have {remaining} vacation days remaining."
        )
        if remaining < 0:
            parts.append(f"You would need {result['deficit']} additional days to cover this request.")

    rate = ctx.get("accrual_rate")
    periods = ctx.get("pay_periods")
    if rate is not None and periods is not None:
        accrual = _tidy(rate * periods)
        result["accrual_amount"] = accrual
        result["projected_balance"] = _tidy((balance or 0) + accrual - (days or 0))
        parts.append(f"You accrue {accrual} vacation days over this period.")

    if ctx.get("start_date") and ctx.get("end_date"):
        span = working_days_between(_parse_date(ctx["start_date"]), _parse_date(ctx["end_date"]))
        result["working_days"] = span
        parts.append(f"This spans {span} working days.")

    return result, " ".join(parts)


def _percentage(ctx: dict[str, Any]) -> tuple[dict[str, Any], str]:
    result: dict[str, Any] = {}
    parts: list[str] = []
    value, total, pct = ctx.get("value"), ctx.get("total"), ctx.get("percentage")

    try:
        if value is not None and total is not None:
            result["percentage"] = _tidy(value / total * 100)
            result["formatted_percentage"] = f"{value / total * 100:.2f}%"
            parts.append(f"This represents {result['formatted_percentage']} of the total.")
        if pct is not None and total is not None:
            result["value"] = _tidy(pct / 100 * total)
            parts.append(f"The calculated value is {result['value']}.")
        if pct is not None and value is not None:
            result["total"] = _tidy(value / (pct / 100))
    except ZeroDivisionError as exc:
        msg = "Cannot calculate a percentage of zero"
        raise ToolExecutionError(msg) from exc

    return result, " ".join(parts)


def _prorated(ctx: dict[str, Any]) -> tuple[dict[str, Any], str]:
    result: dict[str, Any] = {}
    parts: list[str] = []
    annual = ctx.get("annual_amount")
    total_days = ctx.get("total_days") or 365

    if annual is not None:
        daily = annual / total_days
        if ctx.get("days_worked") is not None:
            result["prorated_amount"] = _tidy(daily * ctx["days_worked"])
            result["daily_rate"] = _tidy(daily)
        if ctx.get("start_date") and ctx.get("end_date"):
            days = (_parse_date(ctx["end_date"]) - _parse_date(ctx["start_date"])).days
            result["prorated_amount"] = _tidy(daily * days)
            result["days_calculated"] = days

    if "prorated_amount" in result:
        parts.append(f"The prorated amount is {result['prorated_amount']:.2f}.")
    if "daily_rate" in result:
        parts.append(f"Daily rate: {result['daily_rate']:.2f}.")
    return result, " ".join(parts)


def _time(ctx: dict[str, Any]) -> tuple[dict[str, Any], str]:
    hours_per_day = ctx.get("hours_per_day") or 8
    days_per_week = ctx.get("days_per_week") or 5
    result: dict[str, Any] = {}
    parts: list[str] = []

    if ctx.get("total_hours") is not None:
        hours = ctx["total_hours"]
        result["days"] = _tidy(hours / hours_per_day)
        result["weeks"] = _tidy(result["days"] / days_per_week)
        parts.append(f"{_tidy(hours)} hours equals {result['days']} days.")

    if ctx.get("total_days") is not None:
        days = ctx["total_days"]
        result["hours"] = _tidy(days * hours_per_day)
        result["weeks"] = _tidy(days / days_per_week)
        parts.append(f"{_tidy(days)} days equals {result['hours']} hours.")

    if "weeks" in result:
        parts.append(f"This is approximately {result['weeks']:.2f} weeks.")

    result["annual_hours"] = _tidy(hours_per_day * days_per_week * 52)
    result["annual_days"] = _tidy(days_per_week * 52)
    return result, " ".join(parts)


def _monthly(ctx: dict[str, Any]) -> tuple[dict[str, Any], str]:
    month, year = ctx.get("month"), ctx.get("year")
    if not month or not year:
        msg = "Month and year are required for monthly working days calculation"
        raise ToolExecutionError(msg)
    if not 1 <= month <= 12:
        msg = f"Invalid month {month}, expected 1-12"
        raise ToolExecutionError(msg)

    days = monthly_working_days(month, year)
    result = {
        "month": month,
        "year": year,
        "month_name": calendar.month_name[month],
        "working_days": days,
    }
    explanation = (
        f"In {result['month_name']} {year}, there are {days} working days. "
        "This calculation assumes that weekends (Saturdays and Sundays) are not "
        "considered working days. If there are any public holidays that month, they "
        "have not been accounted for in this calculation. Please adjust accordingly "
        "for any holidays specific to your location or company policy."
    )
    return result, explanation


_CALCULATIONS = {
    "vacation_calculation": _vacation,
    "percentage": _percentage,
    "prorated_calculation": _prorated,
    "time_calculation": _time,
    "monthly_working_days": _monthly,
}


class CalculatorTool(BaseTool):
    name = "calculator"
    description = (
        "Performs mathematical calculations including basic arithmetic, percentages, "
        "and HR-related calculations"
    )
    params_model = CalculatorParams

    async def execute(
        self,
        expression: str | None = None,
        type: str = "general",  # noqa: A002
        context: dict[str, Any] | None = None,
    ) -> ToolResult:
        ctx = {k: v for k, v in (context or {}).items() if v is not None}
        try:
            result, explanation = self.calculate(expression, type, ctx)
        except ToolExecutionError as exc:
            logger.warning("Calculator error (%s): %s", type, exc)
            return ToolResult(error=str(exc))

        return ToolResult(
            data={
                "result": result,
                "explanation": explanation,
                "expression": expression,
                "type": type,
                "context": ctx,
            }
        )

    @staticmethod
    def calculate(
        expression: str | None, calc_type: str, ctx: dict[str, Any]
    ) -> tuple[Any, str]:
        if not expression and calc_type != "monthly_working_days":
            msg = "Expression parameter is required"
            raise ToolExecutionError(msg)

        handler = _CALCULATIONS.get(calc_type)
        if handler is None:
            value = evaluate_expression(expression)
            return value, f"Calculation: {expression} = {value}"
        return handler(ctx)
