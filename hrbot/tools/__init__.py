"""Tool framework and the assistant's built-in tools."""

from hrbot.tools.base import BaseTool, ToolParams, ToolResult
from hrbot.tools.calculator import CalculatorTool
from hrbot.tools.employee_lookup import EmployeeLookupTool
from hrbot.tools.policy_search import PolicySearchTool
from hrbot.tools.registry import ToolDef, ToolRegistry


def build_registry(
    employee_lookup: EmployeeLookupTool | None = None,
    calculator: CalculatorTool | None = None,
    policy_search: PolicySearchTool | None = None,
) -> ToolRegistry:
    """Registry with the three HR tools; pass instances to override defaults."""
    registry = ToolRegistry()
    registry.register(employee_lookup or EmployeeLookupTool())
    registry.register(calculator or CalculatorTool())
    registry.register(policy_search or PolicySearchTool())
    return registry


__all__ = [
    "BaseTool",
    "CalculatorTool",
    "EmployeeLookupTool",
    "PolicySearchTool",
    "ToolDef",
    "ToolParams",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
]
