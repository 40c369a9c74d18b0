"""Base types for the tool-calling framework."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel


@dataclass
class ToolResult:
    """Result of a tool execution.

    Every tool returns one of these. The agent serializes it into a
    tool_result content block for Claude.
    """

    data: dict[str, Any] | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"success": False, "error": self.error}
        return {"success": True, **(self.data or {})}

    def to_content(self) -> str:
        """Serialize for the Claude tool_result content field."""
        return json.dumps(self.to_dict(), default=str)


class ToolParams(BaseModel):
    """Base class for tool parameter models.

    Subclass with Field() definitions. The JSON schema is auto-generated
    via model_json_schema() for Claude's tool definitions.
    """


class BaseTool(ABC):
    """Abstract base for tool implementations.

    ``execute`` must not raise: failures are reported as
    ``ToolResult(error=...)``.

    Example::

        class MyTool(BaseTool):
            name = "my_tool"
            description = "Does a thing"
            params_model = MyToolParams

            async def execute(self, **kwargs) -> ToolResult:
                return ToolResult(data={"ok": True})
    """

    name: str = ""
    description: str = ""
    params_model: type[ToolParams] | None = None

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool with validated parameters."""
        ...
