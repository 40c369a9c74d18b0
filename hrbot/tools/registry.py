"""Tool registry — central catalog for the assistant's tools."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import pydantic

from hrbot.errors import ToolExecutionError
from hrbot.tools.base import BaseTool, ToolParams, ToolResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class ToolDef:
    """Internal representation of a registered tool."""

    name: str
    description: str
    handler: Callable[..., Awaitable[ToolResult]]
    params_model: type[ToolParams] | None = None


class ToolRegistry:
    """Catalog of tools the model may call.

    Register class-based tool instances::

        registry = ToolRegistry()
        registry.register(CalculatorTool())
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDef] = {}

    def register(self, tool_instance: BaseTool) -> None:
        """Register a tool instance under its ``name``."""
        if not tool_instance.name:
            msg = f"{type(tool_instance).__name__} has no name"
            raise ValueError(msg)
        self._tools[tool_instance.name] = ToolDef(
            name=tool_instance.name,
            description=tool_instance.description,
            handler=tool_instance.execute,
            params_model=tool_instance.params_model,
        )

    def get(self, name: str) -> ToolDef | None:
        """Look up a tool by name."""
        return self._tools.get(name)

    @property
    def tool_names(self) -> list[str]:
        """All registered tool names."""
        return list(self._tools.keys())

    def get_schemas(self) -> list[dict[str, Any]]:
        """Generate Claude-compatible tool schemas for all registered tools."""
        return [self._tool_schema(t) for t in self._tools.values()]

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool by name. Never raises.

        Arguments are validated against the tool's params_model. Invalid
        arguments, unknown tools and handler failures all come back as a
        failed ToolResult.
        """
        tool_def = self._tools.get(name)
        if tool_def is None:
            return ToolResult(error=f"Unknown tool: {name}")

        logger.info("Tool '%s' called with %s", name, arguments)
        t0 = time.monotonic()

        try:
            if tool_def.params_model is not None:
                params = tool_def.params_model(**arguments)
                kwargs = params.model_dump()
            else:
                kwargs = dict(arguments)

            result = await tool_def.handler(**kwargs)
            elapsed = time.monotonic() - t0
            if result.success:
                logger.info("Tool '%s' succeeded in %.2fs", name, elapsed)
            else:
                logger.warning("Tool '%s' returned error in %.2fs: %s", name, elapsed, result.error)
            return result
        except pydantic.ValidationError as exc:
            logger.warning("Tool '%s' got invalid arguments: %s", name, exc.errors())
            return ToolResult(error=f"Invalid arguments for tool '{name}'")
        except ToolExecutionError as exc:
            logger.warning("Tool '%s' failed: %s", name, exc)
            return ToolResult(error=str(exc))
        except Exception:
            elapsed = time.monotonic() - t0
            logger.exception("Tool '%s' failed in %.2fs", name, elapsed)
            return ToolResult(error=f"Tool '{name}' failed. Check logs for details.")

    @staticmethod
    def _tool_schema(tool_def: ToolDef) -> dict[str, Any]:
        """Build a single Claude tool schema dict."""
        if tool_def.params_model is not None:
            input_schema = tool_def.params_model.model_json_schema()
        else:
            input_schema = {"type": "object", "properties": {}}

        return {
            "name": tool_def.name,
            "description": tool_def.description,
            "input_schema": input_schema,
        }
