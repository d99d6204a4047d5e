"""Registry of the tools served by the tool server."""

import logging
from collections.abc import Iterable
from typing import Any

from ..errors import ChatformsError
from ..models import ToolResult, ToolSchema
from .base import BaseTool

logger = logging.getLogger(__name__)


class UnknownToolError(ChatformsError):
    """No tool is registered under the requested name."""

    status_code = 404

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ToolRegistry:
    """Closed set of tools, looked up by name.

    The registry's names are the allow-list for direct tool invocation, and
    its schemas are the catalog offered to the language model.
    """

    def __init__(self, tools: Iterable[BaseTool] = ()):
        self._tools: dict[str, BaseTool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> frozenset[str]:
        return frozenset(self._tools)

    def schemas(self) -> list[ToolSchema]:
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Run a registered tool.

        Raises:
            UnknownToolError: If no tool is registered under ``name``
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)

        result = await tool.execute(arguments)
        if result.success:
            logger.info("Tool '%s' succeeded", name)
        else:
            logger.info("Tool '%s' rejected its input: %s", name, result.error)
        return result


def create_default_registry() -> ToolRegistry:
    """Registry with the reservation tools."""
    from .reservation import ShowReservationFormTool, SubmitReservationTool

    return ToolRegistry([ShowReservationFormTool(), SubmitReservationTool()])


def default_tool_catalog() -> list[ToolSchema]:
    """Static catalog of the reservation tools, as offered to the model."""
    return create_default_registry().schemas()
