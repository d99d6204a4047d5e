from typing import Any

from ..errors import ExternalServiceError
from ..models import ToolResult, ToolSchema
from ..tools import ToolRegistry, UnknownToolError
from .base import ToolExecutor


class LocalToolExecutor(ToolExecutor):
    """Runs tools from a registry in the current process.

    Used when the application server and the tools share a process, and in
    tests.
    """

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        try:
            return await self._registry.execute(tool_name, arguments)
        except UnknownToolError as e:
            raise ExternalServiceError("tools", str(e)) from e

    async def list_tools(self) -> list[ToolSchema]:
        return self._registry.schemas()
