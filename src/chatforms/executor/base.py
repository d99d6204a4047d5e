from abc import ABC, abstractmethod
from typing import Any

from ..models import ToolResult, ToolSchema


class ToolExecutor(ABC):
    """Runs named tools on behalf of the orchestration loop.

    Hides where tools actually run (remote tool server or in-process).

    Supports async context manager protocol for proper resource cleanup.
    """

    @abstractmethod
    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool.

        Raises:
            ExternalServiceError: If the tool could not be reached or its
                response could not be validated
        """

    @abstractmethod
    async def list_tools(self) -> list[ToolSchema]:
        """Return the catalog of tools the executor can run."""

    async def close(self) -> None:
        """Release any held resources."""

    async def __aenter__(self) -> "ToolExecutor":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
