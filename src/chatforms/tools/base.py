"""Tool infrastructure for the tool server."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from ..models import ToolResult, ToolSchema


def format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "input"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class BaseTool(ABC):
    """Abstract base class for tools.

    A tool is a named, schema-described operation that the language model
    (or a rendered form) can invoke.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description for the LLM."""
        pass

    @property
    @abstractmethod
    def parameters_schema(self) -> dict[str, Any]:
        """Get the JSON schema for tool parameters."""
        pass

    @abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """Execute the tool.

        Invalid arguments are reported as ``ToolResult(success=False)``
        rather than raised, so the caller can show the error to the user.

        Args:
            arguments: Parameter object for the call

        Returns:
            ToolResult with the execution result
        """
        pass

    def to_schema(self) -> ToolSchema:
        """Convert tool to the schema offered to the LLM."""
        return ToolSchema(
            name=self.name,
            description=self.description,
            parameters=self.parameters_schema
        )
