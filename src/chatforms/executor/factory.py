"""Factory for creating tool executors."""

from typing import Any

from .base import ToolExecutor


def create_tool_executor(backend: str = "http", **kwargs: Any) -> ToolExecutor:
    """Create a tool executor.

    Args:
        backend: "http" (remote tool server) or "local" (in-process registry)
        **kwargs: Backend-specific configuration
            For http:
                - base_url: str (required)
                - timeout: float (default: 30.0)
            For local:
                - registry: ToolRegistry (default: the reservation tools)

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "http":
        from .http import HttpToolExecutor
        if "base_url" not in kwargs:
            raise TypeError("HTTP tool executor requires 'base_url'")
        return HttpToolExecutor(**kwargs)

    if backend == "local":
        from ..tools import create_default_registry
        from .local import LocalToolExecutor
        registry = kwargs.get("registry")
        return LocalToolExecutor(registry if registry is not None else create_default_registry())

    raise ValueError(
        f"Unsupported tool executor backend: {backend}. "
        f"Supported backends: http, local"
    )
