"""Tool server: lists the registered tools and executes them over HTTP."""

import logging
from typing import Any

from fastapi import Body, Depends, FastAPI

from .. import __version__
from ..errors import InvalidInputError
from ..tools import ToolRegistry, create_default_registry
from .dependencies import get_registry
from .errors import install_error_handlers

logger = logging.getLogger(__name__)


def create_tool_app(registry: ToolRegistry | None = None) -> FastAPI:
    """Build the tool server around a registry (default: the reservation tools)."""
    if registry is None:
        registry = create_default_registry()

    app = FastAPI(title="chatforms tool server", version=__version__)
    app.state.registry = registry
    install_error_handlers(app)

    @app.get("/tools")
    async def list_tools(registry: ToolRegistry = Depends(get_registry)) -> dict[str, Any]:
        return {"tools": [schema.to_wire() for schema in registry.schemas()]}

    @app.post("/tools/{tool_name}")
    async def call_tool(
        tool_name: str,
        arguments: Any = Body(default=None),
        registry: ToolRegistry = Depends(get_registry),
    ) -> dict[str, Any]:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidInputError("Tool arguments must be a JSON object")

        logger.info("Executing tool '%s'", tool_name)
        result = await registry.execute(tool_name, arguments)
        return result.to_wire()

    @app.get("/health")
    async def health(registry: ToolRegistry = Depends(get_registry)) -> dict[str, Any]:
        return {"status": "ok", "tools": len(registry)}

    return app
