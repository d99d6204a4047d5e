"""HTTP client for the tool server."""

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..errors import ExternalServiceError
from ..models import ToolResult, ToolSchema
from .base import ToolExecutor

logger = logging.getLogger(__name__)


class HttpToolExecutor(ToolExecutor):
    """
    HTTP client for communicating with the tool server.

    Handles:
    - Listing the tool catalog (GET /tools)
    - Executing tool calls (POST /tools/{toolName})
    - Validating responses before they reach the orchestration loop
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the tool server client.

        Args:
            base_url: Base URL of the tool server (e.g., http://localhost:3001)
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used to mock the server in tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """
        Execute a tool on the tool server.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (sent as the JSON body)

        Returns:
            Validated tool execution result
        """
        client = self._get_client()
        start_time = time.time()

        try:
            response = await client.post(f"/tools/{quote(tool_name, safe='')}", json=arguments)
            response.raise_for_status()
            result = ToolResult.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.error(
                "HTTP error executing tool '%s': %s - %s",
                tool_name, e.response.status_code, e.response.text
            )
            raise ExternalServiceError(
                "tool-server", f"Tool '{tool_name}' failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.error("Request error executing tool '%s': %s", tool_name, e)
            raise ExternalServiceError("tool-server", f"Request failed: {e}") from e
        except (ValueError, ValidationError) as e:
            # ValueError covers undecodable JSON bodies
            logger.error("Malformed response from tool '%s': %s", tool_name, e)
            raise ExternalServiceError(
                "tool-server", f"Malformed response from tool '{tool_name}'"
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Executed tool '%s' in %.2fms (success=%s)", tool_name, duration_ms, result.success
        )
        return result

    async def list_tools(self) -> list[ToolSchema]:
        """
        Fetch the tool catalog from the tool server.

        Returns:
            List of tool schemas
        """
        client = self._get_client()

        try:
            response = await client.get("/tools")
            response.raise_for_status()
            data = response.json()
            tools = data.get("tools", []) if isinstance(data, dict) else data
            schemas = [ToolSchema.model_validate(tool) for tool in tools]
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error listing tools: %s - %s", e.response.status_code, e.response.text)
            raise ExternalServiceError(
                "tool-server", f"Listing tools failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.error("Request error listing tools: %s", e)
            raise ExternalServiceError("tool-server", f"Request failed: {e}") from e
        except (ValueError, TypeError, ValidationError) as e:
            logger.error("Malformed tool catalog: %s", e)
            raise ExternalServiceError("tool-server", "Malformed tool catalog") from e

        logger.debug("Fetched %d tools from tool server", len(schemas))
        return schemas
