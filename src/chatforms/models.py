"""Wire types shared by the application server, the tool server and clients.

These models cross process boundaries, so they are validated on ingress and
serialized with camelCase aliases to match the JSON the chat client expects.
"""

import base64
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model for JSON payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict using wire aliases."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class RawHtmlContent(WireModel):
    """Self-contained HTML document rendered in a sandboxed frame."""

    type: Literal["rawHtml"] = "rawHtml"
    html_string: str


class RemoteDomContent(WireModel):
    """Script that drives a remote DOM in the host page."""

    type: Literal["remoteDom"] = "remoteDom"
    script: str
    framework: Literal["react", "webcomponents"] | None = None


UIResourceContent = Annotated[
    RawHtmlContent | RemoteDomContent,
    Field(discriminator="type"),
]


class UIResource(WireModel):
    """Renderable unit attached to an assistant message.

    Attributes:
        uri: Unique resource identifier, always under the ``ui://`` scheme
        content: Either raw HTML or a remote DOM script
        encoding: ``text`` or ``base64`` (applies to the content payload)
        annotations: Optional rendering hints (audience, priority)
    """

    uri: str = Field(pattern=r"^ui://.+")
    content: UIResourceContent
    encoding: Literal["text", "base64"] = "text"
    annotations: dict[str, Any] | None = None

    def decoded_payload(self) -> str:
        """Return the HTML or script text, decoding base64 if needed."""
        if isinstance(self.content, RawHtmlContent):
            payload = self.content.html_string
        else:
            payload = self.content.script
        if self.encoding == "base64":
            return base64.b64decode(payload).decode("utf-8")
        return payload


class ToolResult(WireModel):
    """Outcome of a tool execution as returned by the tool server."""

    success: bool
    message: str | None = None
    data: Any = None
    ui_resource: UIResource | None = None
    error: str | None = None


class ToolSchema(WireModel):
    """Callable tool description offered to the language model."""

    name: str
    description: str
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ToolInvocation(WireModel):
    """A request to run one named tool with arguments."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "WireModel",
    "RawHtmlContent",
    "RemoteDomContent",
    "UIResourceContent",
    "UIResource",
    "ToolResult",
    "ToolSchema",
    "ToolInvocation",
]
