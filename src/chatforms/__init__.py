"""
chatforms: a chat assistant whose tool calls render interactive forms.

The application server keeps conversations in memory, asks a language model
for replies, and runs tools on a separate tool server. Tools may return UI
resources (HTML forms) that the client renders inline; submitting a form
runs another tool and the model narrates the outcome.
"""

__version__ = "0.1.0"

from .errors import (
    ChatformsError,
    ConfigurationError,
    ExternalServiceError,
    InvalidInputError,
    NotFoundError,
)
from .models import ToolInvocation, ToolResult, ToolSchema, UIResource

__all__ = [
    "ChatformsError",
    "ConfigurationError",
    "ExternalServiceError",
    "InvalidInputError",
    "NotFoundError",
    "ToolInvocation",
    "ToolResult",
    "ToolSchema",
    "UIResource",
]
