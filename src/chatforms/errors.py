"""Error taxonomy shared by the store, the orchestration loop and the HTTP layer.

Each error carries the HTTP status it maps to, so the API layer can translate
it without knowing where it was raised.
"""


class ChatformsError(Exception):
    """Base class for all chatforms errors."""

    status_code: int = 500
    public_message: str | None = None

    @property
    def detail(self) -> str:
        """Message that is safe to show to a client."""
        return self.public_message or str(self)


class InvalidInputError(ChatformsError):
    """Malformed or missing fields in an incoming request."""

    status_code = 400


class NotFoundError(ChatformsError):
    """Referenced conversation does not exist, expired, or was evicted."""

    status_code = 404

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class ExternalServiceError(ChatformsError):
    """The language model gateway or the tool executor failed.

    The underlying cause is kept on ``__cause__`` for logging only; clients
    get a generic notice.
    """

    status_code = 502
    public_message = "The assistant is temporarily unavailable. Please try again."

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class ConfigurationError(ChatformsError):
    """Required configuration is missing at startup."""


__all__ = [
    "ChatformsError",
    "InvalidInputError",
    "NotFoundError",
    "ExternalServiceError",
    "ConfigurationError",
]
