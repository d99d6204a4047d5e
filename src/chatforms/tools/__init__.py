"""Domain tools exposed by the tool server."""

from .base import BaseTool
from .registry import (
    ToolRegistry,
    UnknownToolError,
    create_default_registry,
    default_tool_catalog,
)
from .reservation import (
    SHOW_RESERVATION_FORM,
    SUBMIT_RESERVATION,
    Reservation,
    ShowReservationFormTool,
    SubmitReservationTool,
)
from .ui_resource import create_ui_resource

__all__ = [
    "BaseTool",
    "Reservation",
    "SHOW_RESERVATION_FORM",
    "SUBMIT_RESERVATION",
    "ShowReservationFormTool",
    "SubmitReservationTool",
    "ToolRegistry",
    "UnknownToolError",
    "create_default_registry",
    "default_tool_catalog",
    "create_ui_resource",
]
