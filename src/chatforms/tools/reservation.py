"""Restaurant reservation tools: render the form, accept a submission."""

import datetime as dt
import html
import json
import logging
import time
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Any

from pydantic import Field, ValidationError, field_validator

from ..models import ToolResult, WireModel
from .base import BaseTool, format_validation_error
from .ui_resource import create_ui_resource

logger = logging.getLogger(__name__)

SHOW_RESERVATION_FORM = "show_reservation_form"
SUBMIT_RESERVATION = "submit_reservation"

MAX_PARTY_SIZE = 20
_FORM_PARTY_SIZES = 10  # options rendered in the form select

_TEMPLATES_DIR = Path(__file__).parent / "templates"


@lru_cache(maxsize=4)
def _load_template(name: str) -> Template:
    return Template((_TEMPLATES_DIR / name).read_text(encoding="utf-8"))


def _js_string(value: str) -> str:
    """Encode a value as a JavaScript string literal safe inside <script>."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


class ReservationFormRequest(WireModel):
    restaurant_name: str = Field(min_length=1, max_length=200)

    @field_validator("restaurant_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class Reservation(WireModel):
    """A submitted reservation."""

    name: str = Field(min_length=1, max_length=200)
    date: dt.date
    time: dt.time
    party_size: int = Field(ge=1, le=MAX_PARTY_SIZE)
    contact: str = Field(min_length=1, max_length=200)
    restaurant_name: str | None = None

    @field_validator("date")
    @classmethod
    def _not_in_past(cls, value: dt.date) -> dt.date:
        if value < dt.date.today():
            raise ValueError("reservation date cannot be in the past")
        return value

    def confirmation(self) -> str:
        restaurant = self.restaurant_name or "the restaurant"
        guests = "1 guest" if self.party_size == 1 else f"{self.party_size} guests"
        return (
            f"Your reservation at {restaurant} has been received.\n"
            f"{self.date.isoformat()} {self.time.strftime('%H:%M')} for {guests}.\n"
            f"Contact: {self.contact}"
        )


class ShowReservationFormTool(BaseTool):
    """Render the reservation form as a rawHtml UI resource."""

    def __init__(self, clock: Any = time.time):
        self._clock = clock

    @property
    def name(self) -> str:
        return SHOW_RESERVATION_FORM

    @property
    def description(self) -> str:
        return "Display a reservation form when the user wants to book a restaurant table."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "restaurantName": {
                    "type": "string",
                    "description": "Name of the restaurant"
                }
            },
            "required": ["restaurantName"]
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        try:
            request = ReservationFormRequest.model_validate(arguments)
        except ValidationError as e:
            return ToolResult(success=False, error=format_validation_error(e))

        page = _load_template("reservation_form.html").substitute(
            restaurant_name_html=html.escape(request.restaurant_name),
            restaurant_name_js=_js_string(request.restaurant_name),
            submit_tool_js=_js_string(SUBMIT_RESERVATION),
            party_size_options="\n".join(
                f'<option value="{n}">{n}</option>' for n in range(1, _FORM_PARTY_SIZES + 1)
            ),
        )
        resource = create_ui_resource(
            uri=f"ui://reservation-form/{int(self._clock() * 1000)}",
            html=page,
        )
        return ToolResult(
            success=True,
            message="Reservation form generated",
            ui_resource=resource,
        )


class SubmitReservationTool(BaseTool):
    """Accept a reservation submitted from the form."""

    @property
    def name(self) -> str:
        return SUBMIT_RESERVATION

    @property
    def description(self) -> str:
        return "Submit a restaurant reservation."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name of the person reserving"},
                "date": {"type": "string", "description": "Reservation date (YYYY-MM-DD)"},
                "time": {"type": "string", "description": "Reservation time (HH:MM)"},
                "partySize": {"type": "integer", "description": "Number of guests"},
                "contact": {"type": "string", "description": "Phone number or email address"},
                "restaurantName": {"type": "string", "description": "Name of the restaurant"}
            },
            "required": ["name", "date", "time", "partySize", "contact", "restaurantName"]
        }

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        try:
            reservation = Reservation.model_validate(arguments)
        except ValidationError as e:
            return ToolResult(success=False, error=format_validation_error(e))

        logger.info(
            "Reservation received: restaurant=%s date=%s party_size=%d",
            reservation.restaurant_name,
            reservation.date,
            reservation.party_size,
        )
        return ToolResult(
            success=True,
            message=reservation.confirmation(),
            data=reservation.to_wire(),
        )
