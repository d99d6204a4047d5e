"""Helpers for building UI resources returned by tools."""

import base64
from typing import Any, Literal

from ..models import RawHtmlContent, RemoteDomContent, UIResource


def default_annotations() -> dict[str, Any]:
    """Rendering hints for resources shown to the user, as a fresh dict per call."""
    return {"audience": ["user"], "priority": 1}


def create_ui_resource(
    uri: str,
    html: str | None = None,
    script: str | None = None,
    encoding: Literal["text", "base64"] = "text",
    annotations: dict[str, Any] | None = None,
) -> UIResource:
    """Create a UI resource from raw HTML or a remote DOM script.

    Args:
        uri: Resource uri (must start with ``ui://``)
        html: HTML document for a ``rawHtml`` resource
        script: Script for a ``remoteDom`` resource
        encoding: ``text`` keeps the payload as is, ``base64`` encodes it
        annotations: Rendering hints (default: user audience, priority 1)

    Returns:
        Validated UIResource

    Raises:
        ValueError: If not exactly one of ``html`` and ``script`` is given
    """
    if (html is None) == (script is None):
        raise ValueError("Provide exactly one of 'html' or 'script'")

    payload = html if html is not None else script
    if encoding == "base64":
        payload = base64.b64encode(payload.encode("utf-8")).decode("ascii")

    if html is not None:
        content = RawHtmlContent(html_string=payload)
    else:
        content = RemoteDomContent(script=payload)

    return UIResource(
        uri=uri,
        content=content,
        encoding=encoding,
        annotations=default_annotations() if annotations is None else annotations,
    )
