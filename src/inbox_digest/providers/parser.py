"""Parse provider message payloads into plain fields."""

from __future__ import annotations

import base64
import re
from email.utils import parseaddr

from bs4 import BeautifulSoup
import dateutil.parser as date_parser


def extract_headers(payload: dict) -> dict[str, str]:
    """Gmail payload headers keyed by lower-cased name."""
    return {
        h["name"].lower(): h["value"]
        for h in payload.get("headers", [])
    }


def parse_sender(from_header: str) -> str:
    """Bare address from a ``From`` header, or the raw header if unparseable."""
    _, address = parseaddr(from_header)
    return address or from_header


def extract_body(payload: dict) -> str:
    """Plain text body of a Gmail payload (format=full).

    Prefers ``text/plain`` parts, recurses into nested multiparts and falls
    back to stripped ``text/html``.
    """
    text, is_html = _find_body(payload)
    return strip_html(text) if is_html and text else text


def extract_raw_body(payload: dict) -> str:
    """Same part as ``extract_body`` but with any HTML markup left in place."""
    return _find_body(payload)[0]


def _find_body(payload: dict) -> tuple[str, bool]:
    mime_type = payload.get("mimeType", "")

    if mime_type == "text/plain":
        return _decode_body_data(payload), False

    if mime_type.startswith("multipart/"):
        parts = payload.get("parts", [])
        for part in parts:
            if part.get("mimeType") == "text/plain":
                text = _decode_body_data(part)
                if text:
                    return text, False
        for part in parts:
            text, is_html = _find_body(part)
            if text:
                return text, is_html

    if mime_type == "text/html":
        return _decode_body_data(payload), True

    return "", False


def _decode_body_data(payload: dict) -> str:
    data = payload.get("body", {}).get("data", "")
    if not data:
        return ""
    try:
        return base64.urlsafe_b64decode(data).decode("utf-8", errors="replace")
    except (ValueError, TypeError):
        return ""


def strip_html(html: str) -> str:
    """Visible text of an HTML document with whitespace collapsed."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    text = soup.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def normalize_date(value: str) -> str:
    """ISO 8601 form of an RFC 2822 or ISO date; unparseable input is returned as is."""
    if not value:
        return ""
    try:
        return date_parser.parse(value).isoformat()
    except (ValueError, OverflowError):
        return value
