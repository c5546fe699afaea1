"""Heuristic bulk/marketing mail filter.

Pure function over pre-extracted signals, no network calls. Best effort:
a legitimate email that mentions "sale" or "offer" is classified as marketing.
"""

from __future__ import annotations

from dataclasses import dataclass
from email.utils import parseaddr

MARKETING_KEYWORDS = (
    "unsubscribe",
    "noreply",
    "no-reply",
    "newsletter",
    "promotional",
    "marketing",
    "offer",
    "sale",
    "discount",
    "bulk mail",
    "mailing list",
    "click here",
    "limited time",
)

NO_REPLY_MARKERS = ("noreply", "no-reply", "donotreply")


@dataclass(frozen=True)
class MarketingSignals:
    """Fields the filter looks at. Only Gmail reports the unsubscribe header."""

    from_address: str
    subject: str
    body: str
    has_list_unsubscribe_header: bool = False


def is_marketing(signals: MarketingSignals) -> bool:
    """Return True if the message looks like bulk or promotional mail."""
    if signals.has_list_unsubscribe_header:
        return True

    combined = f"{signals.from_address} {signals.subject} {signals.body}".lower()
    if any(kw in combined for kw in MARKETING_KEYWORDS):
        return True

    local_part = _sender_local_part(signals.from_address)
    return any(marker in local_part for marker in NO_REPLY_MARKERS)


def _sender_local_part(from_address: str) -> str:
    _, address = parseaddr(from_address)
    address = address or from_address
    return address.split("@", 1)[0].lower()
