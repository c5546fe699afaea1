"""Data models shared by the providers, cache, router and orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Provider(str, Enum):
    """Supported mail providers."""

    GMAIL = "gmail"
    OUTLOOK = "outlook"


class Tier(str, Enum):
    """Model quality tiers."""

    MINI = "mini"
    MID = "mid"


class Urgency(str, Enum):
    LOW = "low"
    MED = "med"
    HIGH = "high"


class EscalationReason(str, Enum):
    """Why the mid tier produced a summary. ``None`` means no escalation."""

    RULES_BASED = "rules_based"
    MODEL_REQUESTED = "model_requested"


@dataclass
class Email:
    """Unread message normalized across providers.

    Identity is ``(provider, message_id)``; the body is part of the cache key
    because a provider resend can change it under the same id.
    """

    provider: Provider
    message_id: str
    from_address: str
    subject: str
    date: str
    body: str
    account_email: str


@dataclass
class Account:
    """A linked mailbox. ``credentials`` is opaque to the core."""

    id: str
    email: str
    provider: Provider
    credentials: Any = field(default=None, repr=False)


@dataclass
class User:
    """Owner of linked accounts. ``last_open_at`` is set by a successful sync."""

    id: str
    email: str
    accounts: list[Account] = field(default_factory=list)
    last_open_at: datetime | None = None

    def link_account(self, account: Account) -> None:
        """Add an account, replacing an existing link to the same mailbox."""
        for i, existing in enumerate(self.accounts):
            if existing.provider == account.provider and existing.email == account.email:
                self.accounts[i] = account
                return
        self.accounts.append(account)

    def unlink_account(self, account_id: str) -> bool:
        """Remove an account by id. Returns True if one was removed."""
        remaining = [a for a in self.accounts if a.id != account_id]
        removed = len(remaining) != len(self.accounts)
        self.accounts = remaining
        return removed


@dataclass
class RawModelResult:
    """Validated structured output of a single model call."""

    summary_bullets: list[str]
    action_items: list[str]
    urgency: Urgency
    needs_mid_tier: bool
    why: str = ""

    @classmethod
    def fallback(cls) -> RawModelResult:
        """Fixed result used when a model call fails."""
        return cls(
            summary_bullets=["Unable to summarize - API error"],
            action_items=[],
            urgency=Urgency.LOW,
            needs_mid_tier=False,
            why="",
        )


@dataclass
class RoutingResult:
    """Summary produced by the router, tagged with the tier decision."""

    summary_bullets: list[str]
    action_items: list[str]
    urgency: Urgency
    used_mid_tier: bool
    escalation_reason: EscalationReason | None
    model_reason: str | None = None

    @classmethod
    def from_raw(
        cls,
        raw: RawModelResult,
        used_mid_tier: bool,
        escalation_reason: EscalationReason | None,
        model_reason: str | None = None,
    ) -> RoutingResult:
        return cls(
            summary_bullets=list(raw.summary_bullets),
            action_items=list(raw.action_items),
            urgency=raw.urgency,
            used_mid_tier=used_mid_tier,
            escalation_reason=escalation_reason,
            model_reason=model_reason,
        )


@dataclass
class CacheEntry(RoutingResult):
    """A persisted routing result. ``cached_at`` is timezone-aware UTC."""

    cached_at: datetime | None = None

    def to_payload(self) -> dict:
        """JSON-safe dict of the summary fields (``cached_at`` is stored apart)."""
        return {
            "summary_bullets": list(self.summary_bullets),
            "action_items": list(self.action_items),
            "urgency": self.urgency.value,
            "used_mid_tier": self.used_mid_tier,
            "escalation_reason": (
                self.escalation_reason.value if self.escalation_reason else None
            ),
            "model_reason": self.model_reason,
        }

    @classmethod
    def from_payload(cls, payload: dict, cached_at: datetime) -> CacheEntry:
        reason = payload.get("escalation_reason")
        return cls(
            summary_bullets=list(payload.get("summary_bullets", [])),
            action_items=list(payload.get("action_items", [])),
            urgency=Urgency(payload.get("urgency", Urgency.LOW.value)),
            used_mid_tier=bool(payload.get("used_mid_tier", False)),
            escalation_reason=EscalationReason(reason) if reason else None,
            model_reason=payload.get("model_reason"),
            cached_at=cached_at,
        )

    @classmethod
    def from_result(cls, result: RoutingResult, cached_at: datetime) -> CacheEntry:
        fields = asdict(result)
        fields["cached_at"] = cached_at
        return cls(**fields)


@dataclass
class AggregatedEmail:
    """One summarized email as returned to the service layer."""

    provider: Provider
    message_id: str
    from_address: str
    subject: str
    date: str
    account: str
    summary_bullets: list[str]
    action_items: list[str]
    urgency: Urgency
    used_mid_tier: bool
    escalation_reason: EscalationReason | None

    @classmethod
    def build(cls, email: Email, result: RoutingResult) -> AggregatedEmail:
        return cls(
            provider=email.provider,
            message_id=email.message_id,
            from_address=email.from_address,
            subject=email.subject,
            date=email.date,
            account=email.account_email,
            summary_bullets=list(result.summary_bullets),
            action_items=list(result.action_items),
            urgency=result.urgency,
            used_mid_tier=result.used_mid_tier,
            escalation_reason=result.escalation_reason,
        )

    def to_dict(self) -> dict:
        return {
            "provider": self.provider.value,
            "message_id": self.message_id,
            "from": self.from_address,
            "subject": self.subject,
            "date": self.date,
            "account": self.account,
            "summary_bullets": list(self.summary_bullets),
            "action_items": list(self.action_items),
            "urgency": self.urgency.value,
            "used_mid_tier": self.used_mid_tier,
            "escalation_reason": (
                self.escalation_reason.value if self.escalation_reason else None
            ),
        }
