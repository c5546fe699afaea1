"""Abstract base class for mail provider adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from inbox_digest.models import Account, Email, Provider


class ProviderAdapter(ABC):
    """Interface every mail provider implements.

    Both operations are boundaries: ``fetch_unread`` returns an empty list on
    provider errors and ``archive`` returns False, so one failing account
    never aborts a sync.
    """

    provider: Provider

    @abstractmethod
    def fetch_unread(self, account: Account) -> list[Email]:
        """Unread, non-marketing inbox messages, most recent first."""
        ...

    @abstractmethod
    def archive(self, account: Account, message_id: str) -> bool:
        """Archive a message the provider's way. True on success."""
        ...
