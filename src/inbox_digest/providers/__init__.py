"""Mail provider adapters.

Heavy imports are deferred. Use explicit imports:
    from inbox_digest.providers.gmail import GmailAdapter
    from inbox_digest.providers.outlook import OutlookAdapter
"""

# Light imports only (no external deps)
from inbox_digest.providers.base import ProviderAdapter
from inbox_digest.providers.marketing import MarketingSignals, is_marketing


def __getattr__(name):
    """Lazy imports for adapters that pull in their provider SDKs."""
    if name == "GmailAdapter":
        from inbox_digest.providers.gmail import GmailAdapter
        return GmailAdapter
    if name == "OutlookAdapter":
        from inbox_digest.providers.outlook import OutlookAdapter
        return OutlookAdapter
    raise AttributeError(f"module 'inbox_digest.providers' has no attribute {name!r}")


__all__ = [
    "ProviderAdapter",
    "MarketingSignals",
    "is_marketing",
    "GmailAdapter",
    "OutlookAdapter",
]
