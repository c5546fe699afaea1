"""Wires settings, cache, model client and adapters into one service object."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from inbox_digest.cache.scheduler import EvictionScheduler
from inbox_digest.cache.store import SummaryCache
from inbox_digest.config import Settings
from inbox_digest.llm.client import ModelClient
from inbox_digest.llm.router import SummarizationRouter
from inbox_digest.models import AggregatedEmail, Provider, User
from inbox_digest.providers.base import ProviderAdapter
from inbox_digest.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)


class DigestService:
    """Entry point for the surrounding service layer.

    Owns the cache lifecycle: ``open`` at process start, ``close`` at
    shutdown (or use it as a context manager). Eviction runs in the
    background while the service is open.

    Usage::

        with DigestService(Settings.from_env()) as service:
            emails = service.sync_on_open(user)
    """

    def __init__(
        self,
        settings: Settings,
        adapters: Iterable[ProviderAdapter] | None = None,
        model_client: ModelClient | None = None,
    ):
        self.settings = settings
        self.cache = SummaryCache(
            settings.cache_path, ttl=timedelta(days=settings.cache_ttl_days),
        )
        self.eviction = EvictionScheduler(self.cache, interval=settings.eviction_interval)
        self.model_client = model_client or ModelClient(
            api_key=settings.anthropic_api_key,
            mini_model=settings.mini_model,
            mid_model=settings.mid_model,
            body_char_limit=settings.body_char_limit,
        )
        self.orchestrator = SyncOrchestrator(
            adapters if adapters is not None else _default_adapters(settings),
            cache=self.cache,
            router=SummarizationRouter(self.model_client),
            max_workers=settings.max_workers,
        )

    def open(self) -> None:
        self.cache.open()
        self.eviction.start()
        logger.info(f"Digest service started (cache at {self.settings.cache_path})")

    def close(self) -> None:
        self.eviction.stop()
        self.cache.close()
        logger.info("Digest service stopped")

    def __enter__(self) -> DigestService:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def sync_on_open(self, user: User) -> list[AggregatedEmail]:
        return self.orchestrator.sync_on_open(user)

    def archive_email(
        self,
        user: User,
        provider: Provider | str,
        message_id: str,
        account_id: str | None = None,
    ) -> bool:
        return self.orchestrator.archive_email(user, provider, message_id, account_id)


def _default_adapters(settings: Settings) -> list[ProviderAdapter]:
    from inbox_digest.providers.gmail import GmailAdapter
    from inbox_digest.providers.outlook import OutlookAdapter

    return [
        GmailAdapter(
            page_size=settings.page_size,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
        ),
        OutlookAdapter(page_size=settings.page_size),
    ]
