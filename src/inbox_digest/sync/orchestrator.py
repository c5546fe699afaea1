"""Sync-on-open pipeline: fetch, cache lookup, summarize, aggregate."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from inbox_digest.cache.keys import cache_key
from inbox_digest.cache.locks import KeyedLocks
from inbox_digest.cache.store import SummaryCache
from inbox_digest.exceptions import CacheUnavailableError
from inbox_digest.llm.router import SummarizationRouter
from inbox_digest.models import Account, AggregatedEmail, Email, Provider, User
from inbox_digest.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Aggregates summarized unread mail across a user's linked accounts.

    Accounts are fetched concurrently and emails summarized concurrently, but
    the result keeps account order, then per-account fetch order. Each cache
    key is held under its own lock while it is looked up, summarized and
    written, so two syncs racing on one message make a single model call.

    Failures in one account or one email are logged and left out of the
    result. Only ``CacheUnavailableError`` aborts the whole sync.

    Args:
        adapters: One adapter per supported provider.
        cache: An opened ``SummaryCache``.
        router: Router used on cache misses.
        max_workers: Thread pool size for fetches and summaries.
    """

    def __init__(
        self,
        adapters: Iterable[ProviderAdapter],
        cache: SummaryCache,
        router: SummarizationRouter,
        max_workers: int = 4,
    ):
        self._adapters = {adapter.provider: adapter for adapter in adapters}
        self._cache = cache
        self._router = router
        self.max_workers = max_workers
        self._locks = KeyedLocks()

    # ---- Sync methods ----

    def sync_on_open(self, user: User) -> list[AggregatedEmail]:
        """Fetch, summarize and aggregate unread mail for every linked account."""
        if not self._cache.is_open:
            raise CacheUnavailableError("Summary cache is not open.")

        logger.info(f"[Sync] {user.email} opened app, syncing {len(user.accounts)} accounts")

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="inbox-sync",
        ) as pool:
            try:
                batches = list(pool.map(self._fetch_account, user.accounts))
                emails = [email for batch in batches for email in batch]
                summarized = list(pool.map(self._summarize_safely, emails))
            except CacheUnavailableError as e:
                pool.shutdown(cancel_futures=True)
                logger.error(f"[Sync] Aborting sync for {user.email}: {e}")
                raise

        results = [item for item in summarized if item is not None]
        user.last_open_at = self._cache.set_last_open(user.id)
        logger.info(f"[Sync] Returning {len(results)} emails to {user.email}")
        return results

    def archive_email(
        self,
        user: User,
        provider: Provider | str,
        message_id: str,
        account_id: str | None = None,
    ) -> bool:
        """Archive a message in the user's account for ``provider``.

        ``account_id`` picks among several accounts on the same provider;
        without it the first linked account for the provider is used.
        """
        try:
            provider = Provider(provider)
        except ValueError:
            logger.error(f"[Archive] Unknown provider {provider!r}")
            return False

        account = _find_account(user, provider, account_id)
        if account is None:
            logger.error(f"[Archive] No {provider.value} account linked for {user.email}")
            return False

        adapter = self._adapters.get(provider)
        if adapter is None:
            logger.error(f"[Archive] No adapter configured for {provider.value}")
            return False

        logger.info(f"[Archive] Archiving {provider.value} message {message_id}")
        return adapter.archive(account, message_id)

    # ---- Async wrappers (asyncio.to_thread) ----

    async def async_on_open(self, user: User) -> list[AggregatedEmail]:
        """Async version of sync_on_open."""
        return await asyncio.to_thread(self.sync_on_open, user)

    async def aarchive_email(
        self,
        user: User,
        provider: Provider | str,
        message_id: str,
        account_id: str | None = None,
    ) -> bool:
        """Async version of archive_email."""
        return await asyncio.to_thread(
            self.archive_email, user, provider, message_id, account_id,
        )

    # ---- Internals ----

    def _fetch_account(self, account: Account) -> list[Email]:
        adapter = self._adapters.get(account.provider)
        if adapter is None:
            logger.error(f"[Sync] No adapter for provider {account.provider!r}, skipping {account.email}")
            return []
        try:
            return adapter.fetch_unread(account)
        except Exception as e:
            logger.error(f"[Sync] Fetch failed for {account.email}: {e}")
            return []

    def _summarize_safely(self, email: Email) -> AggregatedEmail | None:
        try:
            return self._summarize(email)
        except CacheUnavailableError:
            raise
        except Exception as e:
            logger.error(
                f"[Sync] Failed to summarize {email.provider.value} message "
                f"{email.message_id}: {e}"
            )
            return None

    def _summarize(self, email: Email) -> AggregatedEmail:
        key = cache_key(email.provider, email.message_id, email.body)
        with self._locks.hold(key):
            cached = self._cache.get(email.provider, email.message_id, email.body)
            if cached is not None:
                logger.info(f'[Sync] Using cached summary for: "{email.subject}"')
                return AggregatedEmail.build(email, cached)

            logger.info(f'[Sync] Summarizing: "{email.subject}"')
            result = self._router.route(email.subject, email.body)
            self._cache.put(email.provider, email.message_id, email.body, result)
        return AggregatedEmail.build(email, result)


def _find_account(user: User, provider: Provider, account_id: str | None) -> Account | None:
    for account in user.accounts:
        if account.provider != provider:
            continue
        if account_id is None or account.id == account_id:
            return account
    return None
