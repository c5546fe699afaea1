"""Outlook provider adapter on Microsoft Graph (httpx)."""

from __future__ import annotations

import logging

import httpx

from inbox_digest.exceptions import (
    ProviderArchiveError,
    ProviderAuthError,
    ProviderError,
    ProviderFetchError,
)
from inbox_digest.models import Account, Email, Provider
from inbox_digest.providers.base import ProviderAdapter
from inbox_digest.providers.marketing import MarketingSignals, is_marketing
from inbox_digest.providers.parser import normalize_date, strip_html

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

# Graph well-known folder name, resolves whatever the mailbox calls it
ARCHIVE_FOLDER = "archive"


class OutlookAdapter(ProviderAdapter):
    """Fetches unread inbox mail and archives by moving to the Archive folder.

    Args:
        page_size: Maximum number of messages returned per fetch.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, mainly for tests.
    """

    provider = Provider.OUTLOOK

    def __init__(
        self,
        page_size: int = 20,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.page_size = page_size
        self.timeout = timeout
        self._transport = transport

    def fetch_unread(self, account: Account) -> list[Email]:
        try:
            emails = self._fetch(account)
        except ProviderError as e:
            logger.error(f"[Outlook] Fetch failed for {account.email}: {e}")
            return []
        logger.info(f"[Outlook] {len(emails)} unread messages for {account.email}")
        return emails

    def archive(self, account: Account, message_id: str) -> bool:
        try:
            self._move_to_archive(account, message_id)
        except ProviderError as e:
            logger.error(f"[Outlook] Archive failed for {message_id}: {e}")
            return False
        logger.info(f"[Outlook] Archived message {message_id}")
        return True

    def _client(self, account: Account) -> httpx.Client:
        return httpx.Client(
            base_url=GRAPH_BASE_URL,
            timeout=self.timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {_access_token(account)}"},
        )

    def _fetch(self, account: Account) -> list[Email]:
        params = {
            "$filter": "isRead eq false",
            "$select": "id,from,subject,receivedDateTime,body",
            "$top": self.page_size,
            "$orderby": "receivedDateTime desc",
        }
        try:
            with self._client(account) as client:
                response = client.get("/me/mailFolders/inbox/messages", params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderFetchError(f"Failed to list messages: {e}") from e
        if not isinstance(data, dict):
            raise ProviderFetchError(f"Unexpected message list response: {type(data).__name__}")

        emails: list[Email] = []
        for msg in (data.get("value") or [])[: self.page_size]:
            try:
                email = self._to_email(msg, account)
            except Exception as e:
                logger.warning(f"[Outlook] Skipping unreadable message: {e}")
                continue
            if email is not None:
                emails.append(email)
        return emails

    def _to_email(self, msg: dict, account: Account) -> Email | None:
        message_id = msg.get("id")
        if not message_id:
            raise ProviderFetchError(f'Message "{msg.get("subject")}" has no id')
        sender = (msg.get("from") or {}).get("emailAddress") or {}
        from_address = sender.get("address") or "Unknown"
        subject = msg.get("subject") or "No Subject"
        body_obj = msg.get("body") or {}
        content = body_obj.get("content") or ""
        if (body_obj.get("contentType") or "").lower() == "html":
            body = strip_html(content) if content else ""
        else:
            body = content

        # Raw content so links and markup count towards the bulk-mail check
        signals = MarketingSignals(from_address=from_address, subject=subject, body=content)
        if is_marketing(signals):
            logger.info(f'[Outlook] Skipping marketing email: "{subject}"')
            return None

        return Email(
            provider=self.provider,
            message_id=message_id,
            from_address=from_address,
            subject=subject,
            date=normalize_date(msg.get("receivedDateTime") or ""),
            body=body,
            account_email=account.email,
        )

    def _move_to_archive(self, account: Account, message_id: str) -> None:
        try:
            with self._client(account) as client:
                response = client.get(f"/me/mailFolders/{ARCHIVE_FOLDER}")
                if response.status_code == 404:
                    raise ProviderArchiveError("Archive folder not found")
                response.raise_for_status()
                folder = response.json()
                folder_id = folder.get("id") if isinstance(folder, dict) else None
                if not folder_id:
                    raise ProviderArchiveError("Archive folder has no id")

                response = client.post(
                    f"/me/messages/{message_id}/move",
                    json={"destinationId": folder_id},
                )
                response.raise_for_status()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderArchiveError(f"Failed to move message: {e}") from e


def _access_token(account: Account) -> str:
    creds = account.credentials
    if isinstance(creds, str) and creds:
        return creds
    if isinstance(creds, dict) and creds.get("access_token"):
        return creds["access_token"]
    raise ProviderAuthError(
        f"Account '{account.id}' has no Outlook access token."
    )
