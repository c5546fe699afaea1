"""Gmail provider adapter on the Gmail API (google-api-python-client)."""

from __future__ import annotations

import logging
from typing import Any, Callable

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build, Resource

from inbox_digest.exceptions import (
    ProviderArchiveError,
    ProviderAuthError,
    ProviderError,
    ProviderFetchError,
)
from inbox_digest.models import Account, Email, Provider
from inbox_digest.providers.base import ProviderAdapter
from inbox_digest.providers.marketing import MarketingSignals, is_marketing
from inbox_digest.providers.parser import (
    extract_body,
    extract_headers,
    extract_raw_body,
    normalize_date,
    parse_sender,
)

logger = logging.getLogger(__name__)

# Server-side exclusion of Gmail's own bulk categories
UNREAD_QUERY = "is:unread in:inbox -category:promotions -category:social -category:forums"

TOKEN_URI = "https://oauth2.googleapis.com/token"

INBOX_LABEL = "INBOX"


class GmailAdapter(ProviderAdapter):
    """Fetches unread inbox mail and archives by removing the INBOX label.

    Args:
        page_size: Maximum number of messages returned per fetch.
        client_id: OAuth client id, used when account credentials are a
            token dict that may need refreshing.
        client_secret: OAuth client secret, same purpose.
        service_factory: Builds a Gmail ``Resource`` from credentials.
            Defaults to ``googleapiclient.discovery.build``.
    """

    provider = Provider.GMAIL

    def __init__(
        self,
        page_size: int = 20,
        client_id: str | None = None,
        client_secret: str | None = None,
        service_factory: Callable[[Credentials], Resource] | None = None,
    ):
        self.page_size = page_size
        self._client_id = client_id
        self._client_secret = client_secret
        self._service_factory = service_factory or _build_service

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch_unread(self, account: Account) -> list[Email]:
        try:
            emails = self._fetch(account)
        except ProviderError as e:
            logger.error(f"[Gmail] Fetch failed for {account.email}: {e}")
            return []
        logger.info(f"[Gmail] {len(emails)} unread messages for {account.email}")
        return emails

    def archive(self, account: Account, message_id: str) -> bool:
        try:
            self._remove_inbox_label(account, message_id)
        except ProviderError as e:
            logger.error(f"[Gmail] Archive failed for {message_id}: {e}")
            return False
        logger.info(f"[Gmail] Archived message {message_id}")
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch(self, account: Account) -> list[Email]:
        service = self._service(account)
        try:
            message_ids = _list_message_ids(service, UNREAD_QUERY, self.page_size)
        except Exception as e:
            raise ProviderFetchError(f"Failed to list messages: {e}") from e

        emails: list[Email] = []
        for msg_id in message_ids:
            try:
                raw = (
                    service.users()
                    .messages()
                    .get(userId="me", id=msg_id, format="full")
                    .execute()
                )
            except Exception as e:
                logger.warning(f"[Gmail] Failed to fetch message {msg_id}: {e}")
                continue

            try:
                email = self._to_email(raw, account, msg_id)
            except Exception as e:
                logger.warning(f"[Gmail] Skipping unreadable message {msg_id}: {e}")
                continue
            if email is not None:
                emails.append(email)
        return emails

    def _to_email(self, raw: dict, account: Account, msg_id: str) -> Email | None:
        payload = raw.get("payload", {})
        headers = extract_headers(payload)
        from_header = headers.get("from", "Unknown")
        subject = headers.get("subject", "No Subject")
        signals = MarketingSignals(
            from_address=from_header,
            subject=subject,
            body=extract_raw_body(payload),
            has_list_unsubscribe_header="list-unsubscribe" in headers,
        )
        if is_marketing(signals):
            logger.info(f'[Gmail] Skipping marketing email: "{subject}"')
            return None

        return Email(
            provider=self.provider,
            message_id=raw.get("id") or msg_id,
            from_address=parse_sender(from_header),
            subject=subject,
            date=normalize_date(headers.get("date", "")),
            body=extract_body(payload),
            account_email=account.email,
        )

    def _remove_inbox_label(self, account: Account, message_id: str) -> None:
        service = self._service(account)
        try:
            service.users().messages().modify(
                userId="me",
                id=message_id,
                body={"removeLabelIds": [INBOX_LABEL]},
            ).execute()
        except Exception as e:
            raise ProviderArchiveError(f"Failed to modify labels: {e}") from e

    def _service(self, account: Account) -> Resource:
        creds = self._credentials(account)
        try:
            return self._service_factory(creds)
        except Exception as e:
            raise ProviderFetchError(f"Failed to build Gmail service: {e}") from e

    def _credentials(self, account: Account) -> Credentials:
        creds = account.credentials
        if isinstance(creds, Credentials):
            return creds
        if isinstance(creds, dict):
            return _credentials_from_tokens(creds, self._client_id, self._client_secret)
        raise ProviderAuthError(
            f"Account '{account.id}' has no usable Gmail credentials."
        )


def _build_service(creds: Credentials) -> Resource:
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


def _credentials_from_tokens(
    tokens: dict[str, Any],
    client_id: str | None,
    client_secret: str | None,
) -> Credentials:
    """Credentials from an OAuth token dict as stored by the auth layer."""
    access_token = tokens.get("access_token") or tokens.get("token")
    refresh_token = tokens.get("refresh_token")
    if not access_token and not refresh_token:
        raise ProviderAuthError("Gmail token dict has neither access nor refresh token.")
    return Credentials(
        token=access_token,
        refresh_token=refresh_token,
        token_uri=tokens.get("token_uri", TOKEN_URI),
        client_id=tokens.get("client_id", client_id),
        client_secret=tokens.get("client_secret", client_secret),
        scopes=tokens.get("scopes"),
    )


def _list_message_ids(service: Resource, query: str, max_results: int) -> list[str]:
    """List message IDs matching the query, handling pagination."""
    ids: list[str] = []
    page_token = None

    while len(ids) < max_results:
        kwargs: dict = {
            "userId": "me",
            "q": query,
            "maxResults": min(max_results - len(ids), 100),
        }
        if page_token:
            kwargs["pageToken"] = page_token

        response = service.users().messages().list(**kwargs).execute()
        messages = response.get("messages", [])

        if not messages:
            break

        ids.extend(msg["id"] for msg in messages)
        page_token = response.get("nextPageToken")

        if not page_token:
            break

    return ids[:max_results]
