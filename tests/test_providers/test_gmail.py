"""Tests for the Gmail adapter."""

import base64
from unittest.mock import MagicMock

import pytest

from inbox_digest.models import Account, Provider
from inbox_digest.providers.gmail import GmailAdapter, UNREAD_QUERY


def _encode(text):
    return base64.urlsafe_b64encode(text.encode()).decode()


def _raw_message(msg_id, sender="Alice <alice@example.com>", subject="Quarterly plan",
                 body="Can we meet on Tuesday", extra_headers=()):
    encoded = _encode(body)
    headers = [
        {"name": "From", "value": sender},
        {"name": "Subject", "value": subject},
        {"name": "Date", "value": "Mon, 1 Jan 2024 12:00:00 +0000"},
        *extra_headers,
    ]
    return {
        "id": msg_id,
        "threadId": f"t-{msg_id}",
        "labelIds": ["INBOX", "UNREAD"],
        "payload": {"mimeType": "text/plain", "headers": headers, "body": {"data": encoded}},
    }


def _service(messages):
    service = MagicMock()
    messages_api = service.users().messages()
    messages_api.list().execute.return_value = {
        "messages": [{"id": m["id"]} for m in messages],
    }
    by_id = {m["id"]: m for m in messages}
    messages_api.get.side_effect = lambda **kw: MagicMock(
        execute=MagicMock(return_value=by_id[kw["id"]])
    )
    return service


@pytest.fixture
def account():
    return Account(
        id="acc-1",
        email="me@gmail.com",
        provider=Provider.GMAIL,
        credentials={"access_token": "token-123"},
    )


def test_fetch_unread_normalizes_messages(account):
    service = _service([_raw_message("m1")])
    adapter = GmailAdapter(service_factory=lambda creds: service)

    emails = adapter.fetch_unread(account)

    assert len(emails) == 1
    email = emails[0]
    assert email.provider is Provider.GMAIL
    assert email.message_id == "m1"
    assert email.from_address == "alice@example.com"
    assert email.subject == "Quarterly plan"
    assert email.date == "2024-01-01T12:00:00+00:00"
    assert email.body == "Can we meet on Tuesday"
    assert email.account_email == "me@gmail.com"


def test_fetch_unread_uses_category_exclusion_query(account):
    service = _service([])
    adapter = GmailAdapter(page_size=20, service_factory=lambda creds: service)

    adapter.fetch_unread(account)

    kwargs = service.users().messages().list.call_args.kwargs
    assert kwargs["q"] == UNREAD_QUERY
    assert "-category:promotions" in kwargs["q"]
    assert kwargs["maxResults"] == 20


def test_fetch_unread_skips_marketing(account):
    service = _service([
        _raw_message("m1"),
        _raw_message("m2", extra_headers=[{"name": "List-Unsubscribe", "value": "<mailto:u@x>"}]),
        _raw_message("m3", sender="no-reply@example.com"),
    ])
    adapter = GmailAdapter(service_factory=lambda creds: service)

    emails = adapter.fetch_unread(account)

    assert [e.message_id for e in emails] == ["m1"]


def test_fetch_unread_returns_empty_on_list_error(account):
    service = MagicMock()
    service.users().messages().list().execute.side_effect = Exception("boom")
    adapter = GmailAdapter(service_factory=lambda creds: service)

    assert adapter.fetch_unread(account) == []


def test_fetch_unread_skips_single_failed_message(account):
    service = _service([_raw_message("m1"), _raw_message("m2")])
    good = service.users().messages().get.side_effect

    def flaky_get(**kw):
        if kw["id"] == "m1":
            raise Exception("transient")
        return good(**kw)

    service.users().messages().get.side_effect = flaky_get
    adapter = GmailAdapter(service_factory=lambda creds: service)

    assert [e.message_id for e in adapter.fetch_unread(account)] == ["m2"]


def test_fetch_unread_without_credentials_returns_empty():
    account = Account(id="acc-2", email="x@gmail.com", provider=Provider.GMAIL)
    factory = MagicMock()
    adapter = GmailAdapter(service_factory=factory)

    assert adapter.fetch_unread(account) == []
    factory.assert_not_called()


def test_archive_removes_inbox_label(account):
    service = MagicMock()
    adapter = GmailAdapter(service_factory=lambda creds: service)

    assert adapter.archive(account, "m1") is True
    service.users().messages().modify.assert_called_with(
        userId="me", id="m1", body={"removeLabelIds": ["INBOX"]},
    )


def test_archive_returns_false_on_error(account):
    service = MagicMock()
    service.users().messages().modify().execute.side_effect = Exception("403")
    adapter = GmailAdapter(service_factory=lambda creds: service)

    assert adapter.archive(account, "m1") is False


def test_html_unsubscribe_link_counts_as_marketing(account):
    html = (
        '<p>Spring catalogue is here</p>'
        '<a href="https://shop.example/unsubscribe?u=1">Manage preferences</a>'
    )
    bulk = _raw_message("m1", sender="news@shop.example", subject="Spring catalogue is here")
    bulk["payload"].update(mimeType="text/html", body={"data": _encode(html)})
    personal = _raw_message("m2")
    personal["payload"].update(
        mimeType="text/html", body={"data": _encode("<p>Can we meet <b>Tuesday</b></p>")},
    )
    adapter = GmailAdapter(service_factory=lambda creds: _service([bulk, personal]))

    emails = adapter.fetch_unread(account)

    assert [e.message_id for e in emails] == ["m2"]
    assert emails[0].body == "Can we meet Tuesday"


def test_fetch_unread_skips_malformed_message(account):
    broken = _raw_message("m1")
    broken["payload"]["headers"] = [{"value": "header without a name"}]
    service = _service([broken, _raw_message("m2")])
    adapter = GmailAdapter(service_factory=lambda creds: service)

    assert [e.message_id for e in adapter.fetch_unread(account)] == ["m2"]


def test_fetch_unread_uses_listed_id_when_payload_has_none(account):
    raw = _raw_message("m1")
    service = _service([raw])
    del raw["id"]
    adapter = GmailAdapter(service_factory=lambda creds: service)

    assert [e.message_id for e in adapter.fetch_unread(account)] == ["m1"]
