"""Unit tests for the SMTP DATA handler

Drives handle_DATA directly with an aiosmtpd Envelope and checks the SMTP
reply and what reached the store.
"""

from types import SimpleNamespace

import pytest
from aiosmtpd.smtp import Envelope

from mongster.domain.mail.ports import StoreUnavailable
from mongster.infrastructure.ingest.smtp_handler import MessageCaptureHandler


RAW_MESSAGE = (
    b"From: sender@example.com\r\n"
    b"To: alice@example.com, bob@example.com\r\n"
    b"Subject: Handler test\r\n"
    b"Date: Mon, 5 Jan 2026 10:00:00 +0000\r\n"
    b"\r\n"
    b"Hello from the handler test\r\n"
)


def make_envelope(raw=RAW_MESSAGE, mail_from="sender@example.com", rcpt_tos=("alice@example.com",)):
    envelope = Envelope()
    envelope.mail_from = mail_from
    envelope.rcpt_tos = list(rcpt_tos)
    envelope.content = raw
    envelope.original_content = raw
    return envelope


SESSION = SimpleNamespace(peer=("127.0.0.1", 40000))


class UnavailableStore:
    def insert(self, *args, **kwargs):
        raise StoreUnavailable("database is down")


class TestMessageCaptureHandler:
    """Test SMTP replies and store side effects"""

    @pytest.mark.asyncio
    async def test_accepts_and_stores(self, store):
        handler = MessageCaptureHandler(store)

        reply = await handler.handle_DATA(None, SESSION, make_envelope())

        assert reply.startswith("250")
        records = store.list_all()
        assert len(records) == 1
        assert records[0].subject == "Handler test"
        assert records[0].to == ["alice@example.com", "bob@example.com"]

    @pytest.mark.asyncio
    async def test_keeps_raw_source(self, store):
        handler = MessageCaptureHandler(store)

        await handler.handle_DATA(None, SESSION, make_envelope())

        assert store.get_raw(0) == RAW_MESSAGE

    @pytest.mark.asyncio
    async def test_rejects_message_without_recipient(self, store):
        handler = MessageCaptureHandler(store)
        raw = b"From: sender@example.com\r\nSubject: nobody\r\n\r\nbody\r\n"

        reply = await handler.handle_DATA(None, SESSION, make_envelope(raw=raw, rcpt_tos=()))

        assert reply.startswith("554")
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_rejects_message_without_sender(self, store):
        handler = MessageCaptureHandler(store)
        raw = b"To: alice@example.com\r\nSubject: anonymous\r\n\r\nbody\r\n"

        reply = await handler.handle_DATA(None, SESSION, make_envelope(raw=raw, mail_from=""))

        assert reply.startswith("554")
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_store_unavailable_defers(self):
        handler = MessageCaptureHandler(UnavailableStore())

        reply = await handler.handle_DATA(None, SESSION, make_envelope())

        assert reply.startswith("451")

    @pytest.mark.asyncio
    async def test_on_accepted_callback(self, store):
        accepted = []
        handler = MessageCaptureHandler(store, on_accepted=lambda rid, rec: accepted.append((rid, rec)))

        await handler.handle_DATA(None, SESSION, make_envelope())

        assert len(accepted) == 1
        assert accepted[0][1] == store.list_all()[0]

    @pytest.mark.asyncio
    async def test_callback_not_called_on_rejection(self):
        accepted = []
        handler = MessageCaptureHandler(UnavailableStore(), on_accepted=lambda rid, rec: accepted.append(rid))

        await handler.handle_DATA(None, SESSION, make_envelope())

        assert accepted == []
