from quoteflow.services.notifications.notification_service import (
    ConsoleEmailBackend,
    EmailBackend,
    NotificationService,
)


class RecordingBackend(EmailBackend):
    def __init__(self):
        self.messages = []

    async def send_email(self, to, subject, body, from_address):
        self.messages.append((to, subject, body, from_address))


class BrokenBackend(EmailBackend):
    async def send_email(self, to, subject, body, from_address):
        raise ConnectionError("smtp down")


PORTAL_DATA = {"quote_number": "Q-2026-0001", "customer_name": "Jane", "job_line": ""}


async def test_notify_renders_template():
    backend = RecordingBackend()
    service = NotificationService(backend, from_address="noreply@test")

    assert await service.notify("owner@test", "portal_expired", PORTAL_DATA) is True

    to, subject, body, from_address = backend.messages[0]
    assert to == "owner@test"
    assert "Q-2026-0001" in subject
    assert "Jane" in body
    assert from_address == "noreply@test"


async def test_notify_swallows_delivery_errors():
    service = NotificationService(BrokenBackend())
    assert await service.notify("owner@test", "portal_expired", PORTAL_DATA) is False


async def test_notify_unknown_template_is_reported_not_raised():
    service = NotificationService(RecordingBackend())
    assert await service.notify("owner@test", "missing", {}) is False


async def test_notify_without_recipient():
    backend = RecordingBackend()
    assert await NotificationService(backend).notify(None, "portal_expired", PORTAL_DATA) is False
    assert backend.messages == []


async def test_console_backend_logs(caplog):
    caplog.set_level("INFO")
    await ConsoleEmailBackend().send_email("owner@test", "Subject line", "Body", "noreply@test")
    assert "Subject line" in caplog.text
