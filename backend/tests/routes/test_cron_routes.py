"""Route tests for the reminder sweep endpoint and infrastructure routes."""

from datetime import date, datetime, time

import pytest
from pydantic import SecretStr

from app.core.config import settings
from app.services.reminder_service import ReminderService

URL = "/api/v1/cron/process-reminders"


@pytest.fixture
def due_reminders(db, clock, dispatcher, instructor, booking_factory):
    booking = booking_factory(instructor.id, date(2024, 6, 10), time(14, 0), time(15, 0))
    ReminderService(db, clock=clock, dispatcher=dispatcher).on_booking_confirmed(booking)
    db.commit()
    clock.set(datetime(2024, 6, 10, 9, 30))
    return booking


class TestProcessReminders:
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Bearer wrong-secret"},
            {"Authorization": "Basic test-cron-secret"},
            {"Authorization": "Bearer"},
        ],
    )
    def test_rejects_missing_or_bad_secret(self, client, headers, dispatcher):
        response = client.post(URL, headers=headers)

        assert response.status_code == 401
        assert dispatcher.sent == []

    def test_sweeps_due_reminders(self, client, due_reminders, dispatcher):
        response = client.post(URL, headers={"Authorization": "Bearer test-cron-secret"})

        assert response.status_code == 200
        body = response.json()
        assert (body["processed"], body["sent"], body["failed"], body["skipped"]) == (2, 2, 0, 0)
        assert "timestamp" in body
        assert len(dispatcher.sent) == 2

    def test_empty_secret_disables_endpoint(self, client, monkeypatch):
        monkeypatch.setattr(settings, "cron_secret", SecretStr(""))

        response = client.post(URL, headers={"Authorization": "Bearer "})

        assert response.status_code == 401


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"


def test_metrics_exposition(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "scheduler_http_requests_total" in response.text
