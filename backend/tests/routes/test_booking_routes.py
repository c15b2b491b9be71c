"""Route tests for the booking lifecycle."""

COURSE_ID = "01J0COURSE0000000000000001"
STUDENT_ID = "01J0STUDENT000000000000001"


def _booking_payload(instructor_id, **overrides):
    payload = {
        "student_id": STUDENT_ID,
        "instructor_id": instructor_id,
        "course_id": COURSE_ID,
        "booking_date": "2024-06-10",
        "start_time": "14:00",
        "duration_minutes": 60,
    }
    payload.update(overrides)
    return payload


class TestCreateBooking:
    def test_created(self, client, instructor):
        response = client.post("/api/v1/bookings", json=_booking_payload(instructor.id))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "scheduled"
        assert body["end_time"] == "15:00"

    def test_conflict(self, client, instructor):
        first = client.post("/api/v1/bookings", json=_booking_payload(instructor.id)).json()

        response = client.post(
            "/api/v1/bookings", json=_booking_payload(instructor.id, start_time="14:30")
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "BOOKING_CONFLICT"
        assert [c["id"] for c in body["errors"]["conflicts"]] == [first["id"]]

    def test_mismatched_end_and_duration(self, client, instructor):
        response = client.post(
            "/api/v1/bookings",
            json=_booking_payload(instructor.id, end_time="16:00", duration_minutes=60),
        )

        assert response.status_code == 400

    def test_unknown_field_rejected(self, client, instructor):
        response = client.post(
            "/api/v1/bookings", json=_booking_payload(instructor.id, price=40)
        )

        assert response.status_code == 400


class TestLifecycle:
    def test_confirm_reschedule_cancel(self, client, instructor):
        booking = client.post("/api/v1/bookings", json=_booking_payload(instructor.id)).json()
        booking_id = booking["id"]

        confirmed = client.patch(
            f"/api/v1/bookings/{booking_id}/status", json={"status": "confirmed"}
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["status"] == "confirmed"

        reminders = client.get(f"/api/v1/bookings/{booking_id}/reminders").json()
        assert [r["offset_minutes"] for r in reminders] == [1440, 240, 60, 15]
        assert reminders[0]["scheduled_send_time"] == "2024-06-09T13:00:00"

        moved = client.post(
            f"/api/v1/bookings/{booking_id}/reschedule",
            json={"booking_date": "2024-06-11", "start_time": "09:00"},
        )
        assert moved.status_code == 200
        assert moved.json()["booking_date"] == "2024-06-11"
        reminders = client.get(f"/api/v1/bookings/{booking_id}/reminders").json()
        assert reminders[0]["scheduled_send_time"] == "2024-06-10T08:00:00"

        cancelled = client.post(
            f"/api/v1/bookings/{booking_id}/cancel", json={"reason": "Exam passed early"}
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["cancellation_reason"] == "Exam passed early"
        reminders = client.get(f"/api/v1/bookings/{booking_id}/reminders").json()
        assert {r["status"] for r in reminders} == {"cancelled"}

    def test_cancel_without_body(self, client, instructor):
        booking = client.post("/api/v1/bookings", json=_booking_payload(instructor.id)).json()

        response = client.post(f"/api/v1/bookings/{booking['id']}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_invalid_transition(self, client, instructor):
        booking = client.post("/api/v1/bookings", json=_booking_payload(instructor.id)).json()
        client.post(f"/api/v1/bookings/{booking['id']}/cancel")

        response = client.patch(
            f"/api/v1/bookings/{booking['id']}/status", json={"status": "confirmed"}
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    def test_missing_booking(self, client):
        response = client.get("/api/v1/bookings/01J0MISSING000000000000000")

        assert response.status_code == 404
        assert response.json()["code"] == "BOOKING_NOT_FOUND"
