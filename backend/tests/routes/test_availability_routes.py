"""Route tests for instructor availability."""


def _slot(instructor_id, **overrides):
    payload = {
        "instructor_id": instructor_id,
        "date": "2024-06-10",
        "start_time": "09:00",
        "end_time": "17:00",
    }
    payload.update(overrides)
    return payload


class TestCreateSlots:
    def test_single_slot(self, client, instructor):
        response = client.post("/api/v1/availability", json=_slot(instructor.id))

        assert response.status_code == 201
        body = response.json()
        assert body["created"] == 1
        assert body["slots"][0]["start_time"] == "09:00"

    def test_batch(self, client, instructor):
        response = client.post(
            "/api/v1/availability",
            json=[_slot(instructor.id), _slot(instructor.id, date="2024-06-11")],
        )

        assert response.status_code == 201
        assert response.json()["created"] == 2

    def test_malformed_date_is_bad_request(self, client, instructor):
        response = client.post("/api/v1/availability", json=_slot(instructor.id, date="2024-02-30"))

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FORMAT"

    def test_overlap_is_conflict(self, client, instructor):
        client.post("/api/v1/availability", json=_slot(instructor.id))

        response = client.post(
            "/api/v1/availability", json=_slot(instructor.id, start_time="12:00", end_time="18:00")
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "AVAILABILITY_OVERLAP"
        assert body["errors"]["conflicting_slot"] == "09:00-17:00"

    def test_unknown_instructor(self, client):
        response = client.post("/api/v1/availability", json=_slot("01J0NOBODY0000000000000000"))

        assert response.status_code == 404

    def test_malformed_batch_for_unknown_instructor_is_bad_request(self, client):
        response = client.post(
            "/api/v1/availability",
            json=_slot("01J0NOBODY0000000000000000", date="2024-02-30"),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FORMAT"


class TestGetAvailability:
    def test_windows_with_override(self, client, instructor):
        client.post(
            "/api/v1/availability",
            json=[
                _slot(instructor.id),
                _slot(instructor.id, start_time="12:00", end_time="13:00", is_available=False),
            ],
        )

        response = client.get(
            "/api/v1/availability",
            params={
                "instructor_id": instructor.id,
                "start_date": "2024-06-10",
                "end_date": "2024-06-16",
            },
        )

        assert response.status_code == 200
        assert response.json()["availability"] == [
            {
                "date": "2024-06-10",
                "slots": [
                    {"start_time": "09:00", "end_time": "12:00"},
                    {"start_time": "13:00", "end_time": "17:00"},
                ],
            }
        ]

    def test_reversed_range(self, client, instructor):
        response = client.get(
            "/api/v1/availability",
            params={
                "instructor_id": instructor.id,
                "start_date": "2024-06-16",
                "end_date": "2024-06-10",
            },
        )

        assert response.status_code == 400


def test_update_availability(client, instructor):
    client.post("/api/v1/availability", json=_slot(instructor.id))

    response = client.put(
        "/api/v1/availability",
        json={
            "instructor_id": instructor.id,
            "date": "2024-06-10",
            "start_time": "12:00",
            "end_time": "13:00",
            "is_available": False,
        },
    )

    assert response.status_code == 200
    slots = response.json()["slots"]
    assert [(s["start_time"], s["end_time"], s["is_available"]) for s in slots] == [
        ("09:00", "12:00", True),
        ("12:00", "13:00", False),
        ("13:00", "17:00", True),
    ]
