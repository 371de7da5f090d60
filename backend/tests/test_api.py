from app.models.user import SCHEDULE_READERS, SCHEDULE_WRITERS, UserRole

PATTERN_PAYLOAD = {
    "name": "CS101 Lecture",
    "days_of_week": ["MONDAY", "WEDNESDAY"],
    "start_time": "09:00",
    "end_time": "10:00",
    "recurrence": "WEEKLY",
    "start_date": "2024-01-01",
    "end_date": "2024-01-31",
}

TIMETABLE_PAYLOAD = {
    "name": "CSE 2024 A",
    "class_id": "class-a",
    "course_campus_id": "campus-1",
    "start_date": "2024-01-01",
    "end_date": "2024-06-30",
}

PERIOD_PAYLOAD = {
    "day_of_week": "MONDAY",
    "start_time": "09:00",
    "end_time": "10:00",
    "type": "LECTURE",
    "facility_id": "room-101",
    "assignment_id": "tsa-1",
    "metadata": {"note": "bring laptops"},
}


def create_pattern(client, headers, **overrides):
    response = client.post("/api/schedule-patterns", json={**PATTERN_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_timetable(client, headers, **overrides):
    response = client.post("/api/timetables", json={**TIMETABLE_PAYLOAD, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    assert "database" in ready.json()


def test_routes_require_a_token(client):
    assert client.get("/api/schedule-patterns").status_code in {401, 403}


def test_role_gating(client, auth_headers):
    scheduler = auth_headers(UserRole.scheduler)
    faculty = auth_headers(UserRole.faculty)
    student = auth_headers(UserRole.student)

    pattern = create_pattern(client, scheduler)

    assert client.post("/api/schedule-patterns", json=PATTERN_PAYLOAD, headers=faculty).status_code == 403
    assert client.get(f"/api/schedule-patterns/{pattern['id']}", headers=faculty).status_code == 200
    assert client.get(f"/api/schedule-patterns/{pattern['id']}", headers=student).status_code == 403


def test_schedule_role_sets():
    assert set(SCHEDULE_WRITERS) == {UserRole.admin, UserRole.scheduler}
    assert set(SCHEDULE_READERS) == {UserRole.admin, UserRole.scheduler, UserRole.faculty}


def test_faculty_reads_but_cannot_write_timetables(client, auth_headers):
    scheduler = auth_headers(UserRole.scheduler)
    faculty = auth_headers(UserRole.faculty)
    timetable = create_timetable(client, scheduler)

    assert client.get(f"/api/timetables/{timetable['id']}", headers=faculty).status_code == 200
    assert client.get("/api/periods", headers=faculty).status_code == 200
    assert client.post("/api/timetables", json=TIMETABLE_PAYLOAD, headers=faculty).status_code == 403
    assert (
        client.post(f"/api/timetables/{timetable['id']}/periods", json=PERIOD_PAYLOAD, headers=faculty).status_code
        == 403
    )
    assert client.delete(f"/api/timetables/{timetable['id']}", headers=faculty).status_code == 403


def test_inactive_user_is_rejected(client, auth_headers):
    headers = auth_headers(UserRole.admin, active=False)
    assert client.get("/api/schedule-patterns", headers=headers).status_code == 403


def test_pattern_crud_and_listing(client, auth_headers):
    headers = auth_headers(UserRole.admin)
    pattern = create_pattern(client, headers)
    assert pattern["days_of_week"] == ["MONDAY", "WEDNESDAY"]
    assert pattern["status"] == "ACTIVE"
    assert pattern["exceptions"] == []

    updated = client.put(
        f"/api/schedule-patterns/{pattern['id']}",
        json={"name": "CS101 Lecture (moved)", "start_time": "08:00"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "CS101 Lecture (moved)"
    assert updated.json()["end_time"] == "10:00"

    listing = client.get("/api/schedule-patterns", params={"page_size": 5}, headers=headers)
    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 1
    assert body["page_size"] == 5
    assert body["total_pages"] == 1

    assert client.delete(f"/api/schedule-patterns/{pattern['id']}", headers=headers).status_code == 204
    missing = client.get(f"/api/schedule-patterns/{pattern['id']}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == f"Schedule pattern with id {pattern['id']} not found"


def test_pattern_validation_errors(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)

    reversed_times = client.post(
        "/api/schedule-patterns",
        json={**PATTERN_PAYLOAD, "start_time": "10:00", "end_time": "09:00"},
        headers=headers,
    )
    assert reversed_times.status_code == 400
    assert reversed_times.json()["message"] == "Start time must be before end time"

    no_days = client.post("/api/schedule-patterns", json={**PATTERN_PAYLOAD, "days_of_week": []}, headers=headers)
    assert no_days.status_code == 400
    assert no_days.json()["message"] == "At least one day of week must be selected"

    bad_format = client.post("/api/schedule-patterns", json={**PATTERN_PAYLOAD, "start_time": "9am"}, headers=headers)
    assert bad_format.status_code == 422

    bad_day = client.post(
        "/api/schedule-patterns", json={**PATTERN_PAYLOAD, "days_of_week": ["FUNDAY"]}, headers=headers
    )
    assert bad_day.status_code == 422


def test_exceptions_and_occurrences(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)
    pattern = create_pattern(client, headers)

    early = client.post(
        f"/api/schedule-patterns/{pattern['id']}/exceptions",
        json={"exception_date": "2023-12-25", "reason": "Holiday"},
        headers=headers,
    )
    assert early.status_code == 400
    assert early.json()["message"] == "Exception date must be within pattern date range"

    cancelled = client.post(
        f"/api/schedule-patterns/{pattern['id']}/exceptions",
        json={"exception_date": "2024-01-15", "reason": "Holiday"},
        headers=headers,
    )
    assert cancelled.status_code == 201
    moved = client.post(
        f"/api/schedule-patterns/{pattern['id']}/exceptions",
        json={
            "exception_date": "2024-01-17",
            "alternative_date": "2024-01-18",
            "alternative_start": "14:00",
            "alternative_end": "15:00",
        },
        headers=headers,
    )
    assert moved.status_code == 201

    occurrences = client.get(
        f"/api/schedule-patterns/{pattern['id']}/occurrences",
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
        headers=headers,
    )
    assert occurrences.status_code == 200
    items = occurrences.json()
    assert len(items) == 9
    assert "2024-01-15" not in [item["date"] for item in items]
    rescheduled = [item for item in items if item["is_rescheduled"]]
    assert rescheduled == [
        {
            "date": "2024-01-18",
            "start_time": "14:00",
            "end_time": "15:00",
            "is_rescheduled": True,
            "original_date": "2024-01-17",
            "reason": None,
        }
    ]

    assert client.delete(f"/api/schedule-exceptions/{cancelled.json()['id']}", headers=headers).status_code == 204
    detail = client.get(f"/api/schedule-patterns/{pattern['id']}", headers=headers).json()
    assert [item["exception_date"] for item in detail["exceptions"]] == ["2024-01-17"]

    updated = client.put(
        f"/api/schedule-exceptions/{moved.json()['id']}",
        json={"reason": "Room maintenance"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["reason"] == "Room maintenance"


def test_period_conflict_returns_409(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)
    timetable = create_timetable(client, headers)

    first = client.post(f"/api/timetables/{timetable['id']}/periods", json=PERIOD_PAYLOAD, headers=headers)
    assert first.status_code == 201
    assert first.json()["metadata"] == {"note": "bring laptops"}
    assert first.json()["recurring"] is True

    second = client.post(
        f"/api/timetables/{timetable['id']}/periods",
        json={**PERIOD_PAYLOAD, "start_time": "09:30", "end_time": "10:30"},
        headers=headers,
    )
    assert second.status_code == 409
    body = second.json()
    assert body["message"].startswith("Facility room-101 is already booked 09:00-10:00 on MONDAY")
    assert {item["period_id"] for item in body["details"]["conflicts"]} == {first.json()["id"]}

    listing = client.get("/api/periods", params={"timetable_id": timetable["id"]}, headers=headers)
    assert [item["id"] for item in listing.json()] == [first.json()["id"]]


def test_period_update_and_delete(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)
    timetable = create_timetable(client, headers)
    period = client.post(f"/api/timetables/{timetable['id']}/periods", json=PERIOD_PAYLOAD, headers=headers).json()

    moved = client.put(
        f"/api/periods/{period['id']}",
        json={"start_time": "09:30", "end_time": "10:30", "metadata": {}},
        headers=headers,
    )
    assert moved.status_code == 200
    assert moved.json()["start_time"] == "09:30"
    assert moved.json()["metadata"] == {}

    assert client.delete(f"/api/periods/{period['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/periods/{period['id']}", headers=headers).status_code == 404


def test_timetable_detail_and_cascade(client, auth_headers):
    headers = auth_headers(UserRole.admin)
    timetable = create_timetable(client, headers)
    for day in ("FRIDAY", "MONDAY"):
        client.post(
            f"/api/timetables/{timetable['id']}/periods",
            json={**PERIOD_PAYLOAD, "day_of_week": day},
            headers=headers,
        )

    detail = client.get(f"/api/timetables/{timetable['id']}", headers=headers)
    assert detail.status_code == 200
    assert [item["day_of_week"] for item in detail.json()["periods"]] == ["MONDAY", "FRIDAY"]

    deleted = client.delete(f"/api/timetables/{timetable['id']}", headers=headers)
    assert deleted.json() == {"success": True, "retired_periods": 2}
    assert client.get(f"/api/timetables/{timetable['id']}", headers=headers).status_code == 404
    assert client.get("/api/periods", params={"facility_id": "room-101"}, headers=headers).json() == []


def test_conflict_check_endpoints(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)
    timetable = create_timetable(client, headers)
    client.post(f"/api/timetables/{timetable['id']}/periods", json=PERIOD_PAYLOAD, headers=headers)

    detect = client.post(
        "/api/conflicts/detect",
        json={
            "resource_kind": "FACILITY",
            "resource_id": "room-101",
            "day_of_week": "MONDAY",
            "start_time": "09:30",
            "end_time": "10:30",
        },
        headers=headers,
    )
    assert detect.status_code == 200
    assert detect.json()["has_conflicts"] is True

    check = client.post(
        "/api/conflicts/check",
        json={
            "resource_kind": "TEACHER_ASSIGNMENT",
            "resource_id": "tsa-1",
            "candidates": [
                {"date": "2024-01-08", "start_time": "09:00", "end_time": "09:30"},
                {"date": "2024-01-09", "start_time": "09:00", "end_time": "09:30"},
            ],
        },
        headers=headers,
    )
    assert check.status_code == 200
    body = check.json()
    assert body["checked"] == 2
    assert [item["date"] for item in body["conflicts"]] == ["2024-01-08"]

    pattern = create_pattern(client, headers)
    by_pattern = client.post(
        "/api/conflicts/check-pattern",
        json={
            "resource_kind": "FACILITY",
            "resource_id": "room-101",
            "pattern_id": pattern["id"],
            "start_date": "2024-01-01",
            "end_date": "2024-01-14",
        },
        headers=headers,
    )
    assert by_pattern.status_code == 200
    assert by_pattern.json()["checked"] == 4
    assert [item["date"] for item in by_pattern.json()["conflicts"]] == ["2024-01-01", "2024-01-08"]

    faculty = auth_headers(UserRole.faculty)
    denied = client.post(
        "/api/conflicts/check",
        json={"resource_kind": "FACILITY", "resource_id": "room-101", "candidates": []},
        headers=faculty,
    )
    assert denied.status_code == 403


def test_period_validation_and_missing_timetable(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)
    timetable = create_timetable(client, headers)

    reversed_times = client.post(
        f"/api/timetables/{timetable['id']}/periods",
        json={**PERIOD_PAYLOAD, "start_time": "11:00", "end_time": "10:00"},
        headers=headers,
    )
    assert reversed_times.status_code == 400
    assert reversed_times.json()["message"] == "Start time must be before end time"

    missing = client.post("/api/timetables/unknown/periods", json=PERIOD_PAYLOAD, headers=headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Timetable with id unknown not found"


def test_timetable_detail_omits_retired_periods(client, auth_headers):
    headers = auth_headers(UserRole.scheduler)
    timetable = create_timetable(client, headers)
    kept = client.post(f"/api/timetables/{timetable['id']}/periods", json=PERIOD_PAYLOAD, headers=headers).json()
    dropped = client.post(
        f"/api/timetables/{timetable['id']}/periods",
        json={**PERIOD_PAYLOAD, "day_of_week": "TUESDAY"},
        headers=headers,
    ).json()
    assert client.delete(f"/api/periods/{dropped['id']}", headers=headers).status_code == 204

    detail = client.get(f"/api/timetables/{timetable['id']}", headers=headers)
    assert detail.status_code == 200
    body = detail.json()
    assert body["name"] == TIMETABLE_PAYLOAD["name"]
    assert [item["id"] for item in body["periods"]] == [kept["id"]]
    assert body["periods"][0]["metadata"] == {"note": "bring laptops"}


def test_timetable_listing(client, auth_headers):
    scheduler = auth_headers(UserRole.scheduler)
    faculty = auth_headers(UserRole.faculty)
    first = create_timetable(client, scheduler)
    create_timetable(client, scheduler, name="CSE 2024 B", class_id="class-b", start_date="2024-02-01")
    retired = create_timetable(client, scheduler, name="Old", start_date="2023-01-01", end_date="2023-06-30")
    client.delete(f"/api/timetables/{retired['id']}", headers=scheduler)

    response = client.get("/api/timetables", params={"page": 1, "page_size": 1}, headers=faculty)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["total_pages"] == 2
    assert [item["id"] for item in body["items"]] == [first["id"]]

    by_class = client.get("/api/timetables", params={"class_id": "class-b"}, headers=faculty).json()
    assert [item["name"] for item in by_class["items"]] == ["CSE 2024 B"]

    deleted = client.get("/api/timetables", params={"status": "DELETED"}, headers=scheduler).json()
    assert [item["id"] for item in deleted["items"]] == [retired["id"]]

    assert client.get("/api/timetables", headers=auth_headers(UserRole.student)).status_code == 403
    assert client.get("/api/timetables", params={"page": 0}, headers=scheduler).status_code == 422


def test_periods_filter_by_class(client, auth_headers):
    headers = auth_headers(UserRole.admin)
    class_a = create_timetable(client, headers)
    class_b = create_timetable(client, headers, name="CSE 2024 B", class_id="class-b")
    mine = client.post(f"/api/timetables/{class_a['id']}/periods", json=PERIOD_PAYLOAD, headers=headers).json()
    client.post(
        f"/api/timetables/{class_b['id']}/periods",
        json={**PERIOD_PAYLOAD, "facility_id": "room-202", "assignment_id": "tsa-2"},
        headers=headers,
    )

    response = client.get("/api/periods", params={"class_id": "class-a"}, headers=headers)
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [mine["id"]]
    assert client.get("/api/periods", params={"class_id": "class-z"}, headers=headers).json() == []
