import pytest


@pytest.fixture
def roll(client, course, students):
    statuses = ["present", "present", "absent", "late"]
    resp = client.post("/v1/attendance/", json={
        "course_id": course["id"],
        "date": "2025-09-17",
        "teacher_id": 11,
        "records": [{"student_id": s["id"], "status": st} for s, st in zip(students, statuses)],
    })
    assert resp.status_code == 201
    return resp.json()["data"]


def test_create_summarizes_the_roll(roll):
    assert roll["total_students"] == 4
    assert (roll["present_count"], roll["absent_count"], roll["late_count"]) == (2, 1, 1)
    assert roll["attendance_percentage"] == 75.00
    assert roll["is_locked"] is False
    assert all(r["marked_by"] == 11 for r in roll["records"])


def test_empty_roll_is_zero_percent(client, course):
    resp = client.post("/v1/attendance/", json={"course_id": course["id"], "date": "2025-09-18", "records": []})
    assert resp.status_code == 201
    assert resp.json()["data"]["attendance_percentage"] == 0


def test_one_roll_per_course_and_date(client, roll, course):
    resp = client.post("/v1/attendance/", json={"course_id": course["id"], "date": "2025-09-17", "records": []})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ATTENDANCE_EXISTS"


def test_unknown_course(client):
    resp = client.post("/v1/attendance/", json={"course_id": 999, "date": "2025-09-17", "records": []})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "COURSE_NOT_FOUND"


def test_invalid_status_is_rejected_at_intake(client, course, students):
    resp = client.post("/v1/attendance/", json={
        "course_id": course["id"],
        "date": "2025-09-19",
        "records": [{"student_id": students[0]["id"], "status": "asleep"}],
    })
    assert resp.status_code == 422


def test_update_recomputes(client, roll, students):
    resp = client.put(f"/v1/attendance/{roll['id']}", json={
        "records": [
            {"student_id": students[2]["id"], "status": "excused", "notes": "doctor"},
            {"student_id": 999, "status": "absent"},
        ],
        "notes": "fire drill",
        "marked_by": 12,
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["absent_count"] == 0
    assert data["excused_count"] == 1
    assert data["attendance_percentage"] == 75.00
    assert data["notes"] == "fire drill"
    assert len(data["records"]) == 4


def test_lock_blocks_changes_until_unlocked(client, roll, students):
    resp = client.post(f"/v1/attendance/{roll['id']}/lock", json={"actor_id": 11})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["is_locked"] is True
    assert data["locked_by"] == 11
    assert data["locked_at"] is not None

    resp = client.put(f"/v1/attendance/{roll['id']}", json={"notes": "late edit"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ATTENDANCE_LOCKED"

    resp = client.patch(f"/v1/attendance/{roll['id']}/records/{students[2]['id']}", json={"status": "present"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ATTENDANCE_LOCKED"

    resp = client.post(f"/v1/attendance/{roll['id']}/lock")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "ATTENDANCE_LOCKED"

    resp = client.post(f"/v1/attendance/{roll['id']}/unlock")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["is_locked"] is False
    assert data["locked_by"] is None
    assert data["locked_at"] is None

    resp = client.patch(f"/v1/attendance/{roll['id']}/records/{students[2]['id']}", json={"status": "present"})
    assert resp.status_code == 200
    assert resp.json()["data"]["attendance_percentage"] == 100


def test_mark_student_outside_the_roll(client, roll):
    resp = client.patch(f"/v1/attendance/{roll['id']}/records/999", json={"status": "present"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "STUDENT_NOT_IN_ROLL"


def test_missing_day_is_404(client):
    resp = client.get("/v1/attendance/999")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "ATTENDANCE_NOT_FOUND"


def test_list_filters(client, roll, course):
    client.post("/v1/attendance/", json={"course_id": course["id"], "date": "2025-09-18", "records": []})

    body = client.get("/v1/attendance/", params={"course_id": course["id"]}).json()
    assert body["meta"]["total"] == 2
    # newest first
    assert [d["date"] for d in body["data"]] == ["2025-09-18", "2025-09-17"]

    body = client.get("/v1/attendance/", params={"date": "2025-09-17"}).json()
    assert [d["id"] for d in body["data"]] == [roll["id"]]

    body = client.get("/v1/attendance/", params={"start_date": "2025-09-18", "end_date": "2025-09-30"}).json()
    assert body["meta"]["total"] == 1


def test_student_history_and_stats(client, course, students):
    days = [("2025-09-15", "present"), ("2025-09-16", "late"), ("2025-09-17", "absent"), ("2025-09-18", "excused")]
    for day, status in days:
        client.post("/v1/attendance/", json={
            "course_id": course["id"],
            "date": day,
            "records": [
                {"student_id": students[0]["id"], "status": status},
                {"student_id": students[1]["id"], "status": "present"},
            ],
        })
    window = {"start_date": "2025-09-01", "end_date": "2025-09-30"}

    history = client.get(f"/v1/attendance/student/{students[0]['id']}", params=window).json()["data"]
    assert [d["date"] for d in history] == [d for d, _ in days]

    stats = client.get(f"/v1/attendance/student/{students[0]['id']}/stats", params=window).json()["data"]
    assert stats["total_days"] == 4
    assert (stats["present_days"], stats["late_days"], stats["absent_days"], stats["excused_days"]) == (1, 1, 1, 1)
    assert stats["attendance_percentage"] == 50

    course_stats = client.get(f"/v1/attendance/course/{course['id']}/stats", params=window).json()["data"]
    assert course_stats["total_days"] == 4
    assert course_stats["total_present"] == 5
    assert course_stats["total_absent"] == 1
    # 100, 100, 50, 50
    assert course_stats["avg_attendance"] == 75


def test_stats_outside_the_window_are_empty(client, roll, students):
    params = {"start_date": "2024-01-01", "end_date": "2024-12-31"}
    stats = client.get(f"/v1/attendance/student/{students[0]['id']}/stats", params=params).json()["data"]
    assert stats["total_days"] == 0
    assert stats["attendance_percentage"] == 0


def test_update_can_clear_notes(client, roll, students):
    client.put(f"/v1/attendance/{roll['id']}", json={
        "notes": "assembly",
        "records": [{"student_id": students[2]["id"], "status": "excused", "notes": "doctor"}],
    })

    resp = client.put(f"/v1/attendance/{roll['id']}", json={
        "notes": "",
        "records": [{"student_id": students[2]["id"], "status": "excused", "notes": ""}],
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["notes"] == ""
    entry = next(r for r in data["records"] if r["student_id"] == students[2]["id"])
    assert entry["notes"] == ""
