import pytest


def grade_payload(student_id, course_id, **overrides):
    payload = {
        "student_id": student_id,
        "course_id": course_id,
        "teacher_id": 11,
        "academic_year": "2025-2026",
        "semester": "1st",
        "assignments": [{"title": "HW1", "max_score": 10, "score": 9}],
        "midterm": {"max_score": 100, "score": 80},
        "final": {"max_score": 100, "score": 90},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def grade(client, course, students):
    resp = client.post("/v1/grades/", json=grade_payload(students[0]["id"], course["id"]))
    assert resp.status_code == 201
    return resp.json()["data"]


def test_create_computes_final_grade(grade):
    # (0.9 * 30 + 0.8 * 25 + 0.9 * 25) / 80 * 100
    assert grade["final_grade"]["percentage"] == pytest.approx(86.875)
    assert grade["final_grade"]["letter_grade"] == "B"
    assert grade["final_grade"]["gpa"] == 3.0
    assert grade["is_published"] is False
    assert grade["semester"] == "1st"


def test_read_grade(client, grade):
    resp = client.get(f"/v1/grades/{grade['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["final_grade"] == grade["final_grade"]


def test_missing_grade_is_404(client):
    resp = client.get("/v1/grades/999")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "GRADE_NOT_FOUND"


def test_duplicate_term_is_rejected(client, grade, course, students):
    resp = client.post("/v1/grades/", json=grade_payload(students[0]["id"], course["id"]))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "GRADE_EXISTS"

    # another semester is a different record
    resp = client.post("/v1/grades/", json=grade_payload(students[0]["id"], course["id"], semester="2nd"))
    assert resp.status_code == 201


def test_unknown_student_and_course(client, course, students):
    resp = client.post("/v1/grades/", json=grade_payload(999, course["id"]))
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "STUDENT_NOT_FOUND"

    resp = client.post("/v1/grades/", json=grade_payload(students[0]["id"], 999))
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "COURSE_NOT_FOUND"


def test_zero_max_score_is_rejected_and_nothing_is_stored(client, course, students):
    payload = grade_payload(
        students[0]["id"], course["id"],
        assignments=[{"title": "HW1", "max_score": 0, "score": 5}],
    )
    resp = client.post("/v1/grades/", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    assert client.get("/v1/grades/").json()["meta"]["total"] == 0


def test_bad_semester_is_a_request_validation_error(client, course, students):
    resp = client.post("/v1/grades/", json=grade_payload(students[0]["id"], course["id"], semester="5th"))
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "REQUEST_VALIDATION_FAILED"


def test_update_merges_fixed_components_and_recomputes(client, grade):
    resp = client.put(f"/v1/grades/{grade['id']}", json={"midterm": {"score": 100}, "comments": "strong finish"})
    assert resp.status_code == 200
    data = resp.json()["data"]

    assert data["midterm"]["max_score"] == 100
    assert data["midterm"]["score"] == 100
    # (0.9 * 30 + 1.0 * 25 + 0.9 * 25) / 80 * 100
    assert data["final_grade"]["percentage"] == pytest.approx(93.125)
    assert data["final_grade"]["letter_grade"] == "A"
    assert data["comments"] == "strong finish"


def test_failed_update_leaves_record_untouched(client, grade):
    resp = client.put(f"/v1/grades/{grade['id']}", json={"final": {"score": 150}})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    stored = client.get(f"/v1/grades/{grade['id']}").json()["data"]
    assert stored["final"]["score"] == 90
    assert stored["final_grade"] == grade["final_grade"]


def test_zero_weight_quiz_does_not_move_the_grade(client, grade):
    resp = client.post(
        f"/v1/grades/{grade['id']}/quizzes",
        json={"title": "Pop quiz", "max_score": 10, "score": 0, "weight": 0},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data["quizzes"]) == 1
    assert data["quizzes"][0]["graded_at"] is not None
    assert data["final_grade"]["percentage"] == grade["final_grade"]["percentage"]


def test_add_assignment_recomputes(client, grade):
    resp = client.post(
        f"/v1/grades/{grade['id']}/assignments",
        json={"title": "HW2", "max_score": 10, "score": 5},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [a["title"] for a in data["assignments"]] == ["HW1", "HW2"]
    # assignments average 70: (0.7 * 30 + 0.8 * 25 + 0.9 * 25) / 80 * 100
    assert data["final_grade"]["percentage"] == pytest.approx(79.375)


def test_published_grade_cannot_change(client, grade):
    resp = client.post(f"/v1/grades/{grade['id']}/publish", json={"actor_id": 11})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["is_published"] is True
    assert data["published_by"] == 11
    assert data["published_at"] is not None

    resp = client.put(f"/v1/grades/{grade['id']}", json={"midterm": {"score": 100}})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "GRADE_PUBLISHED"

    resp = client.post(f"/v1/grades/{grade['id']}/assignments", json={"title": "late", "max_score": 10, "score": 10})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "GRADE_PUBLISHED"

    # publishing again keeps the first publication
    again = client.post(f"/v1/grades/{grade['id']}/publish").json()["data"]
    assert again["published_at"] == data["published_at"]


def test_list_filters_and_paging(client, course, students):
    for student in students:
        client.post("/v1/grades/", json=grade_payload(student["id"], course["id"]))
    client.post("/v1/grades/", json=grade_payload(students[0]["id"], course["id"], semester="2nd"))

    body = client.get("/v1/grades/", params={"semester": "1st", "size": 3}).json()
    assert body["meta"] == {"total": 4, "page": 1, "size": 3, "pages": 2}
    assert len(body["data"]) == 3

    body = client.get("/v1/grades/", params={"student_id": students[0]["id"]}).json()
    assert body["meta"]["total"] == 2

    resp = client.get("/v1/grades/", params={"size": 0})
    assert resp.status_code == 422


def test_student_and_course_lookups(client, grade, course, students):
    data = client.get(f"/v1/grades/student/{students[0]['id']}").json()["data"]
    assert [g["id"] for g in data] == [grade["id"]]

    data = client.get(f"/v1/grades/course/{course['id']}", params={"academic_year": "2024-2025"}).json()["data"]
    assert data == []


def test_course_stats(client, course, students):
    scores = [100, 100, 70, 50]
    for student, score in zip(students, scores):
        client.post("/v1/grades/", json=grade_payload(
            student["id"], course["id"],
            assignments=[],
            midterm={"max_score": 100, "score": score},
            final={"max_score": 100, "score": score},
        ))

    stats = client.get(f"/v1/grades/course/{course['id']}/stats", params={"semester": "1st"}).json()["data"]
    assert stats["total_students"] == 4
    assert stats["avg_grade"] == pytest.approx(80.0)
    assert stats["avg_gpa"] == pytest.approx((4.0 + 4.0 + 1.7 + 0.0) / 4)
    assert stats["grade_distribution"] == {"A+": 2, "C-": 1, "F": 1}


def test_update_can_clear_comments(client, grade):
    client.put(f"/v1/grades/{grade['id']}", json={"comments": "needs review"})

    resp = client.put(f"/v1/grades/{grade['id']}", json={"comments": ""})
    assert resp.status_code == 200
    assert resp.json()["data"]["comments"] == ""

    # omitting the field leaves it alone
    resp = client.put(f"/v1/grades/{grade['id']}", json={"midterm": {"score": 85}})
    assert resp.json()["data"]["comments"] == ""
