import pytest

from conftest import approved_user


@pytest.fixture
def teacher_headers(client, admin_headers):
    _, headers = approved_user(client, admin_headers, "teacher@school.edu.ph")
    return headers


def _create(client, headers, path, body):
    response = client.post(path, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_school_year_activation_is_exclusive(client, admin_headers):
    first = _create(client, admin_headers, "/grading/school-years", {"school_year": "2023-2024", "is_active": True})
    second = _create(client, admin_headers, "/grading/school-years", {"school_year": "2024-2025", "is_active": True})

    assert first["is_active"] is True
    assert second["is_active"] is True
    refreshed = client.get(f"/grading/school-years/{first['school_year_id']}", headers=admin_headers).json()
    assert refreshed["is_active"] is False

    active = client.get("/grading/school-years/active", headers=admin_headers).json()
    assert active["school_year"] == "2024-2025"

    toggled = client.put(f"/grading/school-years/{second['school_year_id']}/toggle-active", headers=admin_headers)
    assert toggled.json()["school_year"]["is_active"] is False
    assert client.get("/grading/school-years/active", headers=admin_headers).status_code == 404
    assert client.put("/grading/school-years/999/toggle-active", headers=admin_headers).status_code == 404


def test_subject_crud_and_lookup(client, admin_headers):
    subject = _create(client, admin_headers, "/grading/subjects", {"subject_name": "Mathematics"})

    found = client.get("/grading/subjects/by-name/mathematics", headers=admin_headers)
    assert found.status_code == 200
    assert found.json()["subject_id"] == subject["subject_id"]

    duplicate = client.post("/grading/subjects", json={"subject_name": "Mathematics"}, headers=admin_headers)
    assert duplicate.status_code == 400

    updated = client.put(
        f"/grading/subjects/{subject['subject_id']}", json={"subject_name": "Math"}, headers=admin_headers
    )
    assert updated.json()["subject_name"] == "Math"

    assert client.delete(f"/grading/subjects/{subject['subject_id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/grading/subjects/{subject['subject_id']}", headers=admin_headers).status_code == 404
    assert client.get("/grading/subjects/by-name/Math", headers=admin_headers).status_code == 404


def test_teacher_status_toggle(client, admin_headers):
    teacher = _create(client, admin_headers, "/grading/teachers", {"fname": "Ana", "lname": "Reyes"})
    assert teacher["teacher_status"] is True

    response = client.put(
        f"/grading/teachers/{teacher['teacher_id']}/status", json={"status": False}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Teacher status updated to INACTIVE"
    assert response.json()["teacher"]["teacher_status"] is False


def test_class_enrolment(client, admin_headers):
    klass = _create(client, admin_headers, "/grading/classes", {"grade_level": "7", "section": "Rizal"})
    student = _create(
        client, admin_headers, "/grading/students", {"fname": "Juan", "lname": "Cruz", "birthdate": "2012-05-01"}
    )
    path = f"/grading/classes/{klass['class_id']}/students"

    enrolled = client.post(path, json={"student_id": student["student_id"]}, headers=admin_headers)
    assert enrolled.status_code == 201
    again = client.post(path, json={"student_id": student["student_id"]}, headers=admin_headers)
    assert again.status_code == 400

    roster = client.get(path, headers=admin_headers).json()
    assert [row["student_id"] for row in roster] == [student["student_id"]]
    assert roster[0]["birthdate"] == "2012-05-01"

    removed = client.delete(f"{path}/{student['student_id']}", headers=admin_headers)
    assert removed.status_code == 200
    assert client.get(path, headers=admin_headers).json() == []
    assert client.delete(f"{path}/{student['student_id']}", headers=admin_headers).status_code == 404


def test_activity_scores_and_cascade_delete(client, admin_headers, teacher_headers):
    klass = _create(client, admin_headers, "/grading/classes", {"grade_level": "8", "section": "Mabini"})
    student = _create(client, admin_headers, "/grading/students", {"fname": "Maria", "lname": "Santos"})
    activity = _create(
        client,
        teacher_headers,
        "/grading/activities",
        {"class_id": klass["class_id"], "title": "Quiz 1", "max_score": 20},
    )
    scores_path = f"/grading/activities/{activity['activity_id']}/scores"

    too_high = client.put(
        scores_path, json={"scores": [{"student_id": student["student_id"], "score": 25}]}, headers=teacher_headers
    )
    assert too_high.status_code == 400

    saved = client.put(
        scores_path, json={"scores": [{"student_id": student["student_id"], "score": 18}]}, headers=teacher_headers
    )
    assert saved.status_code == 200
    assert saved.json() == [{"activity_id": activity["activity_id"], "student_id": student["student_id"], "score": 18}]

    client.put(scores_path, json={"scores": [{"student_id": student["student_id"], "score": 19}]}, headers=teacher_headers)
    assert client.get(scores_path, headers=teacher_headers).json()[0]["score"] == 19

    deleted = client.delete(f"/grading/activities/{activity['activity_id']}", headers=teacher_headers)
    assert deleted.status_code == 200
    assert client.get(scores_path, headers=teacher_headers).status_code == 404


def test_attendance_batch(client, admin_headers, teacher_headers):
    year = _create(client, admin_headers, "/grading/school-years", {"school_year": "2024-2025"})
    klass = _create(client, admin_headers, "/grading/classes", {"grade_level": "9", "section": "Luna"})
    student = _create(client, admin_headers, "/grading/students", {"fname": "Jose", "lname": "Garcia"})
    body = {
        "class_id": klass["class_id"],
        "school_year_id": year["school_year_id"],
        "month": 6,
        "records": [
            {"student_id": student["student_id"], "day": 3, "status": "P"},
            {"student_id": student["student_id"], "day": 4, "status": "A"},
        ],
    }

    response = client.post("/grading/attendance/batch", json=body, headers=teacher_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Updated 2 attendance records"
    assert {row["action"] for row in response.json()["records"]} == {"updated"}

    body["records"] = [
        {"student_id": student["student_id"], "day": 3, "status": "L"},
        {"student_id": student["student_id"], "day": 4, "status": ""},
    ]
    client.post("/grading/attendance/batch", json=body, headers=teacher_headers)

    rows = client.get(
        "/grading/attendance", params={"class_id": klass["class_id"]}, headers=teacher_headers
    ).json()
    assert [(row["day"], row["status"]) for row in rows] == [(3, "L")]

    body["month"] = 13
    assert client.post("/grading/attendance/batch", json=body, headers=teacher_headers).status_code == 400


def test_list_filters_are_whitelisted(client, admin_headers):
    _create(client, admin_headers, "/grading/students", {"fname": "Ana", "lname": "Lopez", "gender": "F"})
    _create(client, admin_headers, "/grading/students", {"fname": "Ben", "lname": "Diaz", "gender": "M"})

    female = client.get("/grading/students", params={"gender": "F"}, headers=admin_headers).json()
    assert [row["fname"] for row in female] == ["Ana"]

    bad = client.get("/grading/students", params={"password": "x"}, headers=admin_headers)
    assert bad.status_code == 400


def test_teachers_cannot_manage_school_structure(client, teacher_headers):
    assert client.get("/grading/subjects", headers=teacher_headers).status_code == 200
    assert client.post(
        "/grading/subjects", json={"subject_name": "Science"}, headers=teacher_headers
    ).status_code == 403


def test_system_access_scopes_routes(client, admin_headers):
    _, headers = approved_user(client, admin_headers, "eval@school.edu.ph", system_access="evaluation")

    assert client.get("/grading/subjects", headers=headers).status_code == 403
    assert client.get("/evaluation/evaluations", headers=headers).status_code == 200


def test_evaluations_record_the_evaluator(client, admin_headers):
    created = client.post(
        "/evaluation/evaluations",
        json={"teacher_email": "teacher@school.edu.ph", "score": 4.5, "class_code": "MATH7"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    evaluation = created.json()
    assert evaluation["evaluator_email"] == "admin@school.edu.ph"
    assert evaluation["created_at"] is not None

    listing = client.get(
        "/evaluation/evaluations", params={"teacher_email": "teacher@school.edu.ph"}, headers=admin_headers
    )
    assert [row["evaluation_id"] for row in listing.json()] == [evaluation["evaluation_id"]]

    updated = client.put(
        f"/evaluation/evaluations/{evaluation['evaluation_id']}", json={"remarks": "Clear lesson"}, headers=admin_headers
    )
    assert updated.json()["remarks"] == "Clear lesson"
    assert client.delete(f"/evaluation/evaluations/{evaluation['evaluation_id']}", headers=admin_headers).status_code == 200


def _grading_setup(client, headers):
    school_year = _create(client, headers, "/grading/school-years", {"school_year": "2024-2025"})
    subject = _create(client, headers, "/grading/subjects", {"subject_name": "Science"})
    klass = _create(
        client,
        headers,
        "/grading/classes",
        {"grade_level": "8", "section": "Mabini", "school_year_id": school_year["school_year_id"]},
    )
    boy = _create(client, headers, "/grading/students", {"fname": "Paolo", "lname": "Aquino", "gender": "M"})
    girl = _create(client, headers, "/grading/students", {"fname": "Bea", "lname": "Santos", "gender": "F"})
    for student in (boy, girl):
        enrolled = client.post(
            f"/grading/classes/{klass['class_id']}/students",
            json={"student_id": student["student_id"]},
            headers=headers,
        )
        assert enrolled.status_code == 201
    return school_year, subject, klass, boy, girl


def _criteria_body(subject, school_year, written, performance, quarterly):
    return {
        "subject_id": subject["subject_id"],
        "school_year_id": school_year["school_year_id"],
        "written_works_percentage": written,
        "performance_tasks_percentage": performance,
        "quarterly_assessment_percentage": quarterly,
    }


def test_grading_criteria_are_saved_per_subject_and_school_year(client, admin_headers, teacher_headers):
    school_year, subject, _, _, _ = _grading_setup(client, admin_headers)
    lookup = f"/grading/grading-criteria/{subject['subject_id']}/{school_year['school_year_id']}"

    missing = client.get(lookup, headers=teacher_headers).json()
    assert missing["exists"] is False
    assert missing["written_works_percentage"] == 0

    unbalanced = client.post(
        "/grading/grading-criteria", json=_criteria_body(subject, school_year, 50, 40, 20), headers=admin_headers
    )
    assert unbalanced.status_code == 400
    forbidden = client.post(
        "/grading/grading-criteria", json=_criteria_body(subject, school_year, 40, 40, 20), headers=teacher_headers
    )
    assert forbidden.status_code == 403

    created = _create(client, admin_headers, "/grading/grading-criteria", _criteria_body(subject, school_year, 40, 40, 20))
    replaced = _create(client, admin_headers, "/grading/grading-criteria", _criteria_body(subject, school_year, 30, 50, 20))
    assert replaced["criteria_id"] == created["criteria_id"]

    found = client.get(lookup, headers=teacher_headers).json()
    assert found["exists"] is True
    assert found["performance_tasks_percentage"] == 50

    bad_update = client.put(
        f"/grading/grading-criteria/{created['criteria_id']}",
        json={"written_works_percentage": 35},
        headers=admin_headers,
    )
    assert bad_update.status_code == 400
    assert client.get(f"/grading/grading-criteria/999/{school_year['school_year_id']}", headers=admin_headers).status_code == 404


def test_computed_grades_weigh_activity_categories(client, admin_headers, teacher_headers):
    school_year, subject, klass, boy, girl = _grading_setup(client, admin_headers)
    query = {"class_id": klass["class_id"], "subject_id": subject["subject_id"], "quarter": 1}

    assert client.get("/grading/grades/computed", params=query, headers=teacher_headers).status_code == 404

    _create(client, admin_headers, "/grading/grading-criteria", _criteria_body(subject, school_year, 40, 40, 20))
    activities = {}
    for activity_type, max_score in (("written_works", 20), ("performance_tasks", 50), ("quarterly_assessment", 100)):
        activities[activity_type] = _create(
            client,
            teacher_headers,
            "/grading/activities",
            {
                "class_id": klass["class_id"],
                "subject_id": subject["subject_id"],
                "title": activity_type.replace("_", " ").title(),
                "activity_type": activity_type,
                "max_score": max_score,
                "quarter": 1,
            },
        )["activity_id"]
    scores = {
        "written_works": [(boy, 15), (girl, 20)],
        "performance_tasks": [(boy, 40)],
        "quarterly_assessment": [(boy, 90), (girl, 50)],
    }
    for activity_type, entries in scores.items():
        saved = client.put(
            f"/grading/activities/{activities[activity_type]}/scores",
            json={"scores": [{"student_id": s["student_id"], "score": score} for s, score in entries]},
            headers=teacher_headers,
        )
        assert saved.status_code == 200

    response = client.get("/grading/grades/computed", params=query, headers=teacher_headers)

    assert response.status_code == 200
    by_student = {row["student_id"]: row for row in response.json()["students"]}
    assert by_student[boy["student_id"]]["written_works"] == 75.0
    assert by_student[boy["student_id"]]["quarterly_grade"] == 80.0
    assert by_student[girl["student_id"]]["performance_tasks"] == 0.0
    assert by_student[girl["student_id"]]["quarterly_grade"] == 50.0


def test_grade_rankings_share_rank_on_ties(client, admin_headers, teacher_headers):
    school_year, subject, klass, boy, girl = _grading_setup(client, admin_headers)
    third = _create(client, admin_headers, "/grading/students", {"fname": "Carlo", "lname": "Lim", "gender": "M"})
    grades = [(boy, 90), (boy, 81), (girl, 85), (third, 85)]
    for student, value in grades:
        _create(
            client,
            teacher_headers,
            "/grading/grades",
            {
                "student_id": student["student_id"],
                "class_id": klass["class_id"],
                "subject_id": subject["subject_id"],
                "quarter": 1,
                "grade": value,
            },
        )

    response = client.get(
        "/grading/grades/rankings",
        params={"school_year_id": school_year["school_year_id"], "quarter": 1},
        headers=teacher_headers,
    )

    assert response.status_code == 200
    ranking = [(row["student_id"], row["average_grade"], row["rank"]) for row in response.json()]
    assert ranking[0] == (boy["student_id"], 85.5, 1)
    assert {(student_id, rank) for student_id, _, rank in ranking[1:]} == {
        (girl["student_id"], 2),
        (third["student_id"], 2),
    }
    other_quarter = client.get(
        "/grading/grades/rankings",
        params={"school_year_id": school_year["school_year_id"], "quarter": 2},
        headers=teacher_headers,
    )
    assert other_quarter.json() == []


def test_attendance_summary_by_gender(client, admin_headers, teacher_headers):
    school_year, _, klass, boy, girl = _grading_setup(client, admin_headers)
    batch = {
        "class_id": klass["class_id"],
        "school_year_id": school_year["school_year_id"],
        "month": 6,
        "records": [
            {"student_id": boy["student_id"], "day": 3, "status": "P"},
            {"student_id": girl["student_id"], "day": 3, "status": "A"},
            {"student_id": boy["student_id"], "day": 4, "status": "L"},
            {"student_id": girl["student_id"], "day": 4, "status": "P"},
        ],
    }
    assert client.post("/grading/attendance/batch", json=batch, headers=teacher_headers).status_code == 200
    path = f"/grading/attendance/summary/{klass['class_id']}/6"

    response = client.get(path, params={"school_year_id": school_year["school_year_id"]}, headers=teacher_headers)

    assert response.status_code == 200
    assert response.json() == {
        "summary": {
            "male": {"present": 1, "absent": 0, "late": 1},
            "female": {"present": 1, "absent": 1, "late": 0},
        },
        "total_days": 2,
    }
    assert client.get(path, headers=teacher_headers).status_code == 400
