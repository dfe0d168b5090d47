from coursehub.models import Course


def test_create_course_as_draft(client, instructor_headers, instructor):
    response = client.post("/instructor/courses", json={
        "title": "New course",
        "description": "Fresh",
        "objectives": ["One", "Two"],
        "total_duration": 120,
    }, headers=instructor_headers)

    assert response.status_code == 201
    course = response.json()["course"]
    assert course["is_active"] is False
    assert course["instructor_id"] == str(instructor.id)
    assert course["objectives"] == ["One", "Two"]


def test_create_course_requires_title_and_description(client, instructor_headers):
    response = client.post("/instructor/courses", json={"title": "Only title"}, headers=instructor_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Title and description are required"


def test_list_courses_with_counts_and_filters(client, instructor_headers, factory, instructor, learner):
    live = factory.course(title="Live course", instructor=instructor)
    factory.course(title="Draft course", is_active=False)
    week = factory.week(live)
    factory.module(week)
    factory.module(week)
    factory.enrollment(learner, live)

    body = client.get("/instructor/courses", params={"status": "active"}, headers=instructor_headers).json()

    assert body["pagination"] == {"total": 1, "page": 1, "limit": 10, "totalPages": 1}
    row = body["courses"][0]
    assert row["title"] == "Live course"
    assert row["weeks"] == 1
    assert row["modules"] == 2
    assert row["attendees"] == 1
    assert row["instructor"] == "Grace Instructor"

    searched = client.get("/instructor/courses", params={"search": "draft"}, headers=instructor_headers).json()
    assert [c["title"] for c in searched["courses"]] == ["Draft course"]


def test_get_update_course(client, instructor_headers, factory):
    course = factory.course(title="Editable", is_active=False, total_duration=61)

    detail = client.get(f"/instructor/courses/{course.id}", headers=instructor_headers).json()
    assert detail["name"] == "Editable"
    assert detail["duration"] == "2 weeks"
    assert detail["status"] == "draft"

    updated = client.put(f"/instructor/courses/{course.id}", json={"is_active": True}, headers=instructor_headers).json()
    assert updated["course"]["is_active"] is True
    assert updated["course"]["title"] == "Editable"


def test_delete_course(client, instructor_headers, factory, learner, db):
    busy = factory.course(title="Busy")
    factory.enrollment(learner, busy)
    idle = factory.course(title="Idle")

    refused = client.delete(f"/instructor/courses/{busy.id}", headers=instructor_headers)
    assert refused.status_code == 400
    assert refused.json()["detail"] == "Cannot delete course with active enrollments"

    assert client.delete(f"/instructor/courses/{idle.id}", headers=instructor_headers).status_code == 200
    db.expire_all()
    assert [c.title for c in db.query(Course).all()] == ["Busy"]


def test_missing_course_is_not_found(client, instructor_headers):
    response = client.get("/instructor/courses/00000000-0000-0000-0000-000000000000", headers=instructor_headers)
    assert response.status_code == 404


def test_dashboard(client, instructor_headers, factory, learner):
    course = factory.course(title="Popular")
    factory.enrollment(learner, course)

    body = client.get("/instructor/dashboard", headers=instructor_headers).json()

    assert body["stats"]["totalCourses"] == 1
    assert body["stats"]["totalEnrollments"] == 1
    assert body["courseEnrollmentCounts"] == {str(course.id): 1}
    assert body["recentCourses"][0]["enrollments"] == 1
