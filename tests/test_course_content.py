import pytest

from coursehub.models import Module


def _url(course):
    return f"/instructor/courses/{course.id}/content"


@pytest.fixture
def course(factory, instructor):
    return factory.course(title="Authoring 101", instructor=instructor, is_active=False, total_duration=90)


def test_content_for_course_without_weeks(client, instructor_headers, course):
    response = client.get(_url(course), headers=instructor_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["weeks"] == []
    assert body["modules"] == []
    assert body["course"]["status"] == "draft"
    assert body["course"]["duration"] == "2 weeks"


def test_content_for_missing_course(client, instructor_headers):
    response = client.get("/instructor/courses/00000000-0000-0000-0000-000000000000/content", headers=instructor_headers)
    assert response.status_code == 404


def test_create_week(client, instructor_headers, course):
    response = client.post(_url(course), json={
        "type": "week",
        "data": {"title": "Getting started", "weekNumber": 1, "description": "Setup"}
    }, headers=instructor_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Week created successfully"
    assert body["week"]["weekNumber"] == 1
    assert body["week"]["isPublished"] is False
    assert body["week"]["courseId"] == str(course.id)


@pytest.mark.parametrize("data,missing", [
    ({"weekNumber": 1}, "title"),
    ({"title": "No number"}, "weekNumber"),
    ({"title": "", "weekNumber": 1}, "title"),
])
def test_create_week_missing_fields(client, instructor_headers, course, data, missing):
    response = client.post(_url(course), json={"type": "week", "data": data}, headers=instructor_headers)

    assert response.status_code == 400
    assert missing in response.json()["detail"]


def test_create_week_rejects_non_positive_number(client, instructor_headers, course):
    response = client.post(_url(course), json={"type": "week", "data": {"title": "Zero", "weekNumber": 0}}, headers=instructor_headers)
    assert response.status_code == 400


def test_invalid_content_type(client, instructor_headers, course):
    response = client.post(_url(course), json={"type": "lesson", "data": {}}, headers=instructor_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid type specified"


def test_article_module_keeps_markdown(client, instructor_headers, factory, course):
    week = factory.week(course)

    created = client.post(_url(course), json={
        "type": "module",
        "data": {
            "weekId": str(week.id),
            "title": "Read me",
            "contentType": "article",
            "markdownContent": "# Hello",
            "contentUrl": "https://ignored.example.com",
        }
    }, headers=instructor_headers)

    assert created.status_code == 201
    module = created.json()["module"]
    assert module["markdownContent"] == "# Hello"
    assert module["contentUrl"] == ""
    assert module["points"] == 10
    assert module["orderIndex"] == 1
    assert module["isRequired"] is True
    assert module["estimatedReadTime"] is None

    listed = client.get(_url(course), headers=instructor_headers).json()["modules"][0]
    assert listed["markdownContent"] == "# Hello"
    assert listed["contentUrl"] == ""


def test_video_module_keeps_url(client, instructor_headers, factory, course, db):
    week = factory.week(course)

    created = client.post(_url(course), json={
        "type": "module",
        "data": {
            "weekId": str(week.id),
            "title": "Watch me",
            "contentType": "video",
            "markdownContent": "ignored",
            "contentUrl": "https://videos.example.com/1",
            "points": 25,
        }
    }, headers=instructor_headers)

    module = created.json()["module"]
    assert module["contentUrl"] == "https://videos.example.com/1"
    assert module["markdownContent"] == ""
    assert module["points"] == 25

    stored = db.query(Module).one()
    assert stored.content == "https://videos.example.com/1"


def test_module_order_defaults_to_end_of_week(client, instructor_headers, factory, course):
    week = factory.week(course)
    factory.module(week, order_in_week=1)
    factory.module(week, order_in_week=2)

    created = client.post(_url(course), json={
        "type": "module",
        "data": {"weekId": str(week.id), "title": "Third", "contentType": "article"}
    }, headers=instructor_headers)

    assert created.json()["module"]["orderIndex"] == 3


def test_module_requires_fields(client, instructor_headers, factory, course):
    week = factory.week(course)

    response = client.post(_url(course), json={
        "type": "module",
        "data": {"weekId": str(week.id)}
    }, headers=instructor_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: title, contentType"


def test_module_rejects_unknown_content_type(client, instructor_headers, factory, course):
    week = factory.week(course)

    response = client.post(_url(course), json={
        "type": "module",
        "data": {"weekId": str(week.id), "title": "Odd", "contentType": "podcast"}
    }, headers=instructor_headers)

    assert response.status_code == 400


def test_module_week_must_belong_to_course(client, instructor_headers, factory, course):
    other_week = factory.week(factory.course(title="Other"))

    response = client.post(_url(course), json={
        "type": "module",
        "data": {"weekId": str(other_week.id), "title": "Stray", "contentType": "article"}
    }, headers=instructor_headers)

    assert response.status_code == 404


def test_update_week_is_partial(client, instructor_headers, factory, course):
    week = factory.week(course, week_number=1, title="Old", description="Keep me")

    response = client.put(_url(course), json={
        "type": "week",
        "data": {"id": str(week.id), "title": "New"}
    }, headers=instructor_headers)

    assert response.status_code == 200
    body = response.json()["week"]
    assert body["title"] == "New"
    assert body["description"] == "Keep me"
    assert body["weekNumber"] == 1


def test_update_requires_id(client, instructor_headers, course):
    response = client.put(_url(course), json={"type": "week", "data": {"title": "x"}}, headers=instructor_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: id"


def test_update_module_ignores_field_for_other_type(client, instructor_headers, factory, course):
    week = factory.week(course)
    module = factory.module(week, module_type="article", content="# Original")

    response = client.put(_url(course), json={
        "type": "module",
        "data": {"id": str(module.id), "contentUrl": "https://nope.example.com"}
    }, headers=instructor_headers)

    assert response.json()["module"]["markdownContent"] == "# Original"

    response = client.put(_url(course), json={
        "type": "module",
        "data": {"id": str(module.id), "markdownContent": "# Rewritten", "duration": 15}
    }, headers=instructor_headers)

    updated = response.json()["module"]
    assert updated["markdownContent"] == "# Rewritten"
    assert updated["duration"] == 15


def test_quiz_id_excludes_soft_deleted_quizzes(client, instructor_headers, factory, course):
    week = factory.week(course)
    with_quiz = factory.module(week, title="Quizzed", order_in_week=1)
    with_deleted = factory.module(week, title="Deleted quiz", order_in_week=2)
    live = factory.quiz(with_quiz)
    factory.quiz(with_deleted, deleted=True)

    modules = client.get(_url(course), headers=instructor_headers).json()["modules"]

    assert modules[0]["quizId"] == str(live.id)
    assert modules[1]["quizId"] is None


def test_content_requires_instructor(client, learner_headers, course):
    response = client.get(_url(course), headers=learner_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin or instructor access required"


def test_content_requires_token(client, course):
    assert client.get(_url(course)).status_code in (401, 403)
