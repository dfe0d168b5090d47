import uuid

import pytest

from coursehub.models import SubmittedChoiceAnswer, SubmittedTextAnswer
from coursehub.services.quiz_reconciler import (
    SubmittedAnswer,
    course_quiz_ids,
    course_submissions,
    is_choice_correct,
    merged_answers,
)


@pytest.fixture
def graded_course(factory, instructor):
    course = factory.course(title="Quizzing", instructor=instructor)
    week = factory.week(course)
    module = factory.module(week)
    quiz = factory.quiz(module, title="Checkpoint", questions=[
        ("Pick one", "multiple_choice", [("A", True), ("B", False)]),
        ("Explain", "text", []),
    ])
    return course, module, quiz


def _questions(quiz):
    return sorted(quiz.questions, key=lambda q: q.order_index)


def test_merged_answers_have_exactly_one_value(db, factory, graded_course, learner):
    _, _, quiz = graded_course
    choice_q, text_q = _questions(quiz)
    correct = next(a for a in choice_q.answers if a.is_correct)
    submission = factory.submission(learner, quiz, choices=[(choice_q, correct)], texts=[(text_q, "Because")])

    answers = merged_answers(db, [submission.id])[submission.id]

    assert [a.question_id for a in answers] == [choice_q.id, text_q.id]
    for answer in answers:
        data = answer.to_dict()
        assert (data["selectedAnswerId"] is None) != (data["submittedText"] is None)
    assert answers[0].kind == "choice"
    assert answers[1].to_dict()["submittedText"] == "Because"


def test_null_text_becomes_empty_string(db, factory, graded_course, learner):
    _, _, quiz = graded_course
    _, text_q = _questions(quiz)
    submission = factory.submission(learner, quiz)
    db.add(SubmittedTextAnswer(submission_id=submission.id, question_id=text_q.id, submitted_text=None))
    db.commit()

    answers = merged_answers(db, [submission.id])[submission.id]

    assert answers[0].to_dict() == {"questionId": str(text_q.id), "selectedAnswerId": None, "submittedText": ""}


def test_choice_without_selection_is_skipped(db, factory, graded_course, learner):
    _, _, quiz = graded_course
    choice_q, _ = _questions(quiz)
    submission = factory.submission(learner, quiz)
    db.add(SubmittedChoiceAnswer(submission_id=submission.id, question_id=choice_q.id, selected_answer_id=None))
    db.commit()

    assert merged_answers(db, [submission.id]) == {}


def test_course_without_weeks_short_circuits(db, factory):
    course = factory.course()

    assert course_quiz_ids(db, course.id) == []
    assert course_submissions(db, course.id) == []


def test_course_without_modules_short_circuits(db, factory):
    course = factory.course()
    factory.week(course)

    assert course_quiz_ids(db, course.id) == []


def test_soft_deleted_quiz_submissions_are_excluded(db, factory, graded_course, learner):
    course, module, quiz = graded_course
    removed = factory.quiz(module, title="Old", deleted=True)
    factory.submission(learner, removed)
    kept = factory.submission(learner, quiz)

    submissions = course_submissions(db, course.id)

    assert [s["submissionId"] for s in submissions] == [str(kept.id)]


def test_submissions_are_newest_first_and_resolved(db, factory, graded_course, learner):
    course, _, quiz = graded_course
    anonymous = factory.user(full_name=None, email="anon@example.com")
    older = factory.submission(learner, quiz)
    newer = factory.submission(anonymous, quiz, score=80, status="graded")

    submissions = course_submissions(db, course.id)

    assert [s["submissionId"] for s in submissions] == [str(newer.id), str(older.id)]
    assert submissions[0]["studentName"] == "Unknown Student"
    assert submissions[0]["score"] == 80.0
    assert submissions[1]["studentName"] == "Ada Learner"
    assert submissions[1]["quizTitle"] == "Checkpoint"
    assert submissions[1]["courseId"] == str(course.id)
    assert submissions[1]["score"] is None
    assert submissions[1]["answers"] == []


def test_filter_by_quiz(db, factory, graded_course, learner):
    course, module, quiz = graded_course
    other = factory.quiz(module, title="Other")
    factory.submission(learner, quiz)
    wanted = factory.submission(learner, other)

    submissions = course_submissions(db, course.id, other.id)

    assert [s["submissionId"] for s in submissions] == [str(wanted.id)]
    assert course_submissions(db, course.id, uuid.uuid4()) == []


def test_other_course_quiz_is_not_listed(db, factory, graded_course, learner):
    course, _, _ = graded_course
    other_course = factory.course(title="Elsewhere")
    other_quiz = factory.quiz(factory.module(factory.week(other_course)))
    factory.submission(learner, other_quiz)

    assert course_submissions(db, course.id) == []
    assert course_submissions(db, course.id, other_quiz.id) == []


def test_is_choice_correct():
    right, wrong = uuid.uuid4(), uuid.uuid4()

    assert is_choice_correct(right, [right]) is True
    assert is_choice_correct(wrong, [right]) is False
    assert is_choice_correct(None, [right]) is False


def test_submitted_answer_text_is_hidden_for_choices():
    answer = SubmittedAnswer(uuid.uuid4(), uuid.uuid4(), selected_answer_id=uuid.uuid4(), submitted_text="stray")
    assert answer.to_dict()["submittedText"] is None


def test_submissions_endpoint(client, instructor_headers, factory, graded_course, learner):
    course, _, quiz = graded_course
    factory.submission(learner, quiz)

    response = client.get(f"/instructor/quizzes/{course.id}/submissions", headers=instructor_headers)

    assert response.status_code == 200
    assert len(response.json()["submissions"]) == 1

    response = client.get(
        f"/instructor/quizzes/{course.id}/submissions",
        params={"quizId": str(uuid.uuid4())},
        headers=instructor_headers,
    )
    assert response.json() == {"submissions": []}
