"""Shared fixtures: in-memory SQLite, a TestClient and row factories."""
import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from coursehub.main import app  # noqa: E402
from coursehub.db.base import Base  # noqa: E402
from coursehub.db.sessions import SessionLocal, engine  # noqa: E402
from coursehub.core.security import create_access_token  # noqa: E402
from coursehub.models import (  # noqa: E402
    User,
    Course,
    Week,
    Module,
    Enrollment,
    ModuleProgress,
    ModuleReview,
    Quiz,
    Question,
    Answer,
    QuizSubmission,
    SubmittedChoiceAnswer,
    SubmittedTextAnswer,
)
from coursehub.services.reviews import reset_review_store  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    reset_review_store()
    yield
    reset_review_store()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


class Factory:
    """Creates committed rows with sensible defaults."""

    def __init__(self, db):
        self.db = db
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def _tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, full_name="Ada Learner", email=None, role="learner", xp=0):
        email = email or f"{full_name.lower().replace(' ', '.')}@example.com"
        return self._save(User(full_name=full_name, email=email, password_hash="x", role=role, xp=xp, created_at=self._tick()))

    def course(self, title="Intro to X", instructor=None, is_active=True, **kwargs):
        kwargs.setdefault("description", "A first course")
        kwargs.setdefault("objectives", ["Learn X"])
        return self._save(Course(
            title=title,
            is_active=is_active,
            instructor_id=instructor.id if instructor else None,
            created_at=self._tick(),
            updated_at=datetime(2024, 2, 1, 9, 30, 0),
            **kwargs
        ))

    def week(self, course, week_number=1, title=None, **kwargs):
        return self._save(Week(
            course_id=course.id,
            week_number=week_number,
            title=title or f"Week {week_number}",
            created_at=self._tick(),
            **kwargs
        ))

    def module(self, week, title="Module", module_type="article", content="# Body", duration=0, order_in_week=None, xp=10):
        return self._save(Module(
            week_id=week.id,
            title=title,
            module_type=module_type,
            content=content,
            duration=duration,
            order_in_week=order_in_week,
            xp=xp,
            created_at=self._tick(),
        ))

    def enrollment(self, user, course):
        return self._save(Enrollment(user_id=user.id, course_id=course.id))

    def complete(self, user, module):
        return self._save(ModuleProgress(user_id=user.id, module_id=module.id, completed_at=self._tick()))

    def review(self, user, module, marked=True):
        return self._save(ModuleReview(user_id=user.id, module_id=module.id, marked_for_review=marked))

    def quiz(self, module, title="Quiz", deleted=False, questions=None):
        quiz = self._save(Quiz(
            module_id=module.id,
            title=title,
            created_at=self._tick(),
            deleted_at=self._tick() if deleted else None,
        ))
        for position, (text, question_type, options) in enumerate(questions or [], 1):
            question = self._save(Question(quiz_id=quiz.id, question_text=text, question_type=question_type, order_index=position))
            for answer_text, is_correct in options:
                self._save(Answer(question_id=question.id, answer_text=answer_text, is_correct=is_correct))
        self.db.refresh(quiz)
        return quiz

    def submission(self, user, quiz, choices=(), texts=(), score=None, status="submitted"):
        submission = self._save(QuizSubmission(
            user_id=user.id,
            quiz_id=quiz.id,
            score=score,
            status=status,
            submitted_at=self._tick(),
        ))
        for question, answer in choices:
            self._save(SubmittedChoiceAnswer(submission_id=submission.id, question_id=question.id, selected_answer_id=answer.id))
        for question, text in texts:
            self._save(SubmittedTextAnswer(submission_id=submission.id, question_id=question.id, submitted_text=text))
        return submission


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def instructor(factory):
    return factory.user(full_name="Grace Instructor", role="instructor")


@pytest.fixture
def instructor_headers(instructor):
    token = create_access_token({"sub": str(instructor.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def learner(factory):
    return factory.user(full_name="Ada Learner")


@pytest.fixture
def learner_headers(learner):
    token = create_access_token({"sub": str(learner.id)})
    return {"Authorization": f"Bearer {token}"}
