"""Quiz models."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from coursehub.db.base import Base


QUESTION_MULTIPLE_CHOICE = "multiple_choice"
QUESTION_TEXT = "text"

STATUS_SUBMITTED = "submitted"
STATUS_GRADED = "graded"


class Quiz(Base):
    """Quiz attached to an evaluative module. Soft-deleted via deleted_at."""

    __tablename__ = "quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    module_id = Column(Uuid, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime)

    # Relationships
    module = relationship("Module", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.order_index",
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(30), nullable=False, default=QUESTION_MULTIPLE_CHOICE)
    order_index = Column(Integer, nullable=False)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")
    answers = relationship("Answer", back_populates="question", cascade="all, delete-orphan")


class Answer(Base):
    """Selectable option of a multiple-choice question."""

    __tablename__ = "answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    answer_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    # Relationships
    question = relationship("Question", back_populates="answers")


class QuizSubmission(Base):
    __tablename__ = "quiz_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Numeric(5, 2))  # percentage, null until graded
    status = Column(String(20), nullable=False, default=STATUS_SUBMITTED)
    submitted_at = Column(DateTime, default=datetime.utcnow)
    graded_at = Column(DateTime)
    instructor_feedback = Column(Text)


class SubmittedChoiceAnswer(Base):
    __tablename__ = "user_quiz_answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id = Column(Uuid, ForeignKey("quiz_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    selected_answer_id = Column(Uuid, ForeignKey("answers.id", ondelete="SET NULL"))


class SubmittedTextAnswer(Base):
    __tablename__ = "user_quiz_text_answers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id = Column(Uuid, ForeignKey("quiz_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    submitted_text = Column(Text)
