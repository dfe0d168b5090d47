"""Quiz submission reconciliation.

Collects a course's quiz submissions and merges the two stored answer shapes
(selected choice, free text) into a single tagged answer list per submission,
with student names and quiz titles resolved for display.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from coursehub.models import (
    Week,
    Module,
    Quiz,
    Question,
    QuizSubmission,
    SubmittedChoiceAnswer,
    SubmittedTextAnswer,
    User,
)

logger = logging.getLogger(__name__)

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_QUIZ = "Unknown Quiz"


@dataclass(frozen=True)
class SubmittedAnswer:
    """One answer of a submission: either a selected choice or free text."""

    submission_id: UUID
    question_id: UUID
    selected_answer_id: Optional[UUID] = None
    submitted_text: Optional[str] = None

    @property
    def kind(self) -> str:
        return "choice" if self.selected_answer_id is not None else "text"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": str(self.question_id),
            "selectedAnswerId": str(self.selected_answer_id) if self.selected_answer_id is not None else None,
            "submittedText": self.submitted_text if self.selected_answer_id is None else None,
        }


def is_choice_correct(selected_answer_id: Optional[UUID], correct_answer_ids: Iterable[UUID]) -> bool:
    """A selected option is correct iff it is the question's canonical answer.

    Quiz writes reject questions with more than one correct option, so
    `correct_answer_ids` holds at most one id.
    """
    return selected_answer_id is not None and selected_answer_id in set(correct_answer_ids)


def course_quiz_ids(db: Session, course_id: UUID, quiz_id: Optional[UUID] = None) -> List[UUID]:
    """course -> weeks -> modules -> non-deleted quizzes.

    Any empty hop short-circuits to an empty list.
    """
    week_ids = [row.id for row in db.query(Week.id).filter(Week.course_id == course_id).all()]
    if not week_ids:
        return []

    module_ids = [row.id for row in db.query(Module.id).filter(Module.week_id.in_(week_ids)).all()]
    if not module_ids:
        return []

    query = db.query(Quiz.id).filter(
        Quiz.module_id.in_(module_ids),
        Quiz.deleted_at.is_(None)
    )
    if quiz_id is not None:
        query = query.filter(Quiz.id == quiz_id)
    return [row.id for row in query.all()]


def merged_answers(db: Session, submission_ids: List[UUID]) -> Dict[UUID, List[SubmittedAnswer]]:
    """Union choice and text answers, keyed by submission, in question order."""
    if not submission_ids:
        return {}

    choice_rows = db.query(SubmittedChoiceAnswer).filter(
        SubmittedChoiceAnswer.submission_id.in_(submission_ids)
    ).all()
    text_rows = db.query(SubmittedTextAnswer).filter(
        SubmittedTextAnswer.submission_id.in_(submission_ids)
    ).all()

    question_ids = {row.question_id for row in choice_rows} | {row.question_id for row in text_rows}
    order = {}
    if question_ids:
        order = {
            row.id: row.order_index
            for row in db.query(Question.id, Question.order_index).filter(Question.id.in_(question_ids)).all()
        }

    merged: Dict[UUID, List[SubmittedAnswer]] = defaultdict(list)
    for row in choice_rows:
        if row.selected_answer_id is None:
            # option was removed after submission
            logger.warning("Skipping choice answer %s with no selected option", row.id)
            continue
        merged[row.submission_id].append(SubmittedAnswer(
            submission_id=row.submission_id,
            question_id=row.question_id,
            selected_answer_id=row.selected_answer_id,
        ))
    for row in text_rows:
        merged[row.submission_id].append(SubmittedAnswer(
            submission_id=row.submission_id,
            question_id=row.question_id,
            submitted_text=row.submitted_text if row.submitted_text is not None else "",
        ))

    for answers in merged.values():
        answers.sort(key=lambda a: order.get(a.question_id, 0))
    return merged


def student_names(db: Session, user_ids: set) -> Dict[UUID, str]:
    if not user_ids:
        return {}
    rows = db.query(User.id, User.full_name).filter(User.id.in_(user_ids)).all()
    return {row.id: row.full_name for row in rows if row.full_name}


def quiz_titles(db: Session, quiz_ids: set) -> Dict[UUID, str]:
    if not quiz_ids:
        return {}
    rows = db.query(Quiz.id, Quiz.title).filter(
        Quiz.id.in_(quiz_ids),
        Quiz.deleted_at.is_(None)
    ).all()
    return {row.id: row.title for row in rows if row.title}


def serialize_submission(
    submission: QuizSubmission,
    course_id: UUID,
    answers: List[SubmittedAnswer],
    student_name: str,
    quiz_title: str,
) -> Dict[str, Any]:
    return {
        "submissionId": str(submission.id),
        "quizId": str(submission.quiz_id),
        "courseId": str(course_id),
        "studentId": str(submission.user_id),
        "studentName": student_name,
        "quizTitle": quiz_title,
        "score": float(submission.score) if submission.score is not None else None,
        "status": submission.status,
        "answers": [a.to_dict() for a in answers],
        "submittedAt": submission.submitted_at.isoformat() if submission.submitted_at else None,
        "gradedAt": submission.graded_at.isoformat() if submission.graded_at else None,
        "instructorFeedback": submission.instructor_feedback,
    }


def course_submissions(db: Session, course_id: UUID, quiz_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
    """Return display-ready submissions for a course, newest first."""
    quiz_ids = course_quiz_ids(db, course_id, quiz_id)
    if not quiz_ids:
        return []

    submissions = db.query(QuizSubmission).filter(
        QuizSubmission.quiz_id.in_(quiz_ids)
    ).order_by(QuizSubmission.submitted_at.desc(), QuizSubmission.id).all()
    if not submissions:
        return []

    answers = merged_answers(db, [s.id for s in submissions])
    names = student_names(db, {s.user_id for s in submissions})
    titles = quiz_titles(db, {s.quiz_id for s in submissions})

    logger.debug("Reconciled %d submissions for course %s", len(submissions), course_id)

    return [
        serialize_submission(
            submission,
            course_id,
            answers.get(submission.id, []),
            names.get(submission.user_id, UNKNOWN_STUDENT),
            titles.get(submission.quiz_id, UNKNOWN_QUIZ),
        )
        for submission in submissions
    ]
