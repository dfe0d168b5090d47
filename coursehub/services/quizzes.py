"""Quiz authoring, taking and grading."""
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from coursehub.core.errors import NotFoundError, ValidationError
from coursehub.models import (
    Week,
    Module,
    Quiz,
    Question,
    Answer,
    QuizSubmission,
    SubmittedChoiceAnswer,
    SubmittedTextAnswer,
)
from coursehub.models.quiz import QUESTION_MULTIPLE_CHOICE, QUESTION_TEXT, STATUS_GRADED, STATUS_SUBMITTED
from coursehub.services.quiz_reconciler import (
    UNKNOWN_QUIZ,
    UNKNOWN_STUDENT,
    course_quiz_ids,
    is_choice_correct,
    merged_answers,
    quiz_titles,
    serialize_submission,
    student_names,
)

logger = logging.getLogger(__name__)

QUESTION_TYPES = {QUESTION_MULTIPLE_CHOICE, QUESTION_TEXT}


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_quiz(quiz: Quiz, include_correct: bool = True) -> Dict[str, Any]:
    questions = []
    for q in sorted(quiz.questions, key=lambda q: q.order_index):
        answers = []
        for a in q.answers:
            answer = {"id": str(a.id), "answer_text": a.answer_text}
            if include_correct:
                answer["is_correct"] = a.is_correct
            answers.append(answer)
        questions.append({
            "id": str(q.id),
            "question_text": q.question_text,
            "question_type": q.question_type,
            "order_index": q.order_index,
            "answers": answers,
        })
    return {
        "id": str(quiz.id),
        "title": quiz.title,
        "module_id": str(quiz.module_id),
        "created_at": _iso(quiz.created_at),
        "questions": questions,
    }


def _active_quiz(db: Session, quiz_id: UUID, course_id: Optional[UUID] = None) -> Quiz:
    query = db.query(Quiz).filter(Quiz.id == quiz_id, Quiz.deleted_at.is_(None))
    if course_id is not None:
        query = query.join(Module, Quiz.module_id == Module.id).join(Week, Module.week_id == Week.id).filter(
            Week.course_id == course_id
        )
    quiz = query.first()
    if not quiz:
        raise NotFoundError("Quiz not found")
    return quiz


def _validate_questions(questions: Any) -> List[Dict[str, Any]]:
    """Check question payloads before anything is written.

    A multiple-choice question needs options and exactly one option equal to
    correctAnswer; several matching options would make scoring ambiguous.
    """
    if not isinstance(questions, list):
        raise ValidationError("questions must be a list")

    for position, question in enumerate(questions, 1):
        if not isinstance(question, dict) or not question.get("text"):
            raise ValidationError(f"Question {position}: text is required")
        question_type = question.get("type") or QUESTION_MULTIPLE_CHOICE
        if question_type not in QUESTION_TYPES:
            raise ValidationError(f"Question {position}: invalid type {question_type}")
        if question_type != QUESTION_MULTIPLE_CHOICE:
            continue

        options = question.get("options")
        if not isinstance(options, list) or not options:
            raise ValidationError(f"Question {position}: options are required for multiple choice")
        matches = sum(1 for option in options if option == question.get("correctAnswer"))
        if matches == 0:
            raise ValidationError(f"Question {position}: correctAnswer must match one of the options")
        if matches > 1:
            raise ValidationError(f"Question {position}: multiple options match correctAnswer")
    return questions


def _add_questions(db: Session, quiz: Quiz, questions: List[Dict[str, Any]]) -> None:
    for position, q in enumerate(questions, 1):
        question_type = q.get("type") or QUESTION_MULTIPLE_CHOICE
        question = Question(
            quiz_id=quiz.id,
            question_text=q["text"],
            question_type=question_type,
            order_index=position,
        )
        db.add(question)
        db.flush()
        if question_type == QUESTION_MULTIPLE_CHOICE:
            for option in q["options"]:
                db.add(Answer(
                    question_id=question.id,
                    answer_text=option,
                    is_correct=option == q.get("correctAnswer"),
                ))


def list_course_quizzes(db: Session, course_id: UUID) -> List[Dict[str, Any]]:
    quiz_ids = course_quiz_ids(db, course_id)
    if not quiz_ids:
        return []
    quizzes = db.query(Quiz).filter(Quiz.id.in_(quiz_ids)).order_by(Quiz.created_at.desc()).all()
    return [serialize_quiz(q) for q in quizzes]


def create_quiz(db: Session, course_id: UUID, data: Dict[str, Any]) -> Dict[str, Any]:
    title = data.get("title")
    module_id = data.get("moduleId")
    questions = data.get("questions")
    if not title or not module_id or not isinstance(questions, list):
        raise ValidationError("Title, moduleId, and questions array are required")
    _validate_questions(questions)

    try:
        module_uuid = UUID(str(module_id))
    except ValueError:
        raise ValidationError(f"Invalid moduleId: {module_id}")
    module = db.query(Module).join(Week, Module.week_id == Week.id).filter(
        Module.id == module_uuid,
        Week.course_id == course_id
    ).first()
    if not module:
        raise NotFoundError("Module not found")

    quiz = Quiz(title=title, module_id=module.id, created_at=datetime.utcnow())
    db.add(quiz)
    db.flush()
    _add_questions(db, quiz, questions)
    db.commit()
    db.refresh(quiz)
    logger.info("Created quiz %s with %d questions on module %s", quiz.id, len(questions), module.id)
    return serialize_quiz(quiz)


def update_quiz(db: Session, course_id: UUID, quiz_id: UUID, data: Dict[str, Any]) -> Dict[str, Any]:
    """Update the title and/or replace all questions of an active quiz."""
    title = data.get("title")
    questions = data.get("questions")
    if not title and questions is None:
        raise ValidationError("At least one field (title or questions) is required for update")

    quiz = _active_quiz(db, quiz_id, course_id)
    if questions is not None:
        _validate_questions(questions)

    if title:
        quiz.title = title
    if questions is not None:
        quiz.questions.clear()
        db.flush()
        _add_questions(db, quiz, questions)

    db.commit()
    db.refresh(quiz)
    return serialize_quiz(quiz)


def delete_quiz(db: Session, course_id: UUID, quiz_id: UUID) -> None:
    quiz = _active_quiz(db, quiz_id, course_id)
    quiz.deleted_at = datetime.utcnow()
    db.commit()
    logger.info("Soft-deleted quiz %s", quiz_id)


def get_quiz_for_learner(db: Session, quiz_id: UUID) -> Dict[str, Any]:
    return serialize_quiz(_active_quiz(db, quiz_id), include_correct=False)


def submit_quiz(db: Session, quiz_id: UUID, user_id: UUID, answers: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Record a submission and score its multiple-choice questions.

    Quizzes with free-text questions stay `submitted` with no score until an
    instructor grades them.
    """
    quiz = _active_quiz(db, quiz_id)
    questions = {q.id: q for q in quiz.questions}
    if not questions:
        raise ValidationError("Quiz has no questions")

    choice_rows = []
    text_rows = []
    seen = set()
    for answer in answers:
        question = questions.get(answer["questionId"])
        if question is None:
            raise ValidationError(f"Invalid question id: {answer['questionId']}")
        if question.id in seen:
            raise ValidationError(f"Duplicate answer for question {question.id}")
        seen.add(question.id)

        selected = answer.get("selectedAnswerId")
        text = answer.get("submittedText")
        if (selected is None) == (text is None):
            raise ValidationError(
                f"Question {question.id}: provide exactly one of selectedAnswerId or submittedText"
            )
        if question.question_type == QUESTION_MULTIPLE_CHOICE:
            if selected is None:
                raise ValidationError(f"Question {question.id}: selectedAnswerId is required")
            if selected not in {a.id for a in question.answers}:
                raise ValidationError(f"Invalid answer id: {selected}")
            choice_rows.append((question, selected))
        else:
            if text is None:
                raise ValidationError(f"Question {question.id}: submittedText is required")
            text_rows.append((question, text))

    mc_questions = [q for q in questions.values() if q.question_type == QUESTION_MULTIPLE_CHOICE]
    correct = sum(
        1 for question, selected in choice_rows
        if is_choice_correct(selected, [a.id for a in question.answers if a.is_correct])
    )
    needs_review = any(q.question_type != QUESTION_MULTIPLE_CHOICE for q in questions.values())

    now = datetime.utcnow()
    submission = QuizSubmission(user_id=user_id, quiz_id=quiz.id, submitted_at=now)
    if needs_review:
        submission.status = STATUS_SUBMITTED
    else:
        submission.status = STATUS_GRADED
        submission.graded_at = now
        submission.score = round(correct / len(mc_questions) * 100, 2) if mc_questions else 0
    db.add(submission)
    db.flush()

    for question, selected in choice_rows:
        db.add(SubmittedChoiceAnswer(submission_id=submission.id, question_id=question.id, selected_answer_id=selected))
    for question, text in text_rows:
        db.add(SubmittedTextAnswer(submission_id=submission.id, question_id=question.id, submitted_text=text))
    db.commit()
    db.refresh(submission)

    logger.info("User %s submitted quiz %s (%d/%d correct)", user_id, quiz.id, correct, len(mc_questions))
    return {
        "submissionId": str(submission.id),
        "quizId": str(quiz.id),
        "status": submission.status,
        "score": float(submission.score) if submission.score is not None else None,
        "correctAnswers": correct,
        "totalQuestions": len(questions),
    }


def grade_submission(db: Session, course_id: UUID, submission_id: UUID, score: float, feedback: Optional[str]) -> Dict[str, Any]:
    if not math.isfinite(score) or score < 0 or score > 100:
        raise ValidationError("score must be between 0 and 100")

    submission = db.query(QuizSubmission).filter(QuizSubmission.id == submission_id).first()
    if not submission or submission.quiz_id not in course_quiz_ids(db, course_id):
        raise NotFoundError("Submission not found")

    submission.score = score
    submission.instructor_feedback = feedback
    submission.status = STATUS_GRADED
    submission.graded_at = datetime.utcnow()
    db.commit()
    db.refresh(submission)

    return serialize_submission(
        submission,
        course_id,
        merged_answers(db, [submission.id]).get(submission.id, []),
        student_names(db, {submission.user_id}).get(submission.user_id, UNKNOWN_STUDENT),
        quiz_titles(db, {submission.quiz_id}).get(submission.quiz_id, UNKNOWN_QUIZ),
    )
