"""Learner quiz routes."""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.services import quizzes


router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


class AnswerSubmission(BaseModel):
    question_id: uuid.UUID = Field(alias="questionId")
    selected_answer_id: Optional[uuid.UUID] = Field(default=None, alias="selectedAnswerId")
    submitted_text: Optional[str] = Field(default=None, alias="submittedText")

    class Config:
        populate_by_name = True


class SubmitQuizRequest(BaseModel):
    user_id: uuid.UUID = Field(alias="userId")
    answers: List[AnswerSubmission]

    class Config:
        populate_by_name = True


@router.get("/{quiz_id}")
def get_quiz(quiz_id: uuid.UUID, db: Session = Depends(get_db)):
    """Quiz questions and options, without the answer key."""
    return quizzes.get_quiz_for_learner(db, quiz_id)


@router.post("/{quiz_id}/submit", status_code=status.HTTP_201_CREATED)
def submit_quiz(quiz_id: uuid.UUID, request: SubmitQuizRequest, db: Session = Depends(get_db)):
    """
    Submit answers for a quiz.

    Multiple-choice answers are graded immediately; quizzes containing text
    questions wait for an instructor grade.
    """
    answers = [
        {
            "questionId": a.question_id,
            "selectedAnswerId": a.selected_answer_id,
            "submittedText": a.submitted_text,
        }
        for a in request.answers
    ]
    return quizzes.submit_quiz(db, quiz_id, request.user_id, answers)
