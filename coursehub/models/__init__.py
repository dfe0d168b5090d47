"""Database models."""
from coursehub.models.user import User
from coursehub.models.course import Course, Week, Module, ModuleType
from coursehub.models.enrollment import Enrollment
from coursehub.models.progress import ModuleProgress, ModuleReview
from coursehub.models.quiz import (
    Quiz,
    Question,
    Answer,
    QuizSubmission,
    SubmittedChoiceAnswer,
    SubmittedTextAnswer,
)

__all__ = [
    "User",
    "Course",
    "Week",
    "Module",
    "ModuleType",
    "Enrollment",
    "ModuleProgress",
    "ModuleReview",
    "Quiz",
    "Question",
    "Answer",
    "QuizSubmission",
    "SubmittedChoiceAnswer",
    "SubmittedTextAnswer",
]
