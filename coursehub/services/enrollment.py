"""Course enrollment."""
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.errors import NotFoundError
from coursehub.models import Course, Enrollment, User

logger = logging.getLogger(__name__)


def _find_enrollment(db: Session, user_id: UUID, course_id: UUID):
    return db.query(Enrollment.id).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id
    ).first()


def enroll(db: Session, course_id: UUID, user_id: UUID) -> bool:
    """Enroll a learner. Returns True if a row was created, False if one existed.

    A concurrent enroll that wins the race trips the unique constraint; that
    is reported as already enrolled. Any other integrity failure propagates.
    """
    if db.query(Course.id).filter(Course.id == course_id).first() is None:
        raise NotFoundError("Course not found")
    if db.query(User.id).filter(User.id == user_id).first() is None:
        raise NotFoundError("User not found")

    if _find_enrollment(db, user_id, course_id):
        return False

    db.add(Enrollment(
        user_id=user_id,
        course_id=course_id,
        enrollment_date=datetime.utcnow(),
        enrollment_method="direct_purchase",
        amount_paid=0,
    ))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if _find_enrollment(db, user_id, course_id) is None:
            raise
        logger.info("Concurrent enrollment detected for user %s in course %s", user_id, course_id)
        return False

    logger.info("Enrolled user %s in course %s", user_id, course_id)
    return True
