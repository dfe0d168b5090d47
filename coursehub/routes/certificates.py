"""Certificate routes."""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.core.security import require_instructor
from coursehub.services.certificates import course_certificate


router = APIRouter(prefix="/certificates", tags=["Certificates"])


class CertificateRequest(BaseModel):
    name: Optional[str] = None
    course_id: Optional[uuid.UUID] = Field(default=None, alias="courseId")

    class Config:
        populate_by_name = True


@router.post("", dependencies=[Depends(require_instructor)])
def create_certificate(request: CertificateRequest, db: Session = Depends(get_db)):
    """
    Generate a certificate of completion as a PDF download.

    Protected endpoint - instructors and admins only.
    """
    if not request.name or request.course_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name and courseId are required")

    pdf_bytes = course_certificate(db, request.name, request.course_id)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="certificate-{request.course_id}.pdf"',
            "Cache-Control": "no-store",
        },
    )
