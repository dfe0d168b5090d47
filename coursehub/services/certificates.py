"""Certificate of completion PDF generation."""
import io
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from coursehub.core.config import settings
from coursehub.core.errors import NotFoundError
from coursehub.models import Course

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = landscape(A4)
BORDER_COLOR = Color(0.2, 0.6, 0.6)
TITLE_COLOR = Color(0.1, 0.35, 0.35)
TEXT_COLOR = Color(0.15, 0.15, 0.15)


def render_certificate(name: str, course_title: str, issued_on: Optional[date] = None) -> bytes:
    """Render a one-page A4 landscape certificate and return the PDF bytes."""
    issued_on = issued_on or date.today()
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT))
    pdf.setTitle(f"Certificate - {course_title}")
    pdf.setAuthor(settings.CERTIFICATE_ISSUER)

    pdf.setStrokeColor(BORDER_COLOR)
    pdf.setLineWidth(6)
    pdf.rect(20, 20, PAGE_WIDTH - 40, PAGE_HEIGHT - 40)

    center = PAGE_WIDTH / 2
    pdf.setFillColor(TITLE_COLOR)
    pdf.setFont("Helvetica-Bold", 32)
    pdf.drawCentredString(center, 480, "Certificate of Completion")

    pdf.setFillColor(TEXT_COLOR)
    pdf.setFont("Helvetica-Bold", 28)
    pdf.drawCentredString(center, 400, name)

    pdf.setFont("Helvetica", 16)
    pdf.drawCentredString(center, 360, f"has successfully completed the course: {course_title}")

    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(center, 80, f"Issued on {issued_on.isoformat()} by {settings.CERTIFICATE_ISSUER}")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def course_certificate(db: Session, name: str, course_id: UUID) -> bytes:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")
    logger.info("Issuing certificate for course %s", course_id)
    return render_certificate(name, course.title)
