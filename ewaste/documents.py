from datetime import date
from io import BytesIO

from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas

from .models import EwasteRequest


def render_report(request: EwasteRequest) -> bytes:
    """Single-page submission report for one request."""
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4

    y = height - 60

    def line(txt: str, size: int = 11, bold: bool = False, dy: int = 18):
        nonlocal y
        c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
        c.drawString(60, y, txt)
        y -= dy

    line("E-Waste Submission Report", 18, True, 28)
    line(f"Request ID: {request.id}")
    line(f"Status: {request.status.value}")
    line(f"Device: {request.device_type}")
    line(f"Remarks: {request.remarks if request.remarks else 'None'}")

    c.showPage()
    c.save()
    return buf.getvalue()


def render_certificate(recipient_name: str) -> bytes:
    """Landscape certificate of appreciation."""
    buf = BytesIO()
    pagesize = landscape(A4)
    c = canvas.Canvas(buf, pagesize=pagesize)
    width, height = pagesize
    center = width / 2

    c.setFont("Helvetica-Bold", 28)
    c.drawCentredString(center, height - 140, "Certificate of Appreciation")

    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(center, height - 220, f"Presented to {recipient_name}")

    c.setFont("Helvetica", 12)
    c.drawCentredString(center, height - 270, "For your commitment to recycling e-waste.")
    c.drawCentredString(center, height - 300, f"Date: {date.today().isoformat()}")

    c.showPage()
    c.save()
    return buf.getvalue()
