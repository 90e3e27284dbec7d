"""
PDF boarding ticket with the redemption token as a QR code.
"""

from io import BytesIO

import qrcode
from qrcode import constants
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from coachline.core.config import get_settings

QR_SIZE = 60 * mm


def render_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    buffer = BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buffer)
    return buffer.getvalue()


def render_ticket_pdf(delivery) -> bytes:
    """Render a one-page A4 ticket for a `TicketDelivery` snapshot."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Ticket {delivery.ticket_id}")
    styles = getSampleStyleSheet()
    story = [
        Paragraph(get_settings().APP_NAME, styles["Title"]),
        Spacer(1, 10),
        Paragraph(f"Ticket {delivery.ticket_id}", styles["Heading2"]),
        Spacer(1, 10),
    ]

    details = Table(
        [
            ["Passenger:", delivery.passenger_name],
            ["Booking:", delivery.booking_id],
            ["From:", delivery.from_city],
            ["To:", delivery.to_city],
            ["Date:", delivery.travel_date.strftime("%Y-%m-%d")],
            ["Departure:", delivery.departure_time],
            ["Arrival:", delivery.arrival_time],
            ["Price:", f"{delivery.price:.2f} {delivery.currency}"],
        ],
        colWidths=[90, 260],
    )
    details.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), colors.whitesmoke),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.black),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
    ]))
    story.append(details)
    story.append(Spacer(1, 20))

    story.append(Image(BytesIO(render_qr_png(delivery.qr_token)), width=QR_SIZE, height=QR_SIZE))
    story.append(Spacer(1, 10))
    story.append(Paragraph("Present this code to the driver when boarding. Valid for one trip.", styles["Italic"]))

    doc.build(story)
    return buffer.getvalue()
