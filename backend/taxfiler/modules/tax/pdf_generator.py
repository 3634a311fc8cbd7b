"""
Form 1098 PDF Generator

Renders a stored Form 1098 (Mortgage Interest Statement) as a printable
PDF: lender, borrower and property blocks, the five numbered boxes, a
generation footer and, when present, the calculation basis.
"""

from io import BytesIO
from typing import Iterator

from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER, TA_RIGHT

from taxfiler.modules.tax.forms import Form1098, Address


def format_currency(amount: float) -> str:
    """Dollar amount with thousands separators and two decimals."""
    return f"${amount:,.2f}"


def _info_table(rows):
    table = Table(rows, colWidths=[1.8*inch, 4.7*inch])
    table.setStyle(TableStyle([
        ('FONT', (0, 0), (-1, -1), 'Helvetica', 10),
        ('FONT', (0, 0), (0, -1), 'Helvetica-Bold', 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.black),
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    return table


def _address_rows(label: str, address: Address):
    return [
        [label, address.street],
        ['', address.city_line()],
    ]


def generate_form_1098_pdf(form: Form1098, buffer: BytesIO) -> None:
    """Generate PDF for IRS Form 1098."""

    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        topMargin=0.6*inch,
        bottomMargin=0.6*inch,
        title=f"Form 1098 - {form.form_year}",
    )
    styles = getSampleStyleSheet()
    story = []

    # Custom styles
    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#000000'),
        spaceAfter=6,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    subtitle_style = ParagraphStyle(
        'Subtitle',
        parent=styles['Normal'],
        fontSize=13,
        alignment=TA_CENTER,
        spaceAfter=4,
    )

    header_style = ParagraphStyle(
        'CustomHeader',
        parent=styles['Heading2'],
        fontSize=12,
        textColor=colors.HexColor('#000000'),
        spaceAfter=8,
        fontName='Helvetica-Bold'
    )

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.HexColor('#666666'),
        alignment=TA_RIGHT,
    )

    note_style = ParagraphStyle(
        'Note',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.HexColor('#666666'),
        spaceAfter=6,
        alignment=TA_CENTER,
    )

    small_style = ParagraphStyle(
        'Small',
        parent=styles['Normal'],
        fontSize=8,
        spaceAfter=2,
    )

    # Title
    story.append(Paragraph("Form 1098", title_style))
    story.append(Paragraph("Mortgage Interest Statement", subtitle_style))
    story.append(Paragraph(f"Tax Year {form.form_year}", subtitle_style))
    story.append(Spacer(1, 0.3*inch))

    # Lender
    story.append(Paragraph("Lender Information", header_style))
    story.append(_info_table(
        [['Name:', form.lender_name], ['TIN:', form.lender_tin]]
        + _address_rows('Address:', form.lender_address)
    ))
    story.append(Spacer(1, 0.2*inch))

    # Borrower
    story.append(Paragraph("Borrower Information", header_style))
    story.append(_info_table(
        [['Name:', form.borrower_name], ['SSN:', form.borrower_ssn]]
        + _address_rows('Address:', form.borrower_address)
    ))
    story.append(Spacer(1, 0.2*inch))

    # Property
    story.append(Paragraph("Property Information", header_style))
    story.append(_info_table(
        _address_rows('Property Address:', form.property_address)
        + [['Account Number:', form.account_number]]
    ))
    story.append(Spacer(1, 0.2*inch))

    # Boxes
    story.append(Paragraph("Mortgage Interest Information", header_style))
    box_data = [
        ['Box', 'Description', 'Amount'],
        ['1', 'Mortgage interest received', format_currency(form.mortgage_interest_received)],
        ['2', 'Points paid on purchase of principal residence', format_currency(form.points_paid)],
        ['3', 'Refund of overpaid interest', format_currency(form.refund_of_overpaid_interest)],
        ['4', 'Mortgage insurance premiums', format_currency(form.mortgage_insurance_premiums)],
        ['5', 'Outstanding mortgage principal', format_currency(form.outstanding_mortgage_principal)],
    ]

    box_table = Table(box_data, colWidths=[0.8*inch, 3.9*inch, 1.8*inch])
    box_table.setStyle(TableStyle([
        ('FONT', (0, 0), (-1, 0), 'Helvetica-Bold', 10),
        ('FONT', (0, 1), (-1, -1), 'Helvetica', 10),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#4A5568')),
        ('ALIGN', (0, 0), (0, -1), 'CENTER'),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F7FAFC')]),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ('TOPPADDING', (0, 0), (-1, -1), 8),
    ]))
    story.append(box_table)
    story.append(Spacer(1, 0.3*inch))

    # Footer
    story.append(Paragraph(f"Generated on: {form.generated_date.strftime('%m/%d/%Y')}", footer_style))
    story.append(Paragraph("This is a computer-generated document.", note_style))

    # Calculation basis
    basis = form.calculation_basis
    if basis is not None:
        story.append(Spacer(1, 0.2*inch))
        story.append(Paragraph("<u>Calculation Details:</u>", small_style))
        story.append(Paragraph(f"Based on W-2 Income: {format_currency(basis.based_on_w2_income)}", small_style))
        story.append(Paragraph(f"Estimation Method: {basis.estimation_method}", small_style))
        story.append(Paragraph(f"Interest Rate Used: {basis.interest_rate * 100:.2f}%", small_style))

    doc.build(story)


def render_form_1098_pdf(form: Form1098) -> BytesIO:
    """Render the whole PDF into memory, rewound for reading."""
    buffer = BytesIO()
    generate_form_1098_pdf(form, buffer)
    buffer.seek(0)
    return buffer


def iter_pdf_chunks(buffer: BytesIO, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yield an already rendered PDF in chunks for streaming responses."""
    while True:
        chunk = buffer.read(chunk_size)
        if not chunk:
            break
        yield chunk
