"""CSV and PDF exports of form responses and results."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any

from reportlab.graphics.charts.barcharts import HorizontalBarChart
from reportlab.graphics.shapes import Drawing, String
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session, selectinload

from formflow.db.enums import QuestionType
from formflow.db.models import Form, Response
from formflow.schemas.results import FormResultsRead, QuestionSummaryRead
from formflow.utils.datetime_parsing import as_utc, utc_now

CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")
CSV_LIST_SEPARATOR = "; "
UTF8_BOM = "\ufeff"

MAX_TEXT_ANSWERS_IN_PDF = 10

CHART_COLORS = [
    colors.HexColor("#9333ea"),  # Purple
    colors.HexColor("#2563eb"),  # Blue
    colors.HexColor("#0d9488"),  # Teal
    colors.HexColor("#d97706"),  # Amber
]


# =============================================================================
# CSV
# =============================================================================

def _csv_safe(value: str) -> str:
    if value and value.startswith(CSV_DANGEROUS_PREFIXES):
        return f"'{value}"
    return value


def _serialize_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, (list, tuple)):
        return CSV_LIST_SEPARATOR.join(str(item) for item in value)
    return str(value)


def csv_filename(form: Form) -> str:
    return f"survey_{form.id}_responses.csv"


def build_responses_csv(db: Session, form: Form) -> str:
    """
    Responses as CSV, oldest first.

    Prefixed with a UTF-8 BOM so spreadsheet apps detect the encoding.
    """
    questions = sorted(form.questions, key=lambda q: q.order_index)
    responses = (
        db.query(Response)
        .options(selectinload(Response.answers))
        .filter(Response.form_id == form.id)
        .order_by(Response.submitted_at.asc(), Response.id.asc())
        .all()
    )

    output = io.StringIO()
    output.write(UTF8_BOM)
    writer = csv.writer(output)
    writer.writerow([_csv_safe(h) for h in ["Submitted at", *(q.title for q in questions)]])
    for response in responses:
        values = {answer.question_id: answer.value for answer in response.answers}
        row = [response.submitted_at, *(values.get(q.id) for q in questions)]
        writer.writerow([_csv_safe(_serialize_csv_value(value)) for value in row])
    return output.getvalue()


# =============================================================================
# PDF
# =============================================================================

def pdf_filename(form: Form) -> str:
    return f"survey_{form.id}_results.pdf"


def _create_bar_chart(summary: QuestionSummaryRead, color: colors.Color) -> Drawing | None:
    """Horizontal bar chart of option counts; None when nothing was answered."""
    labels = [label[:24] for label in summary.counts.keys()]
    values = list(summary.counts.values())
    if not values or max(values) == 0:
        return None

    height = max(80, 22 * len(values) + 30)
    drawing = Drawing(450, height)

    chart = HorizontalBarChart()
    chart.x = 130
    chart.y = 10
    chart.height = height - 30
    chart.width = 290
    chart.data = [values]
    chart.categoryAxis.categoryNames = labels
    chart.categoryAxis.labels.fontSize = 8
    chart.categoryAxis.labels.dx = -5
    chart.categoryAxis.labels.boxAnchor = "e"
    chart.valueAxis.valueMin = 0
    chart.valueAxis.valueMax = max(values) * 1.1
    chart.valueAxis.labels.fontSize = 8
    chart.bars[0].fillColor = color
    chart.barWidth = 10
    chart.groupSpacing = 6

    drawing.add(chart)
    drawing.add(
        String(
            225,
            height - 12,
            f"{summary.total_responses} answered",
            fontSize=9,
            fontName="Helvetica",
            textAnchor="middle",
        )
    )
    return drawing


def _summary_table(summary: QuestionSummaryRead) -> Table:
    data = [["Answer", "Count", "%"]]
    for label, count in summary.counts.items():
        data.append([label, str(count), f"{summary.percentages.get(label, 0):.1f}%"])

    table = Table(data, colWidths=[3.8 * inch, 1.0 * inch, 1.0 * inch])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f1f5f9")),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("BOX", (0, 0), (-1, -1), 0.5, colors.HexColor("#e2e8f0")),
                ("INNERGRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#e2e8f0")),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


def build_results_pdf(results: FormResultsRead) -> bytes:
    """
    Render aggregated results as a PDF report.

    Choice and rating questions get a bar chart plus a count table; text
    questions list their first answers.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=50,
        title=results.title,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "SurveyTitle",
        parent=styles["Heading1"],
        fontSize=20,
        spaceAfter=12,
        textColor=colors.HexColor("#1e293b"),
    )
    heading_style = ParagraphStyle(
        "QuestionHeading",
        parent=styles["Heading3"],
        fontSize=12,
        spaceBefore=14,
        spaceAfter=6,
        textColor=colors.HexColor("#334155"),
    )
    meta_style = ParagraphStyle(
        "Meta",
        parent=styles["Normal"],
        fontSize=9,
        textColor=colors.HexColor("#64748b"),
        spaceAfter=8,
    )
    normal_style = styles["Normal"]

    elements: list[Any] = []
    elements.append(Paragraph(_escape(results.title), title_style))
    generated_at = utc_now().strftime("%B %d, %Y at %H:%M UTC")
    elements.append(
        Paragraph(
            f"{results.response_count} responses | Generated: {generated_at}",
            meta_style,
        )
    )
    elements.append(Spacer(1, 8))

    for position, summary in enumerate(results.questions, start=1):
        elements.append(Paragraph(f"{position}. {_escape(summary.title)}", heading_style))
        elements.append(Paragraph(f"{summary.total_responses} answered", meta_style))

        if summary.type in (QuestionType.SHORT_TEXT.value, QuestionType.LONG_TEXT.value):
            if not summary.text_answers:
                elements.append(Paragraph("No answers yet.", normal_style))
            for answer in summary.text_answers[:MAX_TEXT_ANSWERS_IN_PDF]:
                elements.append(Paragraph(f"&bull; {_escape(answer)}", normal_style))
            remaining = len(summary.text_answers) - MAX_TEXT_ANSWERS_IN_PDF
            if remaining > 0:
                elements.append(Paragraph(f"... and {remaining} more", meta_style))
            continue

        chart = _create_bar_chart(summary, CHART_COLORS[position % len(CHART_COLORS)])
        if chart is not None:
            elements.append(chart)
            elements.append(Spacer(1, 6))
        elements.append(_summary_table(summary))
        if summary.average is not None:
            elements.append(Spacer(1, 4))
            elements.append(Paragraph(f"Average rating: {summary.average:.2f}", normal_style))

    doc.build(elements)
    return buffer.getvalue()


def _escape(text: str) -> str:
    # Paragraph parses a mini-markup; keep user text literal
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
