"""Investment calculator report rendered to PDF."""

from __future__ import annotations

from datetime import date
from html import escape
from io import BytesIO
from typing import List, Optional

from reportlab.graphics.charts.lineplots import LinePlot
from reportlab.graphics.shapes import Drawing, String
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from opessocius.core.projection import (
    ProjectionInput,
    ProjectionResult,
    format_currency,
    rate_label,
    yearly_breakdown,
)

BRAND = "Opessocius"
CONTENT_WIDTH = 170 * mm
COMPOUND_COLOR = colors.HexColor("#1e40af")
SIMPLE_COLOR = colors.HexColor("#9ca3af")
ROW_SHADE = colors.HexColor("#f9fafb")
RULE_COLOR = colors.HexColor("#e5e7eb")

DISCLOSURE = (
    "Information presented here is for general evaluation only and may not reflect individual "
    "objectives, constraints, or risk tolerance. The outputs do not incorporate fees, taxes, or "
    "operational costs that would reduce net results.\n\n"
    "Access to protected disclosures, detailed methodologies, and underlying datasets is provided "
    "to investors through their secure portal. These documents outline assumptions, calculation "
    "mechanics, and risk considerations in full.\n\n"
    "Use of the calculator is at your discretion. Actual results may differ materially from "
    "estimates. Past performance or historical modeling does not predict future outcomes."
)

ASSUMPTIONS = (
    "All projections are based on tax-deferred growth and apply monthly compounding for recurring "
    "contributions. Returns are shown on a gross basis unless otherwise stated."
)

DISCLAIMER = (
    "The materials, projections, charts, and calculations presented herein are strictly for "
    "informational and educational purposes. They are generic in nature, do not account for your "
    "specific objectives, financial circumstances, investment horizon, or risk profile, and must "
    "not be relied upon as the basis for any financial or investment decision.\n\n"
    "No representation or warranty, express or implied, is made regarding the accuracy, "
    "completeness, or reliability of the assumptions used or the results generated. All figures "
    "are indicative and subject to substantial variation due to market volatility, liquidity "
    "conditions, geopolitical events, interest-rate movements, operational costs, and other "
    "external factors beyond any party's control.\n\n"
    "Nothing contained in this calculator or its outputs constitutes, or should be construed as, "
    "investment advice, a solicitation, an offer, or a recommendation to buy or sell any security, "
    "asset, derivative, or financial instrument. Independent professional advice (financial, legal, "
    "tax, and accounting) should be obtained prior to acting on any information provided.\n\n"
    "The projections may not incorporate advisory fees, management charges, brokerage commissions, "
    "slippage, or other transaction-related expenses that could materially alter performance "
    "outcomes. Any estimates of return should be interpreted as hypothetical scenarios, not "
    "guarantees or promised results.\n\n"
    "All investments involve risk, including the possible loss of capital. Past performance, "
    "historical models, or simulated backtests do not guarantee future returns. Market conditions "
    "can change rapidly and without notice. Use of this calculator is at your sole discretion and "
    "responsibility."
)


def report_filename(generated: Optional[date] = None) -> str:
    return f"investment-calculator-report-{(generated or date.today()).isoformat()}.pdf"


def _build_styles() -> dict[str, ParagraphStyle]:
    styles = getSampleStyleSheet()
    body = ParagraphStyle(
        "Body", parent=styles["BodyText"], fontName="Helvetica", fontSize=10, leading=14
    )
    return {
        "title": ParagraphStyle(
            "ReportTitle", parent=styles["Title"], fontName="Helvetica-Bold", fontSize=22,
            leading=26, alignment=0, spaceAfter=6,
        ),
        "brand": ParagraphStyle("Brand", parent=body, fontSize=14, leading=18),
        "meta": ParagraphStyle("Meta", parent=body, fontSize=10),
        "section": ParagraphStyle(
            "Section", parent=styles["Heading2"], fontName="Helvetica-Bold", fontSize=13,
            leading=16, spaceBefore=12, spaceAfter=8,
        ),
        "body": body,
        "disclosure": ParagraphStyle("Disclosure", parent=body, fontSize=9, leading=12),
        "small": ParagraphStyle("Small", parent=body, fontSize=8, leading=11),
    }


def _paragraphs(text: str, style: ParagraphStyle) -> list:
    flowables: list = []
    for block in text.split("\n\n"):
        flowables.append(Paragraph(escape(block), style))
        flowables.append(Spacer(1, 3 * mm))
    return flowables


def _details_table(inputs: ProjectionInput) -> Table:
    rows = [
        ["Initial Investment:", format_currency(inputs.initialAmount)],
        ["Years of Investment:", str(inputs.years)],
        ["Estimated Rate of Return:", rate_label(inputs.monthlyRate)],
        ["Recurring Investment Amount:", format_currency(inputs.recurringAmount)],
        ["Recurring Frequency:", inputs.frequency_name],
        ["Compound Frequency:", "Monthly"],
    ]
    table = Table(rows, colWidths=[80 * mm, 90 * mm], hAlign="LEFT")
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica"),
                ("FONTNAME", (1, 0), (1, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 11),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


def _results_table(result: ProjectionResult) -> Table:
    rows = [
        ["Final Balance:", format_currency(result.finalBalance)],
        ["Total Contributions:", format_currency(result.totalContributions)],
        ["Interest Earned:", format_currency(result.interestEarned)],
    ]
    table = Table(rows, colWidths=[50 * mm, 120 * mm], hAlign="LEFT")
    table.setStyle(
        TableStyle(
            [
                ("BOX", (0, 0), (-1, -1), 0.8, colors.black),
                ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME", (1, 0), (1, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 11),
                ("FONTSIZE", (1, 0), (1, 0), 14),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ("LEFTPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    return table


def growth_chart(result: ProjectionResult, width: float = CONTENT_WIDTH, height: float = 85 * mm) -> Drawing:
    """Compound balance (solid) against the simple-interest reference (dashed)."""
    drawing = Drawing(width, height)
    plot = LinePlot()
    plot.x = 18 * mm
    plot.y = 14 * mm
    plot.width = width - 26 * mm
    plot.height = height - 24 * mm

    compound = [(point.month / 12, point.balance) for point in result.compound]
    simple = [(point.month / 12, point.balance) for point in result.simple]
    if len(compound) == 1:
        # a zero-year projection still needs a drawable segment
        compound.append(compound[0])
        simple.append(simple[0])
    plot.data = [simple, compound]

    plot.lines[0].strokeColor = SIMPLE_COLOR
    plot.lines[0].strokeWidth = 1.5
    plot.lines[0].strokeDashArray = [4, 4]
    plot.lines[1].strokeColor = COMPOUND_COLOR
    plot.lines[1].strokeWidth = 2.5

    top = max(point[1] for point in compound + simple)
    plot.yValueAxis.valueMin = 0
    plot.yValueAxis.valueMax = top * 1.05 if top > 0 else 1
    plot.yValueAxis.labelTextFormat = lambda value: format_currency(value)
    plot.yValueAxis.labels.fontSize = 7
    plot.xValueAxis.valueMin = 0
    plot.xValueAxis.valueMax = max(compound[-1][0], 1)
    plot.xValueAxis.labelTextFormat = lambda value: "Now" if value == 0 else f"Y{value:g}"
    plot.xValueAxis.labels.fontSize = 7
    plot.yValueAxis.visibleGrid = True
    plot.yValueAxis.gridStrokeColor = RULE_COLOR

    drawing.add(plot)
    drawing.add(String(plot.x, height - 6 * mm, "Compound growth", fontSize=8, fillColor=COMPOUND_COLOR))
    drawing.add(
        String(plot.x + 40 * mm, height - 6 * mm, "Simple interest", fontSize=8, fillColor=SIMPLE_COLOR)
    )
    return drawing


def _breakdown_table(result: ProjectionResult) -> Table:
    rows: List[List[str]] = [["Year", "Ending Balance"]]
    for row in yearly_breakdown(result):
        rows.append([row["label"], format_currency(row["balance"])])

    table = Table(rows, colWidths=[95 * mm, 75 * mm], hAlign="LEFT", repeatRows=1)
    style = TableStyle(
        [
            ("BACKGROUND", (0, 0), (-1, 0), colors.black),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (1, 1), (1, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("LINEABOVE", (0, 1), (-1, -1), 0.5, RULE_COLOR),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
        ]
    )
    for index in range(1, len(rows)):
        if index % 2 == 1:
            style.add("BACKGROUND", (0, index), (-1, index), ROW_SHADE)
    table.setStyle(style)
    return table


def build_report(
    inputs: ProjectionInput,
    result: ProjectionResult,
    generated: Optional[date] = None,
) -> bytes:
    """Render the calculator report and return the PDF bytes."""
    generated = generated or date.today()
    styles = _build_styles()

    story: list = [
        Paragraph("Investment Calculator Report", styles["title"]),
        Paragraph(BRAND, styles["brand"]),
        Paragraph(f"Generated: {generated.isoformat()}", styles["meta"]),
        Spacer(1, 6 * mm),
        Paragraph("INVESTMENT DETAILS", styles["section"]),
        _details_table(inputs),
        Paragraph("DISCLOSURE &amp; LIMITATIONS", styles["section"]),
        *_paragraphs(DISCLOSURE, styles["disclosure"]),
        Paragraph("RESULTS", styles["section"]),
        _results_table(result),
        PageBreak(),
        Paragraph("INVESTMENT GROWTH CHART", styles["section"]),
        growth_chart(result),
        Spacer(1, 6 * mm),
        Paragraph("YEARLY BREAKDOWN", styles["section"]),
        _breakdown_table(result),
        PageBreak(),
        Paragraph("ASSUMPTIONS", styles["section"]),
        *_paragraphs(ASSUMPTIONS, styles["body"]),
        Paragraph("DISCLAIMER", styles["section"]),
        *_paragraphs(DISCLAIMER, styles["small"]),
    ]

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title="Investment Calculator Report",
        author=BRAND,
    )
    doc.build(story)
    return buffer.getvalue()


__all__ = ["build_report", "growth_chart", "report_filename"]
