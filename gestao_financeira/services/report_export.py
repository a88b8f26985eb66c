import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO
from typing import List, Optional, Tuple
from urllib.parse import quote
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from gestao_financeira.core.money import format_brl
from gestao_financeira.core.periods import MESES
from gestao_financeira.core.timezone_utils import now_in_brazil

GREEN = colors.HexColor("#1a5f3f")
REVENUE_COLOR = colors.HexColor("#22c55e")
EXPENSE_COLOR = colors.HexColor("#ef4444")
POSITIVE_COLOR = colors.HexColor("#16a34a")
NEGATIVE_COLOR = colors.HexColor("#dc2626")

RULE = "═" * 67
THIN_RULE = "─" * 67


@dataclass
class ReportData:
    title: str
    company: str
    period: str
    revenues: float
    expenses: float
    balance: float
    # extra body sections: (heading, [(label, value), ...])
    sections: List[Tuple[str, List[Tuple[str, float]]]] = field(default_factory=list)
    generated_at: Optional[datetime] = None


def generated_label(moment: datetime) -> str:
    """'18 de outubro de 2026 às 14:05'"""
    return f"{moment.day:02d} de {MESES[moment.month - 1]} de {moment.year} às {moment:%H:%M}"


def export_filename(company: str, ext: str, day: Optional[date] = None) -> str:
    day = day or now_in_brazil().date()
    safe = re.sub(r"\s+", "_", company.strip())
    return f"relatorio_{safe}_{day:%Y-%m-%d}.{ext}"


def content_disposition(filename: str) -> str:
    """Attachment header value; latin-1 safe ASCII name plus the RFC 5987 UTF-8 name."""
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    ascii_name = re.sub(r'["\\/]', "", ascii_name)
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"


def render_txt(report: ReportData) -> str:
    moment = report.generated_at or now_in_brazil()
    lines = [
        RULE,
        f"  {report.title.upper()}",
        RULE,
        "",
        "INFORMAÇÕES DO RELATÓRIO",
        f"Empresa: {report.company}",
        f"Período: {report.period}",
        f"Data de Geração: {generated_label(moment)}",
        "",
        THIN_RULE,
        "RESUMO FINANCEIRO",
        THIN_RULE,
        "",
        f"Total de Receitas: {format_brl(report.revenues)}",
        f"Total de Despesas: {format_brl(report.expenses)}",
        f"Resultado:         {format_brl(report.balance)}",
    ]
    for heading, rows in report.sections:
        lines += ["", THIN_RULE, heading.upper(), THIN_RULE, ""]
        if not rows:
            lines.append("Nenhum lançamento no período")
        width = max((len(label) for label, _ in rows), default=0)
        for label, value in rows:
            lines.append(f"{label.ljust(width)}  {format_brl(value)}")
    lines += ["", RULE, ""]
    return "\n".join(lines)


def _summary_table(report: ReportData) -> Table:
    balance_color = POSITIVE_COLOR if report.balance >= 0 else NEGATIVE_COLOR
    data = [
        ["Total de Receitas", "Total de Despesas", "Resultado"],
        [format_brl(report.revenues), format_brl(report.expenses), format_brl(report.balance)],
    ]
    table = Table(data, colWidths=[58 * mm, 58 * mm, 58 * mm])
    table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, 0), 9),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.grey),
        ('FONTNAME', (0, 1), (-1, 1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 1), (-1, 1), 14),
        ('TEXTCOLOR', (0, 1), (0, 1), REVENUE_COLOR),
        ('TEXTCOLOR', (1, 1), (1, 1), EXPENSE_COLOR),
        ('TEXTCOLOR', (2, 1), (2, 1), balance_color),
        ('LINEBEFORE', (0, 0), (0, -1), 3, REVENUE_COLOR),
        ('LINEBEFORE', (1, 0), (1, -1), 3, EXPENSE_COLOR),
        ('LINEBEFORE', (2, 0), (2, -1), 3, POSITIVE_COLOR),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    return table


def _section_table(rows: List[Tuple[str, float]]) -> Table:
    data = [["Categoria", "Valor"]] + [[label, format_brl(value)] for label, value in rows]
    table = Table(data, colWidths=[120 * mm, 54 * mm])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), GREEN),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
    ]))
    return table


def render_pdf(report: ReportData) -> bytes:
    moment = report.generated_at or now_in_brazil()
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=10 * mm, bottomMargin=10 * mm,
                            leftMargin=10 * mm, rightMargin=10 * mm, title=report.title)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('ReportTitle', parent=styles['Heading1'], alignment=1, textColor=GREEN)
    info_style = ParagraphStyle('ReportInfo', parent=styles['Normal'], alignment=1, textColor=colors.grey)
    footer_style = ParagraphStyle('ReportFooter', parent=styles['Normal'], alignment=2, fontSize=8, textColor=colors.grey)

    elements = [
        Paragraph(escape(report.title), title_style),
        Paragraph(f"<b>Empresa:</b> {escape(report.company)}<br/><b>Período:</b> {escape(report.period)}", info_style),
        Spacer(1, 8 * mm),
        _summary_table(report),
        Spacer(1, 8 * mm),
    ]
    for heading, rows in report.sections:
        elements.append(Paragraph(escape(heading), styles["Heading3"]))
        if rows:
            elements.append(_section_table(rows))
        else:
            elements.append(Paragraph("Nenhum lançamento no período", styles['Normal']))
        elements.append(Spacer(1, 6 * mm))
    elements.append(Paragraph(f"Gerado em {generated_label(moment)}", footer_style))

    doc.build(elements)
    return buffer.getvalue()
