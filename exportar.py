# exportar.py
# =========================================================
#  Exportación de reportes a PDF (fpdf2) y Excel (openpyxl)
#  Todo se renderiza en memoria antes de armar la respuesta.
# =========================================================

from dataclasses import dataclass
from io import BytesIO
from typing import List, Tuple, Union

from fpdf import FPDF, XPos, YPos
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from agregacion import InstitutionalReport, TeacherReport
from errores import NoDataError, UnsupportedFormatError

PDF = "pdf"
SPREADSHEET = "spreadsheet"

# "excel" es el nombre que usa el cliente web
FORMAT_ALIASES = {
    "pdf": PDF,
    "spreadsheet": SPREADSHEET,
    "excel": SPREADSHEET,
}

CONTENT_TYPES = {
    PDF: "application/pdf",
    SPREADSHEET: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

EXTENSIONS = {PDF: ".pdf", SPREADSHEET: ".xlsx"}

# Paleta institucional
LILA = (142, 124, 195)
MENTA = (106, 215, 168)
TEXTO = (51, 51, 51)
BLANCO = (255, 255, 255)

PIE_PDF = "Reporte generado automáticamente por el Sistema de Planeación Institucional"


@dataclass
class BinaryPayload:
    content_type: str
    filename: str
    data: bytes


@dataclass
class ErrorPayload:
    status: int
    message: str


ExportResult = Union[BinaryPayload, ErrorPayload]


def normalize_format(fmt):
    """Devuelve el formato canónico o lanza UnsupportedFormatError."""
    canonical = FORMAT_ALIASES.get((fmt or "").strip().lower())
    if canonical is None:
        raise UnsupportedFormatError()
    return canonical


# =========================================================
# Secciones compartidas PDF / Excel
# =========================================================

def _pct(valor):
    return f"{float(valor):.2f}%"


def _fecha(report):
    return report.generated_at.strftime("%d/%m/%Y %H:%M")


def summary_rows(report: InstitutionalReport) -> List[Tuple[str, object]]:
    s = report.overall_summary
    return [
        ("Total de profesores", s.teacher_count),
        ("Total de planeaciones", s.plan_count),
        ("Total de avances", s.progress_count),
        ("Total de evidencias", s.evidence_count),
    ]


def totals_rows(report: InstitutionalReport) -> List[Tuple[str, object]]:
    s = report.overall_summary
    return [
        ("Planeaciones aprobadas", s.approved_plan_count),
        ("Porcentaje de aprobación", s.approval_rate),
        ("Avances cumplidos", s.compliant_progress_count),
        ("Porcentaje de cumplimiento", s.compliance_rate),
        ("Horas de capacitación totales", s.total_hours),
    ]


def teacher_rows(report: TeacherReport) -> List[Tuple[str, object]]:
    return [
        ("Profesor", report.teacher),
        ("Periodo", report.period),
        ("Planeaciones", report.plan_count),
        ("Avances", report.progress_count),
        ("Evidencias", report.evidence_count),
        ("Promedio Avance", report.average_progress),
    ]


# =========================================================
# PDF
# =========================================================

def _pdf_safe_text(text) -> str:
    if text is None:
        return ""
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _pdf_band(pdf: FPDF, text: str, height: float = 28, size: int = 20, align: str = "C"):
    """Banda de color a todo el ancho con el texto en blanco."""
    pdf.set_fill_color(*LILA)
    pdf.rect(0, 0, pdf.w, height, style="F")
    pdf.set_text_color(*BLANCO)
    pdf.set_font("Helvetica", "B", size)
    if align == "C":
        pdf.set_xy(0, height / 2 - 5)
        pdf.cell(pdf.w, 10, _pdf_safe_text(text), align="C")
    else:
        pdf.set_xy(pdf.l_margin, height / 2 - 5)
        pdf.cell(0, 10, _pdf_safe_text(text))
    pdf.set_y(height + 8)
    pdf.set_text_color(*TEXTO)


def _pdf_heading(pdf: FPDF, text: str, size: int = 15):
    pdf.set_text_color(*MENTA)
    pdf.set_font("Helvetica", "BU", size)
    pdf.cell(0, 9, _pdf_safe_text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*TEXTO)
    pdf.ln(1)


def _pdf_line(pdf: FPDF, text: str, size: int = 11, bullet: bool = False):
    pdf.set_font("Helvetica", "", size)
    prefix = "- " if bullet else ""
    pdf.cell(0, 6, _pdf_safe_text(prefix + text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _pdf_kv(pdf: FPDF, rows, percent_labels=()):
    for label, valor in rows:
        if label in percent_labels:
            valor = _pct(valor)
        _pdf_line(pdf, f"{label}: {valor}", bullet=True)


def _pdf_info(pdf: FPDF, report):
    _pdf_line(pdf, f"Periodo: {report.period}", size=12)
    _pdf_line(pdf, f"Fecha de generación: {_fecha(report)}", size=12)
    pdf.ln(6)


def _pdf_teacher_page(pdf: FPDF, rollup):
    pdf.add_page()
    _pdf_band(pdf, rollup.teacher, height=24, size=18, align="L")
    s = rollup.summary

    _pdf_heading(pdf, "Planeaciones", size=13)
    _pdf_line(pdf, f"Total: {s.plan_count}")
    for estado, cantidad in s.plan_counts_by_status.items():
        _pdf_line(pdf, f"{estado.value}: {cantidad}", bullet=True)
    pdf.ln(4)

    _pdf_heading(pdf, "Avances", size=13)
    _pdf_line(pdf, f"Total: {s.progress_count}")
    _pdf_line(pdf, f"Promedio: {_pct(s.avg_progress)}")
    for cumplimiento, cantidad in s.progress_counts_by_compliance.items():
        _pdf_line(pdf, f"{cumplimiento.value}: {cantidad}", bullet=True)
    pdf.ln(4)

    _pdf_heading(pdf, "Evidencias", size=13)
    _pdf_line(pdf, f"Total: {s.evidence_count}")
    _pdf_line(pdf, f"Validadas: {s.validated_evidence_count}")
    _pdf_line(pdf, f"Horas capacitación: {s.total_hours}")


def _pdf_institutional(pdf: FPDF, report: InstitutionalReport):
    _pdf_heading(pdf, "Resumen General")
    _pdf_kv(pdf, summary_rows(report))
    pdf.ln(6)

    _pdf_heading(pdf, "Totales")
    _pdf_kv(
        pdf, totals_rows(report),
        percent_labels=("Porcentaje de aprobación", "Porcentaje de cumplimiento"),
    )

    for rollup in report.teacher_rollups:
        _pdf_teacher_page(pdf, rollup)


def _pdf_teacher(pdf: FPDF, report: TeacherReport):
    pdf.set_text_color(*LILA)
    pdf.set_font("Helvetica", "B", 18)
    pdf.cell(0, 10, "Reporte del Profesor", align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*TEXTO)
    pdf.set_font("Helvetica", "B", 22)
    pdf.cell(0, 12, _pdf_safe_text(report.teacher), align="C",
             new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(8)

    cajas = [
        ("Planeaciones", report.plan_count),
        ("Avances", report.progress_count),
        ("Evidencias", report.evidence_count),
        ("Promedio Avance", _pct(report.average_progress)),
    ]
    ancho, alto, sep = 82, 18, 10
    x0, y0 = pdf.l_margin + 3, pdf.get_y()
    for i, (titulo, valor) in enumerate(cajas):
        x = x0 + (i % 2) * (ancho + sep)
        y = y0 + (i // 2) * (alto + 8)
        pdf.set_fill_color(*(MENTA if i % 2 == 0 else LILA))
        pdf.rect(x, y, ancho, alto, style="F")
        pdf.set_text_color(*BLANCO)
        pdf.set_font("Helvetica", "B", 12)
        pdf.set_xy(x + 4, y + 4)
        pdf.cell(45, 10, titulo)
        pdf.set_font("Helvetica", "B", 16)
        pdf.set_xy(x + 50, y + 4)
        pdf.cell(ancho - 54, 10, str(valor), align="R")

    pdf.set_y(y0 + 2 * (alto + 8) + 6)
    pdf.set_text_color(*TEXTO)
    _pdf_line(pdf, f"Periodo: {report.period}", size=12)
    _pdf_line(pdf, f"Fecha de generación: {_fecha(report)}", size=12)

    pdf.ln(6)
    y = pdf.get_y()
    pdf.set_draw_color(*MENTA)
    pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
    pdf.ln(6)
    pdf.set_text_color(*LILA)
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 6, _pdf_safe_text(PIE_PDF), align="C")


def render_pdf(report, title: str) -> bytes:
    pdf = FPDF(format="A4")
    pdf.set_auto_page_break(True, margin=15)
    pdf.set_title(_pdf_safe_text(title))
    pdf.add_page()

    _pdf_band(pdf, title.replace("-", " ").upper())
    _pdf_info(pdf, report)

    if isinstance(report, InstitutionalReport):
        _pdf_institutional(pdf, report)
    else:
        _pdf_teacher(pdf, report)

    return bytes(pdf.output())


# =========================================================
# Excel
# =========================================================

_NEGRITA = Font(bold=True)
_ENCABEZADO = PatternFill("solid", fgColor="8E7CC3")


def _xlsx_section(ws, titulo, rows):
    ws.append([titulo])
    ws.cell(row=ws.max_row, column=1).font = _NEGRITA
    for label, valor in rows:
        ws.append([label, valor])
    ws.append([])


def render_spreadsheet(report, title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Reporte"

    ws.append([f"Reporte: {title}"])
    ws.cell(row=1, column=1).font = Font(bold=True, size=14)
    ws.append([f"Periodo: {report.period}"])
    ws.append([])

    if isinstance(report, InstitutionalReport):
        _xlsx_section(ws, "Resumen General", summary_rows(report))
        _xlsx_section(ws, "Totales", totals_rows(report))

        ws.append(["Docentes"])
        ws.cell(row=ws.max_row, column=1).font = _NEGRITA
        ws.append(["Profesor", "Planeaciones", "Avances", "Promedio Avance", "Evidencias", "Horas"])
        for c in ws[ws.max_row]:
            c.font = Font(bold=True, color="FFFFFF")
            c.fill = _ENCABEZADO
        for r in report.teacher_rollups:
            s = r.summary
            ws.append([
                r.teacher,
                s.plan_count,
                s.progress_count,
                s.avg_progress,
                s.evidence_count,
                s.total_hours,
            ])
    else:
        for label, valor in teacher_rows(report):
            ws.append([label, valor])

    for col in range(1, ws.max_column + 1):
        ws.column_dimensions[get_column_letter(col)].width = 28

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


_RENDERERS = {
    PDF: render_pdf,
    SPREADSHEET: render_spreadsheet,
}


def render(fmt, report, title: str) -> BinaryPayload:
    """
    Serializa un reporte al formato pedido.

    Lanza UnsupportedFormatError para formatos desconocidos y
    NoDataError si el reporte no tiene datos; cualquier error del
    renderizador se propaga sin reintentos.
    """
    canonical = normalize_format(fmt)
    if report is None or report.is_empty():
        raise NoDataError()

    data = _RENDERERS[canonical](report, title)
    return BinaryPayload(
        content_type=CONTENT_TYPES[canonical],
        filename=f"{title}{EXTENSIONS[canonical]}",
        data=data,
    )
