"""
Tests del renderizador de exportaciones (PDF / Excel).
"""

from datetime import datetime, timezone
from io import BytesIO
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from agregacion import build_institutional_report, build_teacher_report
from errores import NoDataError, UnsupportedFormatError
from exportar import CONTENT_TYPES, SPREADSHEET, normalize_format, render
from registros import Compliance, Evidence, EvidenceStatus, Plan, PlanStatus, Progress

FECHA = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def institucional():
    plans = [
        Plan("Ana", status=PlanStatus.APPROVED),
        Plan("Ana", status=PlanStatus.REJECTED),
        Plan("José Núñez", status=PlanStatus.SUBMITTED),
    ]
    progress = [Progress("Ana", percent_complete=80, compliance=Compliance.COMPLIANT)]
    evidence = [Evidence("Ana", accredited_hours=5, status=EvidenceStatus.VALIDATED)]
    return build_institutional_report(plans, progress, evidence, "2024-2025", FECHA)


@pytest.fixture
def profesor():
    progress = [Progress("Ana", percent_complete=75.5)]
    return build_teacher_report("Ana", [Plan("Ana")], progress, [], "2024-2025", FECHA)


def _filas(data):
    ws = load_workbook(BytesIO(data)).active
    return [[c for c in row] for row in ws.iter_rows(values_only=True)]


class TestFormats:

    @pytest.mark.parametrize("fmt", ["csv", "", None, "docx"])
    def test_unsupported_format(self, fmt, institucional):
        with pytest.raises(UnsupportedFormatError):
            render(fmt, institucional, "reporte-institucional")

    def test_excel_is_an_alias_of_spreadsheet(self):
        assert normalize_format("excel") == SPREADSHEET
        assert normalize_format("Spreadsheet") == SPREADSHEET

    def test_empty_institutional_report_is_rejected(self):
        vacio = build_institutional_report([], [], [], "x", FECHA)
        with pytest.raises(NoDataError) as exc_info:
            render("pdf", vacio, "reporte-institucional")
        assert exc_info.value.status_code == 404

    def test_empty_teacher_report_is_rejected(self):
        vacio = build_teacher_report("Nonexistent", [], [], [], "x", FECHA)
        with pytest.raises(NoDataError):
            render("excel", vacio, "reporte-profesor-Nonexistent")

    def test_format_is_checked_before_emptiness(self):
        vacio = build_teacher_report("Nonexistent", [], [], [], "x", FECHA)
        with pytest.raises(UnsupportedFormatError):
            render("csv", vacio, "reporte")


class TestPdf:

    def test_institutional_pdf(self, institucional):
        payload = render("pdf", institucional, "reporte-institucional")

        assert payload.content_type == "application/pdf"
        assert payload.filename == "reporte-institucional.pdf"
        assert payload.data.startswith(b"%PDF")

    def test_one_extra_page_per_teacher(self, institucional):
        payload = render("pdf", institucional, "reporte-institucional")
        # portada + Ana + José Núñez
        assert b"/Count 3" in payload.data

    def test_teacher_pdf(self, profesor):
        payload = render("pdf", profesor, "reporte-profesor-Ana")

        assert payload.filename == "reporte-profesor-Ana.pdf"
        assert payload.data.startswith(b"%PDF")
        assert b"/Count 1" in payload.data

    def test_renderer_errors_propagate(self, institucional):
        with patch("exportar.FPDF.output", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                render("pdf", institucional, "reporte-institucional")


class TestSpreadsheet:

    def test_institutional_layout(self, institucional):
        payload = render("spreadsheet", institucional, "reporte-institucional")
        assert payload.content_type == CONTENT_TYPES[SPREADSHEET]
        assert payload.filename == "reporte-institucional.xlsx"

        filas = _filas(payload.data)
        assert filas[0][0] == "Reporte: reporte-institucional"
        assert filas[1][0] == "Periodo: 2024-2025"
        assert filas[2][0] is None

        etiquetas = [f[0] for f in filas]
        assert "Resumen General" in etiquetas
        assert "Totales" in etiquetas

        i = etiquetas.index("Profesor")
        assert filas[i][:6] == ["Profesor", "Planeaciones", "Avances", "Promedio Avance",
                                "Evidencias", "Horas"]
        assert filas[i + 1][:6] == ["Ana", 2, 1, 80, 1, 5]
        assert filas[i + 2][0] == "José Núñez"
        assert len(filas) == i + 3

    def test_totals_section_values(self, institucional):
        filas = _filas(render("excel", institucional, "r").data)
        valores = {f[0]: f[1] for f in filas if f and f[0]}

        assert valores["Total de profesores"] == 2
        assert valores["Porcentaje de aprobación"] == pytest.approx(33.33)
        assert valores["Porcentaje de cumplimiento"] == 100
        assert valores["Horas de capacitación totales"] == 5

    def test_teacher_layout(self, profesor):
        filas = _filas(render("excel", profesor, "reporte-profesor-Ana").data)
        valores = {f[0]: f[1] for f in filas[3:] if f and f[0]}

        assert valores["Profesor"] == "Ana"
        assert valores["Planeaciones"] == 1
        assert valores["Avances"] == 1
        assert valores["Evidencias"] == 0
        assert valores["Promedio Avance"] == 75.5
