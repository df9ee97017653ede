# reportes_blueprint.py
# =========================================================
#  Reportes institucionales y por profesor – Blueprint
#  (usa current_app.mongo para acceder a la DB)
# =========================================================

import logging
from io import BytesIO

from flask import Blueprint, current_app, jsonify, render_template, request, send_file

from agregacion import build_institutional_report, build_teacher_report, period_label
from auth import ROLES_REPORTES, coordinador_o_admin, usuario_actual
from errores import AppError, UnsupportedFormatError
from exportar import BinaryPayload, ErrorPayload, ExportResult, normalize_format, render
from registros import fetch_scoped

logger = logging.getLogger(__name__)

reportes_bp = Blueprint("reportes", __name__, template_folder="templates")

TIPO_INSTITUCIONAL = "institutional"
TIPO_PROFESOR = "teacher"


def _db():
    """Acceso centralizado a la DB desde el blueprint."""
    return current_app.mongo


def _arg(nombre):
    return (request.args.get(nombre) or "").strip()


# =========================================================
# Armado de reportes
# =========================================================

def _reporte_institucional(cycle):
    registros = fetch_scoped(_db(), cycle=cycle or None)
    return build_institutional_report(
        registros.plans, registros.progress, registros.evidence, period_label(cycle),
    )


def _reporte_profesor(teacher, cycle):
    registros = fetch_scoped(_db(), cycle=cycle or None, teacher=teacher)
    return build_teacher_report(
        teacher, registros.plans, registros.progress, registros.evidence, period_label(cycle),
    )


def _exportar(tipo, formato, cycle, teacher) -> ExportResult:
    """Valida parámetros, arma el reporte y lo renderiza. Devuelve ErrorPayload | BinaryPayload."""
    if not tipo or not formato:
        return ErrorPayload(400, "type and format required")

    # formato inválido corta antes de consultar la DB
    try:
        normalize_format(formato)
    except UnsupportedFormatError as e:
        return ErrorPayload(e.status_code, e.message)

    if tipo == TIPO_INSTITUCIONAL:
        report = _reporte_institucional(cycle)
        title = "reporte-institucional"
    elif tipo == TIPO_PROFESOR:
        if not teacher:
            return ErrorPayload(400, "teacher parameter required")
        report = _reporte_profesor(teacher, cycle)
        title = f"reporte-profesor-{teacher}"
    else:
        return ErrorPayload(400, "invalid report type")

    try:
        return render(formato, report, title)
    except AppError as e:
        return ErrorPayload(e.status_code, e.message)


def _responder(result):
    """Elige la codificación de la respuesta según la variante del resultado."""
    if isinstance(result, BinaryPayload):
        return send_file(
            BytesIO(result.data),
            mimetype=result.content_type,
            as_attachment=True,
            download_name=result.filename,
        )
    return jsonify({"message": result.message}), result.status


# =========================================================
# Rutas API
# =========================================================

@reportes_bp.route("/reports/institutional", methods=["GET"])
@coordinador_o_admin
def reporte_institucional():
    """Reporte institucional (JSON) separado por docentes."""
    report = _reporte_institucional(_arg("cycle"))
    return jsonify(report.to_dict())


@reportes_bp.route("/reports/teacher", methods=["GET"])
@coordinador_o_admin
def reporte_profesor():
    teacher = _arg("teacher")
    if not teacher:
        return jsonify({"message": "teacher parameter required"}), 400

    report = _reporte_profesor(teacher, _arg("cycle"))
    return jsonify(report.to_dict())


@reportes_bp.route("/reports/export", methods=["GET"])
@coordinador_o_admin
def exportar_reporte():
    """Exporta el reporte pedido como PDF o Excel (attachment)."""
    result = _exportar(_arg("type"), _arg("format"), _arg("cycle"), _arg("teacher"))
    if isinstance(result, ErrorPayload):
        logger.info("Exportación rechazada (%s): %s", result.status, result.message)
    return _responder(result)


# =========================================================
# Vista HTML
# =========================================================

@reportes_bp.route("/reportes", methods=["GET"])
def vista_reportes():
    """Página de reportes; otros roles ven el panel de acceso no autorizado."""
    usuario = usuario_actual()
    rol = (usuario or {}).get("rol")
    if rol not in ROLES_REPORTES:
        return render_template(
            "reportes.html", autorizado=False, rol=rol or "Usuario",
        ), 403
    return render_template("reportes.html", autorizado=True, rol=rol, usuario=usuario)
