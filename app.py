import logging
import os

from bson.errors import InvalidId
from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_pymongo import PyMongo
from werkzeug.exceptions import HTTPException

from errores import AppError
from notify import init_email_service
from reportes_blueprint import reportes_bp
from usuarios_blueprint import usuarios_bp

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

RUTAS_DISPONIBLES = [
    "GET    /reports/institutional",
    "GET    /reports/teacher",
    "GET    /reports/export",
    "GET    /reportes",
    "GET    /usuarios",
    "GET    /health",
]


# ----------------- Config -----------------
def _config_desde_entorno():
    return {
        "MONGO_URI": os.environ.get("MONGO_URI", "mongodb://localhost:27017/planeacion_db"),
        "JWT_SECRET": os.environ.get("JWT_SECRET", "secreto_backup"),
        "APP_ENV": os.environ.get("APP_ENV", "development"),
        "NOTIFICATIONS_ENABLED": os.environ.get("NOTIFICATIONS_ENABLED", "false"),
        "SMTP_HOST": os.environ.get("SMTP_HOST", ""),
        "SMTP_PORT": os.environ.get("SMTP_PORT", "587"),
        "SMTP_USER": os.environ.get("SMTP_USER", ""),
        "SMTP_PASS": os.environ.get("SMTP_PASS", ""),
        "SMTP_FROM": os.environ.get("SMTP_FROM", ""),
        "ALERTS_TO": os.environ.get("ALERTS_TO", ""),
    }


def _es_produccion(app):
    return app.config.get("APP_ENV") == "production"


# ----------------- Errores -----------------
def _registrar_errores(app):

    @app.errorhandler(AppError)
    def _app_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(InvalidId)
    def _invalid_id(e):
        return jsonify({"message": "ID inválido"}), 400

    @app.errorhandler(404)
    def _no_encontrada(e):
        return jsonify({
            "message": f"Ruta no encontrada: {request.method} {request.path}",
            "availableRoutes": RUTAS_DISPONIBLES,
        }), 404

    @app.errorhandler(Exception)
    def _error_global(e):
        if isinstance(e, HTTPException):
            return jsonify({"message": e.description}), e.code

        logger.exception("ERROR GLOBAL: %s", e)
        dev = not _es_produccion(app)
        return jsonify({
            "message": "Error interno del servidor",
            "error": str(e) if dev else "Something went wrong",
        }), 500


# ----------------- App -----------------
def create_app(config=None):
    app = Flask(__name__)
    app.config.update(_config_desde_entorno())
    if config:
        app.config.update(config)

    # UNA sola instancia de PyMongo; los blueprints usan app.mongo
    app.mongo = None
    if app.config.get("MONGO_URI"):
        mongo = PyMongo(app)
        app.mongo = mongo.db
        logger.info("MongoDB configurado")

    init_email_service(app.config)

    app.register_blueprint(reportes_bp)
    app.register_blueprint(usuarios_bp)
    _registrar_errores(app)

    if not _es_produccion(app):
        @app.before_request
        def _log_request():
            app.logger.info("Request: %s %s", request.method, request.full_path.rstrip("?"))

    @app.route("/")
    def index():
        return jsonify({
            "message": "Backend de reportes activo",
            "endpoints": {
                "reportes": "/reports",
                "usuarios": "/usuarios",
                "vista": "/reportes",
            },
        })

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    return app


# ----------------- Main -----------------
if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 4000))
    logger.info(
        "Servidor en puerto %s - ambiente %s", port, app.config["APP_ENV"],
    )
    app.run(host="0.0.0.0", port=port, debug=not _es_produccion(app))
