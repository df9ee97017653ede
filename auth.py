# auth.py
# =========================================================
#  Autenticación por JWT y control de roles
#  Los tokens los emite el servicio de login; acá solo se verifican.
# =========================================================

import logging
from functools import wraps

import jwt
from bson.objectid import ObjectId
from bson.errors import InvalidId
from flask import current_app, g, jsonify, request

logger = logging.getLogger(__name__)

ROLES_REPORTES = ("coordinador", "admin")


def _token_from_request():
    """Token desde 'Authorization: Bearer <jwt>' o, para las vistas HTML, la cookie 'token'."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer"):
        partes = auth_header.split(" ")
        if len(partes) > 1 and partes[1]:
            return partes[1]
    return request.cookies.get("token")


def _load_user(token):
    """Decodifica el token y trae el usuario activo (sin password) o None."""
    data = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=["HS256"])
    if not data.get("id"):
        return None
    try:
        _id = ObjectId(data["id"])
    except (InvalidId, TypeError):
        return None
    usuario = current_app.mongo.usuarios.find_one({"_id": _id}, {"password": 0})
    if not usuario or not usuario.get("activo"):
        return None
    return usuario


def usuario_actual():
    """Usuario autenticado o None; no corta la request (para páginas HTML)."""
    token = _token_from_request()
    if not token:
        return None
    try:
        return _load_user(token)
    except jwt.InvalidTokenError:
        return None


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = _token_from_request()
        if not token:
            return jsonify({"message": "No autorizado, token no proporcionado"}), 401

        try:
            usuario = _load_user(token)
        except jwt.InvalidTokenError as e:
            logger.info("Token rechazado: %s", e)
            return jsonify({"message": "Token inválido o expirado"}), 401

        if usuario is None:
            return jsonify({
                "message": "Token inválido, usuario no existe o está inactivo"
            }), 401

        g.usuario = usuario
        return f(*args, **kwargs)
    return decorated


def roles_required(*roles):
    """Exige token válido y que el rol del usuario esté en `roles`."""
    def wrapper(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if g.usuario.get("rol") not in roles:
                return jsonify({
                    "message": "Acceso denegado. Se requieren permisos de "
                               + " o ".join(roles) + "."
                }), 403
            return f(*args, **kwargs)
        return token_required(decorated)
    return wrapper


coordinador_o_admin = roles_required(*ROLES_REPORTES)
