# usuarios_blueprint.py
# Listado de usuarios para coordinadores y administradores

from flask import Blueprint, current_app, jsonify, request

from auth import coordinador_o_admin

usuarios_bp = Blueprint("usuarios", __name__)


@usuarios_bp.route("/usuarios", methods=["GET"])
@coordinador_o_admin
def obtener_usuarios():
    """
    Lista de usuarios sin el campo password.
    Ejemplo: GET /usuarios?rol=docente
    """
    q = {}
    rol = (request.args.get("rol") or "").strip()
    if rol:
        q["rol"] = rol

    out = []
    for u in current_app.mongo.usuarios.find(q, {"password": 0}).sort([("nombre", 1)]):
        u["_id"] = str(u["_id"])
        out.append(u)

    if not out:
        return jsonify({"message": "No se encontraron usuarios"}), 404
    return jsonify(out)
