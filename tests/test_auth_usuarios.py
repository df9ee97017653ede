"""
Tests del middleware de autenticación y del listado de usuarios.
"""

from datetime import datetime, timedelta, timezone

import jwt
from bson.objectid import ObjectId

from conftest import ADMIN_ID, INACTIVO_ID, JWT_SECRET, auth_header, make_token


class TestTokenRequired:

    def test_missing_token(self, client):
        resp = client.get("/usuarios")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "No autorizado, token no proporcionado"

    def test_bad_signature(self, client):
        token = make_token(ObjectId(), secret="otro-secreto")
        resp = client.get("/usuarios", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token inválido o expirado"

    def test_expired_token(self, client):
        token = jwt.encode(
            {"id": str(ADMIN_ID), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            JWT_SECRET, algorithm="HS256",
        )
        resp = client.get("/usuarios", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_inactive_user(self, client):
        resp = client.get("/usuarios", headers=auth_header(INACTIVO_ID))
        assert resp.status_code == 401
        assert "inactivo" in resp.get_json()["message"]

    def test_unknown_user(self, client):
        resp = client.get("/usuarios", headers=auth_header(ObjectId()))
        assert resp.status_code == 401

    def test_token_without_id(self, client):
        token = jwt.encode({"rol": "admin"}, JWT_SECRET, algorithm="HS256")
        resp = client.get("/usuarios", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


class TestUsuarios:

    def test_lists_users_without_password(self, client, admin_headers):
        resp = client.get("/usuarios", headers=admin_headers)

        assert resp.status_code == 200
        usuarios = resp.get_json()
        assert len(usuarios) == 4
        assert all("password" not in u for u in usuarios)
        assert all(isinstance(u["_id"], str) for u in usuarios)

    def test_filter_by_role(self, client, coord_headers):
        usuarios = client.get("/usuarios?rol=docente", headers=coord_headers).get_json()
        assert [u["nombre"] for u in usuarios] == ["Docente"]

    def test_no_matches_is_404(self, client, admin_headers):
        resp = client.get("/usuarios?rol=director", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "No se encontraron usuarios"
