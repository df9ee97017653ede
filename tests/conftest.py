"""
Fixtures compartidas.

La DB es un doble en memoria con la parte de la API de PyMongo que usa la
app (find con filtro de igualdad y proyección, find_one, sort), inyectado
como app.mongo.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest
from bson.objectid import ObjectId

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app import create_app  # noqa: E402

JWT_SECRET = "test-secret"


class FakeCursor(list):
    def sort(self, keys):
        for campo, orden in reversed(keys):
            super().sort(key=lambda d: d.get(campo) or "", reverse=orden < 0)
        return self


class FakeCollection:
    def __init__(self, docs=None):
        self.docs = [dict(d) for d in (docs or [])]
        self.queries = []

    @staticmethod
    def _match(doc, filtro):
        return all(doc.get(k) == v for k, v in filtro.items())

    @staticmethod
    def _project(doc, projection):
        if not projection:
            return dict(doc)
        return {k: v for k, v in doc.items() if projection.get(k, 1)}

    def find(self, filtro=None, projection=None):
        filtro = filtro or {}
        self.queries.append(filtro)
        return FakeCursor(
            self._project(d, projection) for d in self.docs if self._match(d, filtro)
        )

    def find_one(self, filtro=None, projection=None):
        found = self.find(filtro, projection)
        return found[0] if found else None

    def insert_many(self, docs):
        self.docs.extend(dict(d) for d in docs)


class FakeDB:
    def __init__(self, **colecciones):
        self._cols = {}
        for nombre, docs in colecciones.items():
            self._cols[nombre] = FakeCollection(docs)

    def __getitem__(self, nombre):
        return self._cols.setdefault(nombre, FakeCollection())

    def __getattr__(self, nombre):
        if nombre.startswith("_"):
            raise AttributeError(nombre)
        return self[nombre]


ADMIN_ID = ObjectId()
COORD_ID = ObjectId()
DOCENTE_ID = ObjectId()
INACTIVO_ID = ObjectId()

USUARIOS = [
    {"_id": ADMIN_ID, "nombre": "Admin", "email": "admin@x.edu", "rol": "admin",
     "activo": True, "password": "hash"},
    {"_id": COORD_ID, "nombre": "Coordinadora", "email": "coord@x.edu", "rol": "coordinador",
     "activo": True, "password": "hash"},
    {"_id": DOCENTE_ID, "nombre": "Docente", "email": "doc@x.edu", "rol": "docente",
     "activo": True, "password": "hash"},
    {"_id": INACTIVO_ID, "nombre": "Inactivo", "email": "old@x.edu", "rol": "admin",
     "activo": False, "password": "hash"},
]

PLANEACIONES = [
    {"profesor": "Ana", "materia": "Matemáticas", "estado": "aprobado", "cicloEscolar": "2024-2025"},
    {"profesor": "Ana", "materia": "Física", "estado": "rechazado", "cicloEscolar": "2024-2025"},
    {"profesor": "Luis", "materia": "Historia", "estado": "aprobado", "cicloEscolar": "2023-2024"},
]

AVANCES = [
    {"profesor": "Ana", "materia": "Matemáticas", "cicloEscolar": "2024-2025",
     "porcentajeAvance": 80, "cumplimiento": "cumplido"},
    {"profesor": "Luis", "materia": "Historia", "cicloEscolar": "2023-2024",
     "porcentajeAvance": 40, "cumplimiento": "parcial"},
]

EVIDENCIAS = [
    {"profesor": "Ana", "cicloEscolar": "2024-2025", "nombre": "Taller",
     "horasAcreditadas": 5, "estado": "validada"},
]


def make_token(user_id, secret=JWT_SECRET, **extra):
    payload = {"id": str(user_id), "exp": datetime.now(timezone.utc) + timedelta(hours=1)}
    payload.update(extra)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_header(user_id):
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def fake_db():
    return FakeDB(
        usuarios=USUARIOS,
        planeaciones=PLANEACIONES,
        avances=AVANCES,
        evidencias=EVIDENCIAS,
    )


@pytest.fixture
def app(fake_db):
    app = create_app({
        "TESTING": True,
        "MONGO_URI": None,
        "JWT_SECRET": JWT_SECRET,
        "APP_ENV": "development",
    })
    app.mongo = fake_db
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers():
    return auth_header(ADMIN_ID)


@pytest.fixture
def coord_headers():
    return auth_header(COORD_ID)
