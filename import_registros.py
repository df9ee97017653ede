"""
Carga masiva de planeaciones, avances y evidencias desde un Excel.

Uso:
    python import_registros.py REGISTROS_2025.xlsx --ciclo 2024-2025 [--reemplazar]

Cada hoja debe llamarse como la colección destino (planeaciones, avances,
evidencias). Las demás hojas se saltan.
"""
import argparse
import os

import pandas as pd
from dotenv import load_dotenv
from pymongo import MongoClient

from registros import COL_AVANCES, COL_EVIDENCIAS, COL_PLANEACIONES


# --------- HELPERS ---------
def norm(s: str) -> str:
    """Normaliza encabezados: mayúsculas, _ y sin tildes ni puntos."""
    s = (s or "").strip().upper().replace(".", "_")
    for a, b in (
        ("Á", "A"), ("É", "E"), ("Í", "I"), ("Ó", "O"), ("Ú", "U"),
    ):
        s = s.replace(a, b)
    s = s.replace(" ", "_")
    return s


_COMUNES = {
    "PROFESOR": "profesor",
    "DOCENTE": "profesor",
    "CICLO": "cicloEscolar",
    "CICLO_ESCOLAR": "cicloEscolar",
}

# mapa hoja -> (encabezado_normalizado -> campo en Mongo)
MAPEOS = {
    COL_PLANEACIONES: {
        **_COMUNES,
        "MATERIA": "materia",
        "ASIGNATURA": "materia",
        "ESTADO": "estado",
    },
    COL_AVANCES: {
        **_COMUNES,
        "MATERIA": "materia",
        "ASIGNATURA": "materia",
        "PORCENTAJE": "porcentajeAvance",
        "PORCENTAJE_AVANCE": "porcentajeAvance",
        "AVANCE": "porcentajeAvance",
        "%_AVANCE": "porcentajeAvance",
        "CUMPLIMIENTO": "cumplimiento",
    },
    COL_EVIDENCIAS: {
        **_COMUNES,
        "NOMBRE": "nombre",
        "EVIDENCIA": "nombre",
        "HORAS": "horasAcreditadas",
        "HORAS_ACREDITADAS": "horasAcreditadas",
        "ESTADO": "estado",
    },
}

NUMERICOS = {"porcentajeAvance", "horasAcreditadas"}
CATEGORICOS = {"estado", "cumplimiento"}


def normalizar_valor(campo, valor):
    """Devuelve el valor listo para Mongo, o None si no sirve."""
    if pd.isna(valor):
        return None
    if campo in NUMERICOS:
        num = pd.to_numeric(valor, errors="coerce")
        return None if pd.isna(num) else float(num)
    s = str(valor).strip()
    if campo in CATEGORICOS:
        # "No cumplido" -> "no_cumplido"
        s = s.lower().replace(" ", "_")
    return s or None


def _fila_valida(data):
    if not data.get("profesor"):
        return False
    pct = data.get("porcentajeAvance")
    if pct is not None and not 0 <= pct <= 100:
        return False
    horas = data.get("horasAcreditadas")
    if horas is not None and horas < 0:
        return False
    return True


def filas_a_documentos(df, coleccion, ciclo=None):
    """Convierte una hoja en documentos. Devuelve (docs, filas_saltadas)."""
    mapeo = MAPEOS[coleccion]
    col_map = {}
    for original in df.columns:
        encabezado = norm(str(original))
        if encabezado in mapeo:
            col_map[original] = mapeo[encabezado]

    docs, saltadas = [], 0
    for idx, row in df.iterrows():
        data = {}
        for original_col, campo in col_map.items():
            valor = normalizar_valor(campo, row.get(original_col))
            if valor is not None:
                data[campo] = valor

        if not data:
            continue
        if ciclo and not data.get("cicloEscolar"):
            data["cicloEscolar"] = ciclo

        if not _fila_valida(data):
            print(f"  [SKIP] Fila {idx+2}: datos incompletos o fuera de rango -> {data}")
            saltadas += 1
            continue
        docs.append(data)
    return docs, saltadas


def importar(db, archivo, ciclo=None, reemplazar=False):
    """Importa todas las hojas reconocidas. Devuelve {coleccion: (insertados, saltados)}."""
    xls = pd.ExcelFile(archivo)
    print("Hojas encontradas:", xls.sheet_names)

    resultado = {}
    for sheet_name in xls.sheet_names:
        coleccion = sheet_name.strip().lower()
        if coleccion not in MAPEOS:
            print(f"  [AVISO] Hoja '{sheet_name}' no corresponde a ninguna colección. Se salta.")
            continue

        print(f"\n--- Procesando hoja: {sheet_name} ---")
        df = pd.read_excel(xls, sheet_name=sheet_name)
        docs, saltadas = filas_a_documentos(df, coleccion, ciclo)

        if reemplazar and ciclo:
            res = db[coleccion].delete_many({"cicloEscolar": ciclo})
            print(f"  Borrados {res.deleted_count} registros del ciclo {ciclo}")
        if docs:
            db[coleccion].insert_many(docs)

        resultado[coleccion] = (len(docs), saltadas)
    return resultado


def _db_desde_entorno():
    uri = os.getenv("MONGO_URI", "mongodb://localhost:27017/planeacion_db")
    client = MongoClient(uri)
    db = client.get_default_database(default="planeacion_db")
    return db


def main(argv=None):
    parser = argparse.ArgumentParser(description="Importa registros académicos desde Excel")
    parser.add_argument("archivo")
    parser.add_argument("--ciclo", help="ciclo escolar para filas sin ciclo (ej. 2024-2025)")
    parser.add_argument("--reemplazar", action="store_true",
                        help="borra los registros del ciclo antes de importar")
    args = parser.parse_args(argv)

    if not os.path.exists(args.archivo):
        print(f"[ERROR] No se encontró el archivo {args.archivo}")
        return 1
    if args.reemplazar and not args.ciclo:
        print("[ERROR] --reemplazar requiere --ciclo")
        return 1

    load_dotenv()
    resultado = importar(_db_desde_entorno(), args.archivo, args.ciclo, args.reemplazar)

    print("\n===================================")
    for coleccion, (insertados, saltados) in resultado.items():
        print(f"{coleccion:13}: {insertados} insertados, {saltados} saltados")
    print("Listo.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
