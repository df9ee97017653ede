# registros.py
# =========================================================
#  Acceso a registros (planeaciones / avances / evidencias)
#  Solo lectura: el resto del sistema es dueño de los datos.
# =========================================================

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)

COL_PLANEACIONES = "planeaciones"
COL_AVANCES = "avances"
COL_EVIDENCIAS = "evidencias"


class PlanStatus(str, Enum):
    DRAFT = "borrador"
    SUBMITTED = "enviado"
    APPROVED = "aprobado"
    REJECTED = "rechazado"


class Compliance(str, Enum):
    COMPLIANT = "cumplido"
    PARTIAL = "parcial"
    NONCOMPLIANT = "no_cumplido"


class EvidenceStatus(str, Enum):
    PENDING = "pendiente"
    VALIDATED = "validada"
    REJECTED = "rechazada"


@dataclass
class Plan:
    teacher: Optional[str]
    subject: str = ""
    status: Optional[PlanStatus] = None
    cycle: Optional[str] = None

    def to_dict(self):
        return {
            "subject": self.subject,
            "status": self.status.value if self.status else None,
            "cycle": self.cycle,
        }


@dataclass
class Progress:
    teacher: Optional[str]
    subject: str = ""
    cycle: Optional[str] = None
    percent_complete: float = 0.0
    compliance: Optional[Compliance] = None

    def to_dict(self):
        return {
            "subject": self.subject,
            "percentComplete": self.percent_complete,
            "compliance": self.compliance.value if self.compliance else None,
        }


@dataclass
class Evidence:
    teacher: Optional[str]
    cycle: Optional[str] = None
    name: str = ""
    accredited_hours: float = 0
    status: Optional[EvidenceStatus] = None

    def to_dict(self):
        return {
            "name": self.name,
            "accreditedHours": self.accredited_hours,
            "status": self.status.value if self.status else None,
        }


@dataclass
class ScopedRecords:
    plans: List[Plan] = field(default_factory=list)
    progress: List[Progress] = field(default_factory=list)
    evidence: List[Evidence] = field(default_factory=list)


# =========================================================
# Conversión documento Mongo -> registro tipado
# =========================================================

def _enum(enum_cls, valor, doc):
    """Devuelve la variante del enum o None (con aviso) si el valor no se reconoce."""
    if valor is None or valor == "":
        return None
    try:
        return enum_cls(valor)
    except ValueError:
        logger.warning(
            "Valor desconocido para %s: %r (documento %s)",
            enum_cls.__name__, valor, doc.get("_id"),
        )
        return None


def _num(valor, campo, doc):
    """Números faltantes cuentan como 0; los no numéricos también, con aviso."""
    if valor is None or valor == "":
        return 0
    try:
        return float(valor)
    except (TypeError, ValueError):
        logger.warning(
            "Valor no numérico para %s: %r (documento %s)", campo, valor, doc.get("_id"),
        )
        return 0


def plan_from_doc(doc: dict) -> Plan:
    return Plan(
        teacher=doc.get("profesor"),
        subject=doc.get("materia", ""),
        status=_enum(PlanStatus, doc.get("estado"), doc),
        cycle=doc.get("cicloEscolar"),
    )


def progress_from_doc(doc: dict) -> Progress:
    return Progress(
        teacher=doc.get("profesor"),
        subject=doc.get("materia", ""),
        cycle=doc.get("cicloEscolar"),
        percent_complete=_num(doc.get("porcentajeAvance"), "porcentajeAvance", doc),
        compliance=_enum(Compliance, doc.get("cumplimiento"), doc),
    )


def evidence_from_doc(doc: dict) -> Evidence:
    return Evidence(
        teacher=doc.get("profesor"),
        cycle=doc.get("cicloEscolar"),
        name=doc.get("nombre", ""),
        accredited_hours=_num(doc.get("horasAcreditadas"), "horasAcreditadas", doc),
        status=_enum(EvidenceStatus, doc.get("estado"), doc),
    )


# =========================================================
# Consultas
# =========================================================

def build_filter(cycle=None, teacher=None) -> dict:
    """Filtro de coincidencia exacta; un campo ausente no restringe."""
    filtro = {}
    if cycle:
        filtro["cicloEscolar"] = cycle
    if teacher:
        filtro["profesor"] = teacher
    return filtro


def _find(collection, filtro, convert):
    return [convert(d) for d in collection.find(filtro)]


def fetch_scoped(db, cycle=None, teacher=None) -> ScopedRecords:
    """
    Trae planeaciones, avances y evidencias del alcance pedido.

    Las tres consultas corren en paralelo; cualquier error del driver
    se propaga tal cual al llamador.
    """
    filtro = build_filter(cycle, teacher)
    with ThreadPoolExecutor(max_workers=3, thread_name_prefix="registros") as pool:
        f_plans = pool.submit(_find, db[COL_PLANEACIONES], filtro, plan_from_doc)
        f_progress = pool.submit(_find, db[COL_AVANCES], filtro, progress_from_doc)
        f_evidence = pool.submit(_find, db[COL_EVIDENCIAS], filtro, evidence_from_doc)

        registros = ScopedRecords(
            plans=f_plans.result(),
            progress=f_progress.result(),
            evidence=f_evidence.result(),
        )

    logger.debug(
        "fetch_scoped %s -> %d planeaciones, %d avances, %d evidencias",
        filtro, len(registros.plans), len(registros.progress), len(registros.evidence),
    )
    return registros
