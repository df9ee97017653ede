# agregacion.py
# =========================================================
#  Motor de agregación de reportes
#  Funciones puras: reciben registros ya filtrados y devuelven
#  estructuras de reporte. No tocan la DB.
# =========================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from registros import (
    Compliance, Evidence, EvidenceStatus, Plan, PlanStatus, Progress,
)

TODOS_LOS_CICLOS = "Todos los ciclos"


def period_label(cycle=None):
    return cycle or TODOS_LOS_CICLOS


def _now():
    return datetime.now(timezone.utc)


def _round2(valor):
    return round(float(valor), 2)


def _rate(parte, total):
    """Porcentaje con 2 decimales; 0 si el denominador está vacío."""
    if not total:
        return 0
    return _round2(parte / total * 100)


def _average_progress(progress):
    if not progress:
        return 0
    return _round2(sum(p.percent_complete for p in progress) / len(progress))


def _total_hours(evidence):
    return sum(e.accredited_hours for e in evidence)


def _frequency(enum_cls, valores):
    """Tabla de frecuencias con todas las variantes del enum inicializadas en 0."""
    tabla = {v: 0 for v in enum_cls}
    for v in valores:
        if v is not None:
            tabla[v] += 1
    return tabla


def distinct_teachers(plans, progress, evidence):
    """Profesores no vacíos, en orden de primera aparición (planes, avances, evidencias)."""
    vistos = {}
    for registro in [*plans, *progress, *evidence]:
        if registro.teacher and registro.teacher not in vistos:
            vistos[registro.teacher] = None
    return list(vistos)


# =========================================================
# Estructuras derivadas
# =========================================================

@dataclass
class TeacherSummary:
    plan_counts_by_status: Dict[PlanStatus, int]
    avg_progress: float
    progress_counts_by_compliance: Dict[Compliance, int]
    plan_count: int
    progress_count: int
    evidence_count: int
    validated_evidence_count: int
    total_hours: float

    def to_dict(self):
        return {
            "planCount": self.plan_count,
            "planCountsByStatus": {k.value: v for k, v in self.plan_counts_by_status.items()},
            "progressCount": self.progress_count,
            "avgProgress": self.avg_progress,
            "progressCountsByCompliance": {
                k.value: v for k, v in self.progress_counts_by_compliance.items()
            },
            "evidenceCount": self.evidence_count,
            "validatedEvidenceCount": self.validated_evidence_count,
            "totalHours": self.total_hours,
        }


@dataclass
class TeacherRollup:
    teacher: str
    plans: List[Plan]
    progress: List[Progress]
    evidence: List[Evidence]
    summary: TeacherSummary

    def to_dict(self):
        return {
            "teacher": self.teacher,
            "plans": [p.to_dict() for p in self.plans],
            "progress": [p.to_dict() for p in self.progress],
            "evidence": [e.to_dict() for e in self.evidence],
            "summary": self.summary.to_dict(),
        }


@dataclass
class OverallSummary:
    teacher_count: int
    plan_count: int
    progress_count: int
    evidence_count: int
    approved_plan_count: int
    approval_rate: float
    compliant_progress_count: int
    compliance_rate: float
    total_hours: float

    def to_dict(self):
        return {
            "teacherCount": self.teacher_count,
            "planCount": self.plan_count,
            "progressCount": self.progress_count,
            "evidenceCount": self.evidence_count,
            "approvedPlanCount": self.approved_plan_count,
            "approvalRate": self.approval_rate,
            "compliantProgressCount": self.compliant_progress_count,
            "complianceRate": self.compliance_rate,
            "totalHours": self.total_hours,
        }


@dataclass
class InstitutionalReport:
    period: str
    generated_at: datetime
    overall_summary: OverallSummary
    teacher_rollups: List[TeacherRollup] = field(default_factory=list)

    kind = "institutional"

    def is_empty(self):
        return not self.teacher_rollups

    def to_dict(self):
        return {
            "type": self.kind,
            "period": self.period,
            "generatedAt": self.generated_at.isoformat(),
            "overallSummary": self.overall_summary.to_dict(),
            "teacherRollups": [r.to_dict() for r in self.teacher_rollups],
        }


@dataclass
class TeacherReport:
    teacher: str
    period: str
    generated_at: datetime
    plan_count: int
    progress_count: int
    evidence_count: int
    average_progress: float

    kind = "teacher"

    def is_empty(self):
        return not (self.plan_count or self.progress_count or self.evidence_count)

    def to_dict(self):
        return {
            "type": self.kind,
            "teacher": self.teacher,
            "period": self.period,
            "generatedAt": self.generated_at.isoformat(),
            "planCount": self.plan_count,
            "progressCount": self.progress_count,
            "evidenceCount": self.evidence_count,
            "averageProgress": self.average_progress,
        }


# =========================================================
# Operaciones
# =========================================================

def _teacher_summary(plans, progress, evidence) -> TeacherSummary:
    return TeacherSummary(
        plan_counts_by_status=_frequency(PlanStatus, (p.status for p in plans)),
        avg_progress=_average_progress(progress),
        progress_counts_by_compliance=_frequency(Compliance, (p.compliance for p in progress)),
        plan_count=len(plans),
        progress_count=len(progress),
        evidence_count=len(evidence),
        validated_evidence_count=sum(
            1 for e in evidence if e.status is EvidenceStatus.VALIDATED
        ),
        total_hours=_total_hours(evidence),
    )


def build_institutional_report(
    plans: List[Plan],
    progress: List[Progress],
    evidence: List[Evidence],
    period: str,
    generated_at: Optional[datetime] = None,
) -> InstitutionalReport:
    """
    Reporte institucional separado por docentes.

    Los totales generales se calculan sobre los conjuntos completos
    (filtrados solo por ciclo), no sobre la suma de los docentes:
    registros sin profesor cuentan en los totales pero no generan rollup.
    """
    teachers = distinct_teachers(plans, progress, evidence)

    rollups = []
    for teacher in teachers:
        planes = [p for p in plans if p.teacher == teacher]
        avs = [a for a in progress if a.teacher == teacher]
        evids = [e for e in evidence if e.teacher == teacher]
        rollups.append(TeacherRollup(
            teacher=teacher,
            plans=planes,
            progress=avs,
            evidence=evids,
            summary=_teacher_summary(planes, avs, evids),
        ))

    aprobadas = sum(1 for p in plans if p.status is PlanStatus.APPROVED)
    cumplidos = sum(1 for a in progress if a.compliance is Compliance.COMPLIANT)

    overall = OverallSummary(
        teacher_count=len(teachers),
        plan_count=len(plans),
        progress_count=len(progress),
        evidence_count=len(evidence),
        approved_plan_count=aprobadas,
        approval_rate=_rate(aprobadas, len(plans)),
        compliant_progress_count=cumplidos,
        compliance_rate=_rate(cumplidos, len(progress)),
        total_hours=_total_hours(evidence),
    )

    return InstitutionalReport(
        period=period,
        generated_at=generated_at or _now(),
        overall_summary=overall,
        teacher_rollups=rollups,
    )


def build_teacher_report(
    teacher: str,
    plans: List[Plan],
    progress: List[Progress],
    evidence: List[Evidence],
    period: str,
    generated_at: Optional[datetime] = None,
) -> TeacherReport:
    if not teacher:
        raise ValueError("teacher es obligatorio")

    planes = [p for p in plans if p.teacher == teacher]
    avs = [a for a in progress if a.teacher == teacher]
    evids = [e for e in evidence if e.teacher == teacher]

    return TeacherReport(
        teacher=teacher,
        period=period,
        generated_at=generated_at or _now(),
        plan_count=len(planes),
        progress_count=len(avs),
        evidence_count=len(evids),
        average_progress=_average_progress(avs),
    )
