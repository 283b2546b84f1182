import itertools
import math
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from bed_sim.errors import ValidationError, PatientNotFound, InternalInvariantViolation

logger = logging.getLogger(__name__)

MIN_AGE, MAX_AGE = 1, 120
MIN_SEVERITY, MAX_SEVERITY = 1, 5

SEVERITY_LABELS = {5: "Critical", 4: "High", 3: "Medium", 2: "Low", 1: "Minimal"}


def severity_label(severity: int) -> str:
    if severity >= 5:
        return SEVERITY_LABELS[5]
    return SEVERITY_LABELS.get(severity, "Minimal")


@dataclass
class Patient:
    patient_id: str
    name: str
    age: int
    condition: str
    severity: int
    waiting_time: float = 0.0

    priority_rank: Optional[int] = None
    score: Optional[float] = None

    def set_rank(self, rank: int, score: float):
        self.priority_rank = rank
        self.score = score

    def clear_rank(self):
        self.priority_rank = None
        self.score = None

    @property
    def is_ranked(self) -> bool:
        return self.priority_rank is not None

    def check_invariant(self):
        if (self.priority_rank is None) != (self.score is None):
            logger.error("Invariant violation on patient %s: rank=%s score=%s",
                         self.patient_id, self.priority_rank, self.score)
            raise InternalInvariantViolation(f"Patient {self.patient_id}: rank/score mismatch")

    def to_dict(self) -> dict:
        return {
            "patient_id": self.patient_id,
            "name": self.name,
            "age": self.age,
            "condition": self.condition,
            "severity": self.severity,
            "waiting_time": self.waiting_time,
            "priority_rank": self.priority_rank,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Patient":
        p = cls(
            patient_id=str(d["patient_id"]),
            name=str(d["name"]),
            age=int(d["age"]),
            condition=str(d["condition"]),
            severity=int(d["severity"]),
            waiting_time=float(d.get("waiting_time", 0.0)),
            priority_rank=d.get("priority_rank"),
            score=d.get("score"),
        )
        p.check_invariant()
        return p

    def __repr__(self):
        return (f"Patient({self.patient_id}, {self.name}, sev={self.severity}, "
                f"wait={self.waiting_time:.2f}h, rank={self.priority_rank}, score={self.score})")


def _as_int(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def validate_patient_fields(name, age, severity, condition) -> Dict[str, str]:
    """
    Check every field and return {field: message} for all failures
    (empty dict when valid). Never stops at the first bad field.
    """
    errors = {}
    if not isinstance(name, str) or not name.strip():
        errors["name"] = "Name is required"
    a = _as_int(age)
    if a is None or not (MIN_AGE <= a <= MAX_AGE):
        errors["age"] = f"Valid age is required ({MIN_AGE}-{MAX_AGE})"
    s = _as_int(severity)
    if s is None or not (MIN_SEVERITY <= s <= MAX_SEVERITY):
        errors["severity"] = f"Severity level is required ({MIN_SEVERITY}-{MAX_SEVERITY})"
    if not isinstance(condition, str) or not condition.strip():
        errors["condition"] = "Condition is required"
    return errors


class PatientQueue:
    """
    Patients waiting for a bed, kept in insertion order. A ranking pass
    reorders the view returned by list(); any add/remove drops the ranking.
    """

    def __init__(self, start_id: int = 1):
        self._patients: List[Patient] = []
        self._ids = itertools.count(start_id)
        self._next_id = start_id
        self._ranked = False

    def __len__(self):
        return len(self._patients)

    def __contains__(self, patient_id):
        return any(p.patient_id == patient_id for p in self._patients)

    @property
    def ranked(self) -> bool:
        return self._ranked

    @property
    def next_id(self) -> int:
        return self._next_id

    def issue_id(self) -> str:
        n = next(self._ids)
        self._next_id = n + 1
        return str(n)

    def add(self, name, age, severity, condition) -> Patient:
        errors = validate_patient_fields(name, age, severity, condition)
        if errors:
            raise ValidationError(errors)
        patient = Patient(
            patient_id=self.issue_id(),
            name=name.strip(),
            age=_as_int(age),
            condition=condition.strip(),
            severity=_as_int(severity),
            waiting_time=0.0,
        )
        self._patients.append(patient)
        self.invalidate_ranking()
        logger.info("Queued patient %s (%s, severity %d)", patient.patient_id, patient.name, patient.severity)
        return replace(patient)

    def add_existing(self, patient: Patient) -> Patient:
        """Insert an already-built patient as-is (restore, seeding)."""
        errors = validate_patient_fields(patient.name, patient.age, patient.severity, patient.condition)
        if errors:
            raise ValidationError(errors)
        if not math.isfinite(patient.waiting_time) or patient.waiting_time < 0:
            raise ValidationError({"waiting_time": "Waiting time must be a finite number >= 0"})
        if patient.patient_id in self:
            raise ValueError(f"duplicate patient id {patient.patient_id!r}")
        patient.check_invariant()
        if self._ranked:
            self.invalidate_ranking()
        self._patients.append(replace(patient))
        # keep generated ids clear of restored numeric ids
        n = _as_int(patient.patient_id)
        if n is not None and n >= self._next_id:
            self._ids = itertools.count(n + 1)
            self._next_id = n + 1
        return replace(patient)

    def get(self, patient_id: str) -> Patient:
        for p in self._patients:
            if p.patient_id == patient_id:
                return replace(p)
        raise PatientNotFound(patient_id)

    def remove(self, patient_id: str) -> Optional[Patient]:
        for i, p in enumerate(self._patients):
            if p.patient_id == patient_id:
                del self._patients[i]
                self.invalidate_ranking()
                logger.info("Removed patient %s from queue", patient_id)
                return p
        return None

    def advance_time(self, delta_hours: float):
        if not math.isfinite(delta_hours) or delta_hours < 0:
            raise ValueError("delta_hours must be a finite number >= 0")
        for p in self._patients:
            p.waiting_time += delta_hours

    def invalidate_ranking(self):
        for p in self._patients:
            p.clear_rank()
        self._ranked = False

    def apply_ranking(self, ranks: List[int], scores: List[float]):
        """Store rank/score per patient, aligned with insertion order."""
        if len(ranks) != len(self._patients) or len(scores) != len(self._patients):
            raise InternalInvariantViolation("ranking does not cover the current queue")
        for p, r, s in zip(self._patients, ranks, scores):
            p.set_rank(int(r), float(s))
        self._ranked = bool(self._patients)

    def resume_ranking(self):
        """Mark restored rank/score fields as the current ranking."""
        ranks = sorted(p.priority_rank for p in self._patients if p.is_ranked)
        if not self._patients or ranks != list(range(1, len(self._patients) + 1)):
            raise ValueError("restored ranking must cover the whole queue with ranks 1..N")
        for p in self._patients:
            if not (math.isfinite(p.score) and 0.0 <= p.score <= 1.0):
                raise ValueError(f"restored score for patient {p.patient_id} must lie in [0, 1]")
        self._ranked = True

    def members(self) -> List[Patient]:
        """Live patients in insertion order. For the priority engine only."""
        return self._patients

    def list(self) -> List[Patient]:
        patients = [replace(p) for p in self._patients]
        if self._ranked:
            patients.sort(key=lambda p: p.priority_rank)
        return patients

    def check_invariants(self):
        for p in self._patients:
            p.check_invariant()
