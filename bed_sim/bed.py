import logging
import datetime as dt
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional

from bed_sim.errors import BedNotFound, InvalidTransition, InternalInvariantViolation

logger = logging.getLogger(__name__)

DISCHARGE_HORIZON_DAYS = 3


class BedStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


def iso_date(when: dt.date) -> str:
    return when.strftime("%Y-%m-%d")


def make_default_ward_of(beds_per_ward: int = 5) -> Callable[[int], str]:
    if beds_per_ward < 1:
        raise ValueError("beds_per_ward must be >= 1")

    def ward_of(index: int) -> str:
        return f"Ward {index // beds_per_ward + 1}"

    return ward_of


default_ward_of = make_default_ward_of(5)


def bed_number(index: int, beds_per_ward: int = 5) -> str:
    """0 -> '1A', 4 -> '1E', 5 -> '2A' with five beds per ward."""
    return f"{index // beds_per_ward + 1}{chr(65 + index % beds_per_ward)}"


@dataclass(frozen=True)
class Occupant:
    patient_name: str
    admission_date: str
    expected_discharge: str

    @classmethod
    def admit(cls, patient_name: str, today: Optional[dt.date] = None,
              horizon_days: int = DISCHARGE_HORIZON_DAYS) -> "Occupant":
        today = today or dt.date.today()
        return cls(
            patient_name=patient_name,
            admission_date=iso_date(today),
            expected_discharge=iso_date(today + dt.timedelta(days=horizon_days)),
        )


@dataclass
class Bed:
    bed_id: str
    number: str
    ward: str
    status: BedStatus = BedStatus.AVAILABLE
    occupant: Optional[Occupant] = None

    @property
    def patient_name(self) -> Optional[str]:
        return self.occupant.patient_name if self.occupant else None

    def check_invariant(self):
        if (self.status == BedStatus.OCCUPIED) != (self.occupant is not None):
            msg = f"Bed {self.bed_id}: status={self.status.value} occupant={self.occupant!r}"
            logger.error("Invariant violation: %s", msg)
            raise InternalInvariantViolation(msg)

    def to_dict(self) -> dict:
        return {
            "bed_id": self.bed_id,
            "number": self.number,
            "ward": self.ward,
            "status": self.status.value,
            "patient_name": self.patient_name,
            "admission_date": self.occupant.admission_date if self.occupant else None,
            "expected_discharge": self.occupant.expected_discharge if self.occupant else None,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Bed":
        status = BedStatus(d["status"])
        occupant = None
        if d.get("patient_name") is not None:
            occupant = Occupant(d["patient_name"], d["admission_date"], d["expected_discharge"])
        bed = cls(bed_id=str(d["bed_id"]), number=str(d["number"]), ward=str(d["ward"]),
                  status=status, occupant=occupant)
        bed.check_invariant()
        return bed

    def __repr__(self):
        return f"Bed({self.bed_id}, {self.number}, {self.ward}, {self.status.value}, {self.patient_name})"


class BedRegistry:
    """Fixed pool of beds. Bed count never changes after initialize()."""

    def __init__(self, beds: Optional[List[Bed]] = None,
                 discharge_horizon_days: int = DISCHARGE_HORIZON_DAYS):
        self._beds: Dict[str, Bed] = {}
        self.discharge_horizon_days = discharge_horizon_days
        for bed in beds or []:
            if bed.bed_id in self._beds:
                raise ValueError(f"duplicate bed id {bed.bed_id!r}")
            self._beds[bed.bed_id] = bed

    @classmethod
    def initialize(cls, n: int, ward_of: Optional[Callable[[int], str]] = None,
                   beds_per_ward: int = 5,
                   statuses: Optional[Callable[[int], BedStatus]] = None,
                   discharge_horizon_days: int = DISCHARGE_HORIZON_DAYS) -> "BedRegistry":
        if n < 0:
            raise ValueError("bed count must be >= 0")
        if ward_of is None:
            ward_of = make_default_ward_of(beds_per_ward)
        beds = []
        for i in range(n):
            status = statuses(i) if statuses else BedStatus.AVAILABLE
            if status == BedStatus.OCCUPIED:
                raise InvalidTransition("initial status cannot be occupied without an occupant")
            beds.append(Bed(bed_id=f"bed-{i + 1}", number=bed_number(i, beds_per_ward),
                            ward=ward_of(i), status=status))
        return cls(beds, discharge_horizon_days=discharge_horizon_days)

    def __len__(self):
        return len(self._beds)

    def __contains__(self, bed_id):
        return bed_id in self._beds

    def _get(self, bed_id: str) -> Bed:
        try:
            return self._beds[bed_id]
        except KeyError:
            raise BedNotFound(bed_id) from None

    def get(self, bed_id: str) -> Bed:
        return replace(self._get(bed_id))

    def list(self) -> List[Bed]:
        return [replace(b) for b in self._beds.values()]

    def list_available(self) -> List[Bed]:
        return [replace(b) for b in self._beds.values() if b.status == BedStatus.AVAILABLE]

    def set_status(self, bed_id: str, new_status: BedStatus,
                   occupant_name: Optional[str] = None,
                   today: Optional[dt.date] = None) -> Bed:
        """
        Replace status and occupant together. Entering OCCUPIED stamps the
        admission date (today) and expected discharge (today + horizon);
        leaving it clears them.
        """
        new_status = BedStatus(new_status)
        bed = self._get(bed_id)
        if new_status == BedStatus.OCCUPIED and not occupant_name:
            raise InvalidTransition(f"Bed {bed_id!r}: occupied requires an occupant")
        if new_status != BedStatus.OCCUPIED and occupant_name is not None:
            raise InvalidTransition(f"Bed {bed_id!r}: {new_status.value} cannot carry an occupant")

        occupant = None
        if new_status == BedStatus.OCCUPIED:
            occupant = Occupant.admit(occupant_name, today, self.discharge_horizon_days)
        bed.status, bed.occupant = new_status, occupant
        bed.check_invariant()
        return replace(bed)

    def restore_status(self, bed_id: str, status: BedStatus, occupant: Optional[Occupant]) -> Bed:
        """Set status with a ready-made occupant (seeding, snapshot restore)."""
        bed = self._get(bed_id)
        status = BedStatus(status)
        if (status == BedStatus.OCCUPIED) != (occupant is not None):
            raise InvalidTransition(f"Bed {bed_id!r}: status/occupant mismatch")
        bed.status, bed.occupant = status, occupant
        return replace(bed)

    def counts(self) -> Dict[str, int]:
        out = {s.value: 0 for s in BedStatus}
        for b in self._beds.values():
            out[b.status.value] += 1
        return out

    def ward_summary(self) -> Dict[str, Dict[str, int]]:
        summary: Dict[str, Dict[str, int]] = {}
        for b in self._beds.values():
            w = summary.setdefault(b.ward, {"total": 0, "occupied": 0, "available": 0, "maintenance": 0})
            w["total"] += 1
            w[b.status.value] += 1
        return summary

    def check_invariants(self):
        for b in self._beds.values():
            b.check_invariant()
