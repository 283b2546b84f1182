# engine.py
"""
HospitalEngine: the command/query surface a dashboard talks to.

All state (bed registry + patient queue) sits behind one re-entrant lock, so
each public call is a single critical section. place_patient is the only call
that touches both sides and it either fully applies or raises before any
change.
"""
import logging
import random
import datetime as dt
from threading import RLock
from typing import Dict, List, Optional

from bed_sim.bed import Bed, BedRegistry, BedStatus, make_default_ward_of, DISCHARGE_HORIZON_DAYS
from bed_sim.patient import Patient, PatientQueue
from bed_sim.errors import BedSimError, BedNotAvailable, InvalidTransition
from bed_sim.metrics import Statistics, compute_statistics
from bed_sim.policy import DEFAULT_WEIGHTS, rank_queue, reset_ranking, check_weights
from bed_sim.utils import seed_beds, demo_patients
from bed_sim.config import ENGINE_CONFIG

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class HospitalEngine:
    def __init__(
        self,
        registry: BedRegistry,
        queue: Optional[PatientQueue] = None,
        weights: Optional[dict] = None,
        critical_severity: int = 4,
        clock=None,
    ) -> None:
        self.registry = registry
        self.queue = queue if queue is not None else PatientQueue()
        self.weights = dict(weights or DEFAULT_WEIGHTS)
        check_weights(self.weights)
        self.critical_severity = critical_severity
        # callable returning today's date; swapped out in tests
        self.clock = clock or dt.date.today
        self.lock = RLock()

    @classmethod
    def from_config(cls, config: Optional[dict] = None, seed: Optional[int] = None, clock=None) -> "HospitalEngine":
        """
        Build an engine from an ENGINE_CONFIG-shaped dict. When the config
        asks for it, beds get a random starting load and the queue gets the
        demo patients.
        """
        cfg = dict(ENGINE_CONFIG)
        cfg.update(config or {})
        per_ward = int(cfg["beds_per_ward"])
        registry = BedRegistry.initialize(
            int(cfg["n_beds"]),
            ward_of=make_default_ward_of(per_ward),
            beds_per_ward=per_ward,
            discharge_horizon_days=int(cfg.get("discharge_horizon_days", DISCHARGE_HORIZON_DAYS)),
        )
        engine = cls(registry, weights=cfg.get("weights"),
                     critical_severity=int(cfg.get("critical_severity", 4)), clock=clock)

        seed = cfg.get("random_seed") if seed is None else seed
        if cfg.get("seed_occupied_prob", 0) or cfg.get("seed_maintenance_prob", 0):
            seed_beds(
                registry,
                occupied_prob=float(cfg.get("seed_occupied_prob", 0)),
                maintenance_prob=float(cfg.get("seed_maintenance_prob", 0)),
                today=engine.clock(),
                rng=random.Random(seed),
            )
        if cfg.get("seed_demo_patients"):
            for d in demo_patients():
                engine.queue.add_existing(Patient(
                    patient_id=engine.queue.issue_id(),
                    name=d["name"], age=d["age"], condition=d["condition"],
                    severity=d["severity"], waiting_time=d["waiting_time"],
                ))
        logger.info("Engine ready: %d beds, %d queued patients", len(registry), len(engine.queue))
        return engine

    # ---- queries ----

    def list_beds(self) -> List[Bed]:
        with self.lock:
            return self.registry.list()

    def list_available_beds(self) -> List[Bed]:
        with self.lock:
            return self.registry.list_available()

    def get_bed(self, bed_id: str) -> Bed:
        with self.lock:
            return self.registry.get(bed_id)

    def list_patients(self) -> List[Patient]:
        with self.lock:
            return self.queue.list()

    def get_patient(self, patient_id: str) -> Patient:
        with self.lock:
            return self.queue.get(patient_id)

    def is_ranked(self) -> bool:
        with self.lock:
            return self.queue.ranked

    def ward_summary(self) -> Dict[str, Dict[str, int]]:
        with self.lock:
            return self.registry.ward_summary()

    def statistics(self) -> Statistics:
        with self.lock:
            return compute_statistics(self.registry, self.queue, self.critical_severity)

    # ---- queue commands ----

    def add_patient(self, name, age, severity, condition) -> Patient:
        with self.lock:
            return self.queue.add(name=name, age=age, severity=severity, condition=condition)

    def remove_patient(self, patient_id: str) -> bool:
        """True if a patient was removed; absent ids are a no-op."""
        with self.lock:
            return self.queue.remove(patient_id) is not None

    def rank_queue(self) -> List[Patient]:
        with self.lock:
            rank_queue(self.queue, self.weights)
            return self.queue.list()

    def reset_ranking(self) -> List[Patient]:
        with self.lock:
            reset_ranking(self.queue)
            return self.queue.list()

    def tick(self, delta_hours: float = 1 / 60) -> List[Patient]:
        """Advance every queued patient's waiting time. Does not re-rank."""
        with self.lock:
            self.queue.advance_time(delta_hours)
            return self.queue.list()

    # ---- allocation ----

    def place_patient(self, patient_id: str, bed_id: str) -> Bed:
        with self.lock:
            # all checks before any mutation
            patient = self.queue.get(patient_id)
            bed = self.registry.get(bed_id)
            if bed.status != BedStatus.AVAILABLE:
                raise BedNotAvailable(bed_id, bed.status)

            placed = self.registry.set_status(bed_id, BedStatus.OCCUPIED, patient.name, today=self.clock())
            self.queue.remove(patient_id)
            logger.info("Placed patient %s (%s) in %s", patient_id, patient.name, bed_id)
            return placed

    def release(self, bed_id: str) -> Bed:
        """Discharge / free a bed. Non-occupied beds just end up available."""
        with self.lock:
            before = self.registry.get(bed_id)
            bed = self.registry.set_status(bed_id, BedStatus.AVAILABLE)
            if before.status == BedStatus.OCCUPIED:
                logger.info("Discharged %s from %s", before.patient_name, bed_id)
            return bed

    def set_maintenance(self, bed_id: str) -> Bed:
        with self.lock:
            bed = self.registry.get(bed_id)
            if bed.status == BedStatus.OCCUPIED:
                raise InvalidTransition(f"Bed {bed_id!r} is occupied; discharge before maintenance")
            logger.info("Bed %s under maintenance", bed_id)
            return self.registry.set_status(bed_id, BedStatus.MAINTENANCE)

    def clear_maintenance(self, bed_id: str) -> Bed:
        with self.lock:
            bed = self.registry.get(bed_id)
            if bed.status == BedStatus.OCCUPIED:
                raise InvalidTransition(f"Bed {bed_id!r} is occupied, not under maintenance")
            return self.registry.set_status(bed_id, BedStatus.AVAILABLE)

    def set_bed_status(self, bed_id: str, status, patient_name: Optional[str] = None) -> Bed:
        """
        Generic status change. Occupied needs a patient name and an
        available bed (a manual admission that bypasses the queue).
        """
        status = BedStatus(status)
        with self.lock:
            if status == BedStatus.AVAILABLE:
                if patient_name is not None:
                    raise InvalidTransition("available beds cannot carry an occupant")
                return self.release(bed_id)
            if status == BedStatus.MAINTENANCE:
                if patient_name is not None:
                    raise InvalidTransition("maintenance beds cannot carry an occupant")
                return self.set_maintenance(bed_id)
            bed = self.registry.get(bed_id)
            if not patient_name or not str(patient_name).strip():
                raise InvalidTransition(f"Bed {bed_id!r}: occupied requires a patient name")
            if bed.status != BedStatus.AVAILABLE:
                raise BedNotAvailable(bed_id, bed.status)
            logger.info("Manual admission of %s to %s", patient_name, bed_id)
            return self.registry.set_status(bed_id, BedStatus.OCCUPIED, str(patient_name).strip(),
                                            today=self.clock())

    def check_invariants(self):
        with self.lock:
            self.registry.check_invariants()
            self.queue.check_invariants()

    # ---- snapshot ----

    def snapshot(self) -> dict:
        with self.lock:
            return {
                "version": SNAPSHOT_VERSION,
                "weights": dict(self.weights),
                "discharge_horizon_days": self.registry.discharge_horizon_days,
                "critical_severity": self.critical_severity,
                "beds": [b.to_dict() for b in self.registry.list()],
                # insertion order, not ranked order
                "patients": [p.to_dict() for p in self.queue.members()],
                "ranked": self.queue.ranked,
                "next_patient_id": self.queue.next_id,
            }

    @classmethod
    def restore(cls, snapshot: dict, clock=None) -> "HospitalEngine":
        if not isinstance(snapshot, dict) or snapshot.get("version") != SNAPSHOT_VERSION:
            raise ValueError("unsupported snapshot")
        try:
            beds = [Bed.from_dict(d) for d in snapshot["beds"]]
            registry = BedRegistry(beds, discharge_horizon_days=int(
                snapshot.get("discharge_horizon_days", DISCHARGE_HORIZON_DAYS)))
            queue = PatientQueue(start_id=int(snapshot.get("next_patient_id", 1)))
            for d in snapshot["patients"]:
                queue.add_existing(Patient.from_dict(d))
            if snapshot.get("ranked"):
                queue.resume_ranking()
            elif any(p.is_ranked for p in queue.members()):
                raise ValueError("malformed snapshot: rank/score set on an unranked queue")
        except (KeyError, TypeError, BedSimError) as e:
            raise ValueError(f"malformed snapshot: {e}") from e
        return cls(registry, queue, weights=snapshot.get("weights"),
                   critical_severity=int(snapshot.get("critical_severity", 4)), clock=clock)
