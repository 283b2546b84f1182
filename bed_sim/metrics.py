# metrics.py
from dataclasses import dataclass, asdict, field
from typing import Dict, List

import pandas as pd

from bed_sim.bed import Bed, BedRegistry, BedStatus
from bed_sim.patient import Patient, PatientQueue, severity_label
from bed_sim.utils import round_half_up
from bed_sim.config import ENGINE_CONFIG

CRITICAL_SEVERITY = 4

BED_COLUMNS = ["bed_id", "number", "ward", "status", "patient_name", "admission_date", "expected_discharge"]
PATIENT_COLUMNS = ["patient_id", "name", "age", "condition", "severity", "waiting_time", "priority_rank", "score"]


@dataclass
class Statistics:
    total_beds: int
    available_beds: int
    occupied_beds: int
    maintenance_beds: int
    bed_occupancy_rate: int
    waiting_patients: int
    critical_patients: int
    average_wait_time: int
    ward_summary: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def beds_frame(beds: List[Bed]) -> pd.DataFrame:
    return pd.DataFrame([b.to_dict() for b in beds], columns=BED_COLUMNS)


def patients_frame(patients: List[Patient]) -> pd.DataFrame:
    df = pd.DataFrame([p.to_dict() for p in patients], columns=PATIENT_COLUMNS)
    df["severity_label"] = df["severity"].map(severity_label)
    return df


def compute_statistics(registry: BedRegistry, queue: PatientQueue,
                       critical_severity: int = None) -> Statistics:
    """Derive every dashboard figure from the current registry and queue."""
    if critical_severity is None:
        critical_severity = ENGINE_CONFIG.get("critical_severity", CRITICAL_SEVERITY)

    df_beds = beds_frame(registry.list())
    df_patients = patients_frame(queue.list())

    total = int(len(df_beds))
    occupied = int((df_beds["status"] == BedStatus.OCCUPIED.value).sum())
    available = int((df_beds["status"] == BedStatus.AVAILABLE.value).sum())
    maintenance = int((df_beds["status"] == BedStatus.MAINTENANCE.value).sum())
    bor = int(round_half_up(occupied / total * 100)) if total > 0 else 0

    waiting = int(len(df_patients))
    critical = int((df_patients["severity"] >= critical_severity).sum()) if waiting else 0
    avg_wait = int(round_half_up(float(df_patients["waiting_time"].mean()))) if waiting else 0

    return Statistics(
        total_beds=total,
        available_beds=available,
        occupied_beds=occupied,
        maintenance_beds=maintenance,
        bed_occupancy_rate=bor,
        waiting_patients=waiting,
        critical_patients=critical,
        average_wait_time=avg_wait,
        ward_summary=registry.ward_summary(),
    )


def statistics_frame(stats: Statistics) -> pd.DataFrame:
    row = stats.to_dict()
    row.pop("ward_summary")
    return pd.DataFrame([row])


def ward_frame(stats: Statistics) -> pd.DataFrame:
    df = pd.DataFrame.from_dict(stats.ward_summary, orient="index",
                                columns=["total", "occupied", "available", "maintenance"])
    df.index.name = "ward"
    return df.reset_index()


def export_csv(df: pd.DataFrame, path):
    df.to_csv(path, index=False)
