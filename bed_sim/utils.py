import json
import os
import random
import datetime as dt
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from bed_sim.bed import BedRegistry, BedStatus, Occupant, iso_date


DEMO_PATIENTS = [
    {"name": "Ahmad Rizki", "age": 45, "severity": 4, "waiting_time": 3.0, "condition": "Chest Pain"},
    {"name": "Siti Nurhaliza", "age": 32, "severity": 2, "waiting_time": 1.0, "condition": "Fever"},
    {"name": "Budi Santoso", "age": 67, "severity": 5, "waiting_time": 2.0, "condition": "Heart Attack"},
    {"name": "Maya Sari", "age": 28, "severity": 3, "waiting_time": 4.0, "condition": "Fracture"},
]


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round on the decimal representation, .5 always away from zero.
    round_half_up(0.285, 2) -> 0.29, round_half_up(2.5) -> 3.0
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def seed_beds(
    registry: BedRegistry,
    occupied_prob: float = 0.4,
    maintenance_prob: float = 0.2,
    today: Optional[dt.date] = None,
    rng: Optional[random.Random] = None,
):
    """
    Put a realistic starting load on a fresh registry: each bed is occupied
    with `occupied_prob`, otherwise under maintenance with `maintenance_prob`.
    Occupants get an admission date up to 7 days back and a discharge up to
    5 days ahead.
    """
    rng = rng or random.Random()
    today = today or dt.date.today()
    for i, bed in enumerate(registry.list()):
        if rng.random() < occupied_prob:
            admitted = today - dt.timedelta(days=rng.randint(0, 7))
            discharge = today + dt.timedelta(days=rng.randint(0, 5))
            occupant = Occupant(
                patient_name=f"Patient {i + 1}",
                admission_date=iso_date(admitted),
                expected_discharge=iso_date(discharge),
            )
            registry.restore_status(bed.bed_id, BedStatus.OCCUPIED, occupant)
        elif rng.random() < maintenance_prob:
            registry.restore_status(bed.bed_id, BedStatus.MAINTENANCE, None)


def save_snapshot(snapshot: dict, path) -> str:
    folder = os.path.dirname(os.fspath(path))
    if folder:
        os.makedirs(folder, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, ensure_ascii=False, indent=2)
    return os.fspath(path)


def load_snapshot(path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def demo_patients() -> List[dict]:
    return [dict(p) for p in DEMO_PATIENTS]
