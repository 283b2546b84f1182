# policy.py
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from bed_sim.patient import PatientQueue
from bed_sim.utils import round_half_up
from bed_sim.config import ENGINE_CONFIG

logger = logging.getLogger(__name__)

SEVERITY_WEIGHT = 0.6
WAITING_TIME_WEIGHT = 0.4
DEFAULT_WEIGHTS = {"severity": SEVERITY_WEIGHT, "waiting_time": WAITING_TIME_WEIGHT}


def check_weights(weights: dict) -> Tuple[float, float]:
    w_sev = float(weights["severity"])
    w_wait = float(weights["waiting_time"])
    if w_sev < 0 or w_wait < 0 or not np.isclose(w_sev + w_wait, 1.0):
        raise ValueError(f"weights must be non-negative and sum to 1, got {weights}")
    return w_sev, w_wait


def _normalise_benefit(v: np.ndarray) -> np.ndarray:
    """x / max(x); all zeros when the max is 0."""
    top = float(v.max()) if v.size else 0.0
    if top <= 0:
        return np.zeros_like(v)
    return v / top


def ahp_saw_scores(
    severities: Sequence[float],
    waits: Sequence[float],
    weights: Optional[dict] = None,
) -> List[float]:
    """
    AHP-SAW composite for each patient. Both criteria are benefit criteria
    (bigger = more urgent) normalised against the queue maximum:

        score = w_sev * severity/max_severity + w_wait * wait/max_wait

    rounded half-up to 2 decimals.
    """
    w_sev, w_wait = check_weights(weights or DEFAULT_WEIGHTS)
    sev = np.asarray(severities, dtype=float)
    wait = np.asarray(waits, dtype=float)
    if sev.shape != wait.shape:
        raise ValueError("severities and waits must have the same length")
    raw = w_sev * _normalise_benefit(sev) + w_wait * _normalise_benefit(wait)
    return [round_half_up(x, 2) for x in raw.tolist()]


def rank_queue(queue: PatientQueue, weights: Optional[dict] = None) -> List[int]:
    """
    Full ranking pass over the queue. Sorts by score descending, equal
    scores keep insertion order. Returns ranks aligned with insertion order.
    Empty queue: nothing happens.
    """
    patients = queue.members()
    if not patients:
        return []
    weights = weights or ENGINE_CONFIG.get("weights", DEFAULT_WEIGHTS)
    scores = ahp_saw_scores(
        [p.severity for p in patients],
        [p.waiting_time for p in patients],
        weights,
    )
    order = np.argsort(-np.asarray(scores), kind="stable")
    ranks = np.empty(len(patients), dtype=int)
    ranks[order] = np.arange(1, len(patients) + 1)
    queue.apply_ranking(ranks.tolist(), scores)
    logger.debug("Ranked %d patients: %s", len(patients),
                 [(patients[i].patient_id, scores[i]) for i in order])
    return ranks.tolist()


def reset_ranking(queue: PatientQueue):
    queue.invalidate_ranking()


def ranked_allocation_policy(engine, max_placements: Optional[int] = None,
                             show_progress: bool = False) -> List[Tuple[str, str]]:
    """
    Greedy fill: rank the queue, then hand the highest-ranked patients the
    available beds in registry order until beds, patients or
    `max_placements` run out. Each placement goes through place_patient.
    """
    with engine.lock:
        engine.rank_queue()
        ranked = engine.list_patients()
        beds = engine.list_available_beds()
        limit = min(len(ranked), len(beds))
        if max_placements is not None:
            limit = min(limit, max(0, int(max_placements)))

        placements = []
        pairs = list(zip(ranked[:limit], beds[:limit]))
        for patient, bed in tqdm(pairs, desc="Ranked allocation", disable=not show_progress):
            engine.place_patient(patient.patient_id, bed.bed_id)
            placements.append((patient.patient_id, bed.bed_id))
    return placements
