import logging
from typing import Optional

import pandas as pd
from tqdm import tqdm

from bed_sim.engine import HospitalEngine
from bed_sim.errors import ValidationError
from bed_sim.metrics import beds_frame, patients_frame, statistics_frame
from bed_sim.policy import ranked_allocation_policy
from bed_sim.config import ENGINE_CONFIG

logger = logging.getLogger(__name__)

ARRIVAL_COLUMNS = ["arrival_minute", "name", "age", "severity", "condition"]


def _arrivals_by_minute(df_arrivals: Optional[pd.DataFrame]) -> dict:
    if df_arrivals is None or df_arrivals.empty:
        return {}
    missing = [c for c in ARRIVAL_COLUMNS if c not in df_arrivals.columns]
    if missing:
        raise ValueError(f"arrivals missing columns: {missing}")
    df = df_arrivals.copy()
    df["arrival_minute"] = pd.to_numeric(df["arrival_minute"], errors="coerce").fillna(0).astype(int)
    return {int(m): g.to_dict(orient="records") for m, g in df.groupby("arrival_minute")}


def run_scenario(
    config: Optional[dict] = None,
    minutes: int = 60,
    df_arrivals: Optional[pd.DataFrame] = None,
    auto_place: bool = False,
    seed: Optional[int] = None,
    show_progress: bool = True,
    engine: Optional[HospitalEngine] = None,
):
    """
    Run one ward scenario:
      - build the engine from config (or use the one given)
      - step the clock minute by minute, queueing arrivals as they come
      - optionally place ranked patients into free beds after each minute
      - rank the final queue and summarise

    Returns (engine, df_beds, df_patients, df_summary).
    """
    cfg = dict(ENGINE_CONFIG)
    cfg.update(config or {})
    engine = engine or HospitalEngine.from_config(cfg, seed=seed)
    delta_hours = float(cfg.get("tick_minutes", 1)) / 60.0
    arrivals = _arrivals_by_minute(df_arrivals)

    rejected = 0
    placed = 0
    for minute in tqdm(range(max(0, int(minutes)) + 1), desc="Simulating minutes", disable=not show_progress):
        if minute > 0:
            engine.tick(delta_hours)
        for row in arrivals.get(minute, []):
            try:
                engine.add_patient(row["name"], row["age"], row["severity"], row["condition"])
            except ValidationError as e:
                rejected += 1
                logger.warning("Arrival at minute %d rejected: %s", minute, e.errors)
        if auto_place:
            placed += len(ranked_allocation_policy(engine))

    engine.rank_queue()

    df_beds = beds_frame(engine.list_beds())
    df_patients = patients_frame(engine.list_patients())
    df_summary = statistics_frame(engine.statistics())
    df_summary["minutes_simulated"] = int(minutes)
    df_summary["placed"] = placed
    df_summary["rejected_arrivals"] = rejected

    if rejected:
        print(f"⚠️ {rejected} arrivals rejected by validation")
    return engine, df_beds, df_patients, df_summary
