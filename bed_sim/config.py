from pathlib import Path

ENGINE_CONFIG = {
    "n_beds": 20,
    "beds_per_ward": 5,
    "weights": {
        "severity": 0.6,
        "waiting_time": 0.4
    },
    "discharge_horizon_days": 3,
    "tick_minutes": 1,
    "critical_severity": 4,
    "seed_occupied_prob": 0.4,
    "seed_maintenance_prob": 0.2,
    "seed_demo_patients": True,
    "random_seed": 42
}

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"
