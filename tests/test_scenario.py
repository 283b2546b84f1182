import pandas as pd
import pytest

from bed_sim.engine import HospitalEngine
from bed_sim.main import main
from bed_sim.scenario_runner import run_scenario
from bed_sim.utils import load_snapshot

EMPTY = {"n_beds": 2, "seed_occupied_prob": 0, "seed_maintenance_prob": 0, "seed_demo_patients": False}


def test_run_scenario_places_by_rank():
    arrivals = pd.DataFrame([
        {"arrival_minute": 0, "name": "Ann", "age": 60, "severity": 5, "condition": "Stroke"},
        {"arrival_minute": 5, "name": "Bob", "age": 30, "severity": 2, "condition": "Cough"},
        {"arrival_minute": 5, "name": "Cara", "age": 50, "severity": 4, "condition": "Chest Pain"},
        {"arrival_minute": 6, "name": "", "age": 0, "severity": 9, "condition": ""},
    ])
    engine, df_beds, df_patients, df_summary = run_scenario(
        EMPTY, minutes=10, df_arrivals=arrivals, auto_place=True, show_progress=False)

    assert list(df_beds["patient_name"]) == ["Ann", "Cara"]
    assert list(df_patients["name"]) == ["Bob"]
    assert df_patients["priority_rank"].iloc[0] == 1
    assert df_patients["waiting_time"].iloc[0] == pytest.approx(5 / 60)
    row = df_summary.iloc[0]
    assert row["bed_occupancy_rate"] == 100
    assert row["placed"] == 2
    assert row["rejected_arrivals"] == 1
    assert row["waiting_patients"] == 1


def test_run_scenario_requires_arrival_columns():
    with pytest.raises(ValueError):
        run_scenario(EMPTY, minutes=1, df_arrivals=pd.DataFrame([{"name": "x"}]), show_progress=False)


def test_main_writes_reports_and_snapshot(tmp_path, capsys):
    snap = tmp_path / "state.json"
    rc = main(["--beds", "5", "--minutes", "3", "--out-dir", str(tmp_path / "out"),
               "--snapshot", str(snap)])
    assert rc == 0
    for name in ("beds.csv", "patients.csv", "summary.csv", "wards.csv"):
        assert (tmp_path / "out" / name).exists()
    assert "[SUMMARY]" in capsys.readouterr().out

    restored = HospitalEngine.restore(load_snapshot(snap))
    assert len(restored.list_beds()) == 5
    assert len(restored.list_patients()) == 4
    assert pd.read_csv(tmp_path / "out" / "summary.csv")["total_beds"].iloc[0] == 5
