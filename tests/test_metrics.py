import pytest

from bed_sim.bed import BedRegistry
from bed_sim.engine import HospitalEngine
from bed_sim.metrics import compute_statistics, patients_frame, ward_frame
from bed_sim.patient import PatientQueue

from conftest import fixed_clock, make_patient


def test_occupancy_math():
    engine = HospitalEngine(BedRegistry.initialize(20), clock=fixed_clock)
    for i in range(1, 9):
        engine.set_bed_status(f"bed-{i}", "occupied", patient_name=f"P{i}")
    engine.set_bed_status("bed-20", "maintenance")
    stats = engine.statistics()
    assert stats.bed_occupancy_rate == 40
    assert stats.occupied_beds == 8
    assert stats.maintenance_beds == 1
    assert stats.available_beds == len(engine.list_available_beds()) == 11
    assert stats.ward_summary["Ward 2"] == {"total": 5, "occupied": 3, "available": 2, "maintenance": 0}


def test_empty_everything():
    stats = compute_statistics(BedRegistry.initialize(0), PatientQueue())
    assert stats.total_beds == 0
    assert stats.bed_occupancy_rate == 0
    assert stats.waiting_patients == 0
    assert stats.average_wait_time == 0
    assert stats.critical_patients == 0
    assert stats.ward_summary == {}


def test_queue_figures():
    queue = PatientQueue()
    queue.add_existing(make_patient(1, 5, 1.0))
    queue.add_existing(make_patient(2, 4, 2.0))
    queue.add_existing(make_patient(3, 3, 1.5))
    queue.add_existing(make_patient(4, 1, 1.5))
    stats = compute_statistics(BedRegistry.initialize(3), queue)
    assert stats.waiting_patients == 4
    assert stats.critical_patients == 2
    # mean 1.5 rounds half up
    assert stats.average_wait_time == 2


def test_bor_rounds_half_up():
    engine = HospitalEngine(BedRegistry.initialize(8), clock=fixed_clock)
    engine.set_bed_status("bed-1", "occupied", patient_name="A")
    # 1/8 = 12.5%
    assert engine.statistics().bed_occupancy_rate == 13


def test_frames():
    df = patients_frame([make_patient(1, 5, 1.0), make_patient(2, 2, 0.0)])
    assert list(df["severity_label"]) == ["Critical", "Low"]
    engine = HospitalEngine(BedRegistry.initialize(7), clock=fixed_clock)
    wf = ward_frame(engine.statistics())
    assert list(wf["ward"]) == ["Ward 1", "Ward 2"]
    assert list(wf["total"]) == [5, 2]
    assert patients_frame([]).empty


def test_statistics_to_dict():
    engine = HospitalEngine(BedRegistry.initialize(2), clock=fixed_clock)
    d = engine.statistics().to_dict()
    assert d["total_beds"] == 2
    assert d["ward_summary"] == {"Ward 1": {"total": 2, "occupied": 0, "available": 2, "maintenance": 0}}
    assert d["average_wait_time"] == pytest.approx(0)
