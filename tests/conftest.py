import datetime as dt

import pytest

from bed_sim.bed import BedRegistry
from bed_sim.engine import HospitalEngine
from bed_sim.patient import Patient, PatientQueue

TODAY = dt.date(2026, 10, 18)


def fixed_clock():
    return TODAY


def make_patient(pid, severity, wait, name=None, age=40, condition="Observation"):
    return Patient(patient_id=str(pid), name=name or f"P{pid}", age=age,
                   condition=condition, severity=severity, waiting_time=float(wait))


@pytest.fixture
def queue():
    return PatientQueue()


@pytest.fixture
def registry():
    return BedRegistry.initialize(20)


@pytest.fixture
def engine():
    """Five empty beds, empty queue, fixed date."""
    return HospitalEngine(BedRegistry.initialize(5), clock=fixed_clock)
