from bed_sim.bed import Bed, BedRegistry, BedStatus, Occupant
from bed_sim.patient import Patient, PatientQueue
from bed_sim.engine import HospitalEngine
from bed_sim.errors import (
    BedSimError, ValidationError, NotFound, BedNotFound, PatientNotFound,
    InvalidTransition, BedNotAvailable, InternalInvariantViolation,
)
