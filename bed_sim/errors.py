# errors.py
from typing import Dict, Optional


class BedSimError(Exception):
    """Base class for every error the engine hands back to its caller."""

    kind = "BedSimError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(BedSimError):
    """
    Bad patient input. `errors` maps every failing field to its message,
    so a form can show all of them at once.
    """

    kind = "ValidationError"

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("Invalid patient fields: " + ", ".join(self.errors))

    @property
    def fields(self):
        return list(self.errors)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["fields"] = dict(self.errors)
        return d


class NotFound(BedSimError):
    kind = "NotFound"

    def __init__(self, ident: str, message: Optional[str] = None):
        self.ident = ident
        super().__init__(message or f"{ident} not found")

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["id"] = self.ident
        return d


class BedNotFound(NotFound):
    kind = "BedNotFound"

    def __init__(self, bed_id: str):
        super().__init__(bed_id, f"Bed {bed_id!r} not found")


class PatientNotFound(NotFound):
    kind = "PatientNotFound"

    def __init__(self, patient_id: str):
        super().__init__(patient_id, f"Patient {patient_id!r} not in queue")


class InvalidTransition(BedSimError):
    kind = "InvalidTransition"


class BedNotAvailable(InvalidTransition):
    kind = "BedNotAvailable"

    def __init__(self, bed_id: str, status):
        self.bed_id = bed_id
        self.status = status
        super().__init__(f"Bed {bed_id!r} is {getattr(status, 'value', status)}, not available")

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["id"] = self.bed_id
        d["status"] = getattr(self.status, "value", self.status)
        return d


class InternalInvariantViolation(BedSimError):
    """Occupant/status or rank/score mismatch. Unreachable unless there is a bug."""

    kind = "InternalInvariantViolation"
