"""Patient directory consulted when bills are created."""

from threading import RLock
from typing import Protocol

from .errors import ValidationError
from .schemas.common import Patient, is_blank


class PatientDirectory(Protocol):
    """Lookup interface the billing engine depends on."""

    def find_patient_by_id(self, patient_id: str) -> Patient | None: ...


class InMemoryPatientDirectory:
    """Dictionary-backed directory for callers without a patient service."""

    def __init__(self, patients: list[Patient] | None = None):
        self._patients: dict[str, Patient] = {}
        self._lock = RLock()
        for patient in patients or []:
            self.add_patient(patient)

    def add_patient(self, patient: Patient) -> Patient:
        if is_blank(patient.patient_id):
            raise ValidationError("Patient ID cannot be null or empty")
        with self._lock:
            if patient.patient_id in self._patients:
                raise ValidationError(f"Patient already registered: {patient.patient_id}")
            self._patients[patient.patient_id] = patient
        return patient

    def find_patient_by_id(self, patient_id: str) -> Patient | None:
        with self._lock:
            return self._patients.get(patient_id)

    def get_all_patients(self) -> list[Patient]:
        with self._lock:
            return list(self._patients.values())
