"""Patient directory: patient identities plus the current-patient pointer."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields

from medchart.helpers import generate_id

from .connection import KeyValueStore
from .record_store import dump_json, load_json_list

logger = logging.getLogger(__name__)

PATIENTS_KEY = "emr_patients"
CURRENT_KEY = "emr_current_patient"

SEX_OPTIONS = ("Male", "Female", "Other")


@dataclass
class Patient:
    id: str
    name: str
    dob: str = ""
    sex: str = ""
    mrn: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Patient:
        """Build a Patient from stored JSON, ignoring keys it does not know."""
        known = {f.name for f in fields(cls)}
        values = {k: "" if v is None else str(v) for k, v in data.items() if k in known}
        values.setdefault("name", "")
        return cls(**values)


class PatientDirectory:
    """Stateless command/query functions over the stored patient list.

    Nothing is cached between calls: every method reads the store, so two
    directories sharing a store always agree.
    """

    def __init__(self, store: KeyValueStore | None = None):
        self.store = store or KeyValueStore()

    def list(self) -> list[Patient]:
        """Patients in stored (insertion) order."""
        return [
            Patient.from_dict(item)
            for item in load_json_list(self.store, PATIENTS_KEY)
            if isinstance(item, dict) and item.get("id")
        ]

    def save_all(self, patients: list[Patient]) -> None:
        self.store.set(PATIENTS_KEY, dump_json([p.to_dict() for p in patients]))

    def get(self, patient_id: str) -> Patient | None:
        for patient in self.list():
            if patient.id == patient_id:
                return patient
        return None

    def create(self, name: str, dob: str = "", sex: str = "", mrn: str = "") -> Patient:
        """Create a patient, append it to the directory, and make it current."""
        patient = Patient(id=generate_id(), name=name, dob=dob, sex=sex, mrn=mrn)
        self.save_all(self.list() + [patient])
        self.switch_current(patient.id)
        logger.info("Created patient %s", patient.id)
        return patient

    def upsert(self, patient: Patient) -> None:
        """Replace the patient with the same id in place, or append it."""
        patients = self.list()
        for index, existing in enumerate(patients):
            if existing.id == patient.id:
                patients[index] = patient
                break
        else:
            patients.append(patient)
        self.save_all(patients)

    def delete(self, patient_id: str) -> None:
        """Remove a patient. Their module records are left in place."""
        remaining = [p for p in self.list() if p.id != patient_id]
        self.save_all(remaining)
        if self.current_id() == patient_id:
            self.switch_current(remaining[0].id if remaining else None)
        logger.info("Deleted patient %s", patient_id)

    def current_id(self) -> str | None:
        """Raw current-patient pointer, which may dangle."""
        return self.store.get(CURRENT_KEY) or None

    def switch_current(self, patient_id: str | None) -> None:
        """Point at patient_id without checking it exists; None clears the pointer."""
        if patient_id:
            self.store.set(CURRENT_KEY, patient_id)
        else:
            self.store.delete(CURRENT_KEY)

    def current(self) -> Patient | None:
        """The current patient, or None when the pointer is unset or dangling."""
        current_id = self.current_id()
        if not current_id:
            return None
        return self.get(current_id)
