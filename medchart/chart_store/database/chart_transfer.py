"""Chart export/import: one patient's identity plus module records as a JSON document."""

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .patient_directory import Patient, PatientDirectory
from .record_store import RecordStore

logger = logging.getLogger(__name__)


class ImportRejectedError(Exception):
    """Raised when a chart document cannot be imported."""
    pass


class ImportedPatient(BaseModel):
    """Patient object embedded in an imported chart."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str | None = ""
    dob: str | None = ""
    sex: str | None = ""
    mrn: str | None = ""

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("patient id must not be empty")
        return v


def export_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 with milliseconds and a trailing Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChartTransfer:
    """Bulk read/write of a whole chart across the directory and the record store."""

    def __init__(self, directory: PatientDirectory, records: RecordStore):
        self.directory = directory
        self.records = records

    def export_chart(self, patient_id: str, module_keys: Iterable[str]) -> dict:
        """Build an export document. A missing patient is omitted, not an error."""
        document: dict = {}
        patient = self.directory.get(patient_id)
        if patient is not None:
            document["patient"] = patient.to_dict()
        document["exportDate"] = export_timestamp()
        for module_key in module_keys:
            document[module_key] = self.records.list(patient_id, module_key)
        return document

    def import_chart(self, document, module_keys: Iterable[str]) -> Patient:
        """Upsert the embedded patient and overwrite each module present as a list.

        Modules missing from the document, or holding a non-list value, keep
        their stored records. The imported patient becomes current.
        """
        if not isinstance(document, Mapping):
            raise ImportRejectedError("Chart document must be a JSON object")
        payload = document.get("patient")
        if not isinstance(payload, Mapping):
            raise ImportRejectedError("Chart document has no patient")
        try:
            imported = ImportedPatient.model_validate(payload)
        except ValidationError as e:
            raise ImportRejectedError(f"Invalid chart data: {e.errors()[0]['msg']}") from e

        patient = Patient.from_dict(imported.model_dump())
        self.directory.upsert(patient)

        replaced = []
        for module_key in module_keys:
            value = document.get(module_key)
            if isinstance(value, list):
                self.records.save_all(patient.id, module_key, value)
                replaced.append(module_key)

        self.directory.switch_current(patient.id)
        logger.info("Imported chart for patient %s (%s)", patient.id, ", ".join(replaced) or "no modules")
        return patient


def export_filename(patient: Patient, today: date | None = None) -> str:
    """Default file name for an exported chart, e.g. emr_M001_2024-05-01.json."""
    today = today or date.today()
    return f"emr_{patient.mrn}_{today.isoformat()}.json"


def write_chart_file(path: Path | str, document: dict) -> Path:
    path = Path(path)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def read_chart_file(path: Path | str):
    """Parse a chart file. Unreadable or non-JSON files are rejected."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ImportRejectedError(f"Failed to parse file: {e}") from e
