"""Session state for the chart shell."""

from dataclasses import dataclass, field
from pathlib import Path

from medchart.chart_store.database import (
    ChartTransfer,
    KeyValueStore,
    PatientDirectory,
    RecordStore,
)
from medchart.modules import ModuleDefinition


@dataclass
class ChartSession:
    """Everything a shell command needs, passed explicitly to each handler.

    The current-patient pointer itself lives in the store; the session only
    carries the collaborators and which module view is open.
    """
    store: KeyValueStore
    directory: PatientDirectory = field(init=False)
    records: RecordStore = field(init=False)
    transfer: ChartTransfer = field(init=False)

    # Module currently open in the shell, None means the dashboard
    active_module: ModuleDefinition | None = None

    # Last search applied to the open module
    search: str = ""

    def __post_init__(self):
        self.directory = PatientDirectory(self.store)
        self.records = RecordStore(self.store)
        self.transfer = ChartTransfer(self.directory, self.records)

    @classmethod
    def open(cls, db_path: Path | str | None = None) -> "ChartSession":
        return cls(store=KeyValueStore(db_path))

    def current_patient_id(self) -> str | None:
        """Id of the current patient, None when the pointer is unset or dangling."""
        patient = self.directory.current()
        return patient.id if patient else None
