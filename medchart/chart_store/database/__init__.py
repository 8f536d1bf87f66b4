from .connection import KeyValueStore, StorageError, get_connection, init_database
from .record_store import RecordStore
from .patient_directory import Patient, PatientDirectory
from .chart_transfer import ChartTransfer, ImportRejectedError

__all__ = [
    "get_connection", "init_database", "KeyValueStore", "StorageError",
    "RecordStore", "Patient", "PatientDirectory", "ChartTransfer", "ImportRejectedError",
]
