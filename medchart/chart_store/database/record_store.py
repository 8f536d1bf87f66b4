"""Record store: CRUD over entry sequences scoped by patient and module."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable

from medchart.helpers import generate_id

from .connection import KeyValueStore

logger = logging.getLogger(__name__)

# An entry is an "id" plus free-form field values, all strings.
EntryRecord = dict[str, str]


def entry_id(record: EntryRecord) -> str:
    """The id of an entry as a string; imported charts may carry numeric ids."""
    return str(record.get("id", ""))


def records_key(patient_id: str, module_key: str) -> str:
    """Storage key owning one patient's entries for one module."""
    return f"emr_{patient_id}_{module_key}"


def load_json_list(store: KeyValueStore, key: str) -> list:
    """Read a JSON array from the store; missing or corrupt values read as []."""
    raw = store.get(key)
    if raw is None:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unparseable value stored under %s", key)
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring non-list value stored under %s", key)
        return []
    return value


def dump_json(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class RecordStore:
    """Repository for module entries, newest first.

    The store never checks that the patient exists and never validates field
    values against the module schema; both are the caller's concern.
    """

    def __init__(self, store: KeyValueStore | None = None):
        self.store = store or KeyValueStore()

    def list(self, patient_id: str, module_key: str) -> list[EntryRecord]:
        """Entries for (patient, module), most recently created first.

        Stored items that are not objects are skipped.
        """
        key = records_key(patient_id, module_key)
        return [item for item in load_json_list(self.store, key) if isinstance(item, dict)]

    def save_all(self, patient_id: str, module_key: str, records: list[EntryRecord]) -> None:
        """Replace the whole stored sequence."""
        self.store.set(records_key(patient_id, module_key), dump_json(records))

    def create(self, patient_id: str, module_key: str, fields: dict[str, str]) -> EntryRecord:
        """Create a new entry and prepend it to the sequence."""
        records = self.list(patient_id, module_key)
        record = {"id": generate_id(), **fields}
        records.insert(0, record)
        self.save_all(patient_id, module_key, records)
        logger.info("Created %s entry %s for patient %s", module_key, record["id"], patient_id)
        return record

    def update(self, patient_id: str, module_key: str, record_id: str, fields: dict[str, str]) -> None:
        """Shallow-merge fields into an existing entry. Unknown ids are ignored."""
        records = self.list(patient_id, module_key)
        for index, record in enumerate(records):
            if entry_id(record) == record_id:
                records[index] = {**record, **fields}
                self.save_all(patient_id, module_key, records)
                logger.info("Updated %s entry %s", module_key, record_id)
                return
        logger.debug("No %s entry %s to update", module_key, record_id)

    def delete(self, patient_id: str, module_key: str, record_id: str) -> None:
        """Remove an entry by id; the sequence is rewritten even when nothing matched."""
        records = self.list(patient_id, module_key)
        remaining = [r for r in records if entry_id(r) != record_id]
        self.save_all(patient_id, module_key, remaining)
        if len(remaining) == len(records):
            logger.debug("No %s entry %s to delete", module_key, record_id)

    def clear(self, patient_id: str, module_keys: Iterable[str]) -> None:
        """Drop the stored sequences of the given modules for one patient."""
        cleared = 0
        for module_key in module_keys:
            self.store.delete(records_key(patient_id, module_key))
            cleared += 1
        logger.info("Cleared %d module(s) for patient %s", cleared, patient_id)


def search_records(records: list[EntryRecord], query: str) -> list[EntryRecord]:
    """Case-insensitive substring match over every value of each entry."""
    if not query:
        return list(records)
    needle = query.lower()
    return [r for r in records if any(needle in str(v).lower() for v in r.values())]
