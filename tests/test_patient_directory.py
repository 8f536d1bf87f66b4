"""Tests for the patient directory and current-patient pointer."""

import json

from medchart.chart_store.database import PatientDirectory
from medchart.chart_store.database.patient_directory import CURRENT_KEY, PATIENTS_KEY, Patient


class TestPatientCRUD:

    def test_empty_directory(self, directory):
        assert directory.list() == []
        assert directory.current() is None

    def test_create_patient(self, directory):
        patient = directory.create(name="Jane Doe", mrn="M001")
        assert patient.id
        assert patient.name == "Jane Doe"
        assert patient.mrn == "M001"
        assert patient.dob == ""
        assert directory.list() == [patient]

    def test_create_sets_current(self, directory):
        first = directory.create(name="A", mrn="1")
        second = directory.create(name="B", mrn="2")
        assert directory.current() == second
        assert directory.list() == [first, second]

    def test_stored_layout(self, directory, kv_store, jane):
        assert json.loads(kv_store.get(PATIENTS_KEY)) == [
            {"id": jane.id, "name": "Jane Doe", "dob": "1980-04-02", "sex": "Female", "mrn": "M001"},
        ]
        assert kv_store.get(CURRENT_KEY) == jane.id

    def test_get(self, directory, jane):
        assert directory.get(jane.id) == jane
        assert directory.get("missing") is None

    def test_upsert_replaces_in_place(self, directory, jane):
        other = directory.create(name="John", mrn="M002")
        directory.upsert(Patient(id=jane.id, name="Jane Smith", mrn="M001"))
        assert [p.name for p in directory.list()] == ["Jane Smith", "John"]
        assert directory.get(other.id) == other

    def test_upsert_appends_new(self, directory, jane):
        directory.upsert(Patient(id="p-new", name="New"))
        assert [p.id for p in directory.list()] == [jane.id, "p-new"]

    def test_corrupt_patient_list_reads_empty(self, directory, kv_store):
        kv_store.set(PATIENTS_KEY, "not json")
        assert directory.list() == []

    def test_entries_without_id_are_skipped(self, directory, kv_store):
        kv_store.set(PATIENTS_KEY, json.dumps([{"name": "No Id"}, {"id": "p-1", "name": "Ok"}]))
        assert [p.id for p in directory.list()] == ["p-1"]

    def test_no_cached_state_between_instances(self, directory, kv_store):
        other = PatientDirectory(kv_store)
        created = other.create(name="Seen", mrn="X")
        assert directory.list() == [created]
        assert directory.current() == created


class TestSwitchCurrent:

    def test_switch(self, directory, jane):
        other = directory.create(name="John", mrn="M002")
        directory.switch_current(jane.id)
        assert directory.current() == jane
        assert directory.current() != other

    def test_switch_to_unknown_id_is_stored(self, directory, jane):
        directory.switch_current("ghost")
        assert directory.current_id() == "ghost"
        assert directory.current() is None

    def test_switch_to_none_clears_pointer(self, directory, kv_store, jane):
        directory.switch_current(None)
        assert kv_store.get(CURRENT_KEY) is None
        assert directory.current() is None


class TestDeletePatient:

    def test_delete_only_patient_clears_current(self, directory, kv_store, jane):
        directory.delete(jane.id)
        assert directory.list() == []
        assert directory.current() is None
        assert kv_store.get(CURRENT_KEY) is None

    def test_delete_current_moves_to_first_remaining(self, directory):
        first = directory.create(name="A", mrn="1")
        directory.create(name="B", mrn="2")
        third = directory.create(name="C", mrn="3")
        directory.delete(third.id)
        assert directory.current() == first

    def test_delete_non_current_leaves_current(self, directory):
        first = directory.create(name="A", mrn="1")
        second = directory.create(name="B", mrn="2")
        directory.delete(first.id)
        assert directory.current() == second

    def test_delete_unknown_id(self, directory, jane):
        directory.delete("missing")
        assert directory.list() == [jane]
        assert directory.current() == jane

    def test_records_survive_patient_delete(self, directory, records, jane):
        fields = {"allergen": "Penicillin", "reaction": "Rash", "severity": "Severe"}
        created = records.create(jane.id, "allergies", fields)
        directory.delete(jane.id)
        assert records.list(jane.id, "allergies") == [created]


class TestPatientModel:

    def test_from_dict_ignores_unknown_keys(self):
        patient = Patient.from_dict({"id": "p", "name": "N", "extra": "x"})
        assert patient == Patient(id="p", name="N")

    def test_from_dict_null_values_become_empty(self):
        patient = Patient.from_dict({"id": "p", "name": "N", "dob": None})
        assert patient.dob == ""

    def test_to_dict(self):
        assert Patient(id="p", name="N", mrn="M").to_dict() == {
            "id": "p", "name": "N", "dob": "", "sex": "", "mrn": "M",
        }
