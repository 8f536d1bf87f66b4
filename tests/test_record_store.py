"""Tests for the record store."""

import json

from medchart.chart_store.database import RecordStore
from medchart.chart_store.database.record_store import entry_id, records_key, search_records


class TestCreateAndList:

    def test_empty_module_lists_nothing(self, records):
        assert records.list("p-1", "allergies") == []

    def test_create_returns_record_with_id(self, records):
        record = records.create("p-1", "allergies", {"allergen": "Latex"})
        assert record["allergen"] == "Latex"
        assert record["id"]

    def test_create_round_trip(self, records):
        fields = {"allergen": "Penicillin", "reaction": "Rash", "severity": "Severe"}
        created = records.create("p-1", "allergies", fields)

        listed = records.list("p-1", "allergies")
        assert len(listed) == 1
        assert listed[0] == created
        assert {k: v for k, v in listed[0].items() if k != "id"} == fields

    def test_newest_first(self, records):
        first = records.create("p-1", "medications", {"medication_name": "A"})
        second = records.create("p-1", "medications", {"medication_name": "B"})
        assert [r["id"] for r in records.list("p-1", "medications")] == [second["id"], first["id"]]

    def test_ids_are_unique(self, records):
        ids = {records.create("p-1", "allergies", {})["id"] for _ in range(20)}
        assert len(ids) == 20

    def test_scoped_by_patient_and_module(self, records):
        records.create("p-1", "allergies", {"allergen": "Latex"})
        assert records.list("p-2", "allergies") == []
        assert records.list("p-1", "medications") == []

    def test_unknown_field_keys_are_kept(self, records):
        records.create("p-1", "allergies", {"allergen": "Latex", "legacy_field": "x"})
        assert records.list("p-1", "allergies")[0]["legacy_field"] == "x"

    def test_stored_as_json_array(self, records, kv_store):
        created = records.create("p-1", "allergies", {"allergen": "Latex"})
        assert json.loads(kv_store.get("emr_p-1_allergies")) == [created]

    def test_records_key_layout(self):
        assert records_key("abc", "lab_results") == "emr_abc_lab_results"


class TestCorruptData:
    """Unreadable stored values read as an empty module."""

    def test_invalid_json(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", "{not json")
        assert records.list("p-1", "allergies") == []

    def test_non_list_json(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", '{"id": "x"}')
        assert records.list("p-1", "allergies") == []

    def test_create_over_corrupt_value_starts_fresh(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", "garbage")
        created = records.create("p-1", "allergies", {"allergen": "Latex"})
        assert records.list("p-1", "allergies") == [created]


class TestUpdate:

    def test_merge_not_replace(self, records):
        record = records.create("p-1", "lab_results", {"a": "1", "b": "2"})
        records.update("p-1", "lab_results", record["id"], {"a": "x"})
        assert records.list("p-1", "lab_results")[0] == {"id": record["id"], "a": "x", "b": "2"}

    def test_update_adds_new_keys(self, records):
        record = records.create("p-1", "lab_results", {"a": "1"})
        records.update("p-1", "lab_results", record["id"], {"c": "3"})
        assert records.list("p-1", "lab_results")[0]["c"] == "3"

    def test_update_keeps_position(self, records):
        older = records.create("p-1", "diagnoses", {"n": "old"})
        newer = records.create("p-1", "diagnoses", {"n": "new"})
        records.update("p-1", "diagnoses", older["id"], {"n": "edited"})
        listed = records.list("p-1", "diagnoses")
        assert [r["id"] for r in listed] == [newer["id"], older["id"]]
        assert listed[1]["n"] == "edited"

    def test_unknown_id_is_noop(self, records, kv_store):
        records.create("p-1", "allergies", {"allergen": "Latex"})
        before = kv_store.get("emr_p-1_allergies")
        records.update("p-1", "allergies", "missing", {"allergen": "Dust"})
        assert kv_store.get("emr_p-1_allergies") == before

    def test_unknown_id_on_empty_module_writes_nothing(self, records, kv_store):
        records.update("p-1", "allergies", "missing", {"allergen": "Dust"})
        assert kv_store.get("emr_p-1_allergies") is None


class TestDelete:

    def test_delete_removes_record(self, records):
        keep = records.create("p-1", "allergies", {"allergen": "A"})
        drop = records.create("p-1", "allergies", {"allergen": "B"})
        records.delete("p-1", "allergies", drop["id"])
        assert records.list("p-1", "allergies") == [keep]

    def test_delete_unknown_id_leaves_sequence_unchanged(self, records):
        records.create("p-1", "allergies", {"allergen": "A"})
        records.create("p-1", "allergies", {"allergen": "B"})
        before = records.list("p-1", "allergies")
        records.delete("p-1", "allergies", "missing")
        assert records.list("p-1", "allergies") == before

    def test_delete_persists_even_when_nothing_matched(self, records, kv_store):
        records.delete("p-1", "allergies", "missing")
        assert kv_store.get("emr_p-1_allergies") == "[]"


class TestClear:

    def test_clear_removes_keys(self, records, kv_store):
        records.create("p-1", "allergies", {"allergen": "A"})
        records.create("p-1", "medications", {"medication_name": "M"})
        records.clear("p-1", ["allergies", "medications"])
        assert kv_store.get("emr_p-1_allergies") is None
        assert kv_store.get("emr_p-1_medications") is None
        assert records.list("p-1", "allergies") == []

    def test_clear_only_listed_modules(self, records):
        records.create("p-1", "allergies", {"allergen": "A"})
        kept = records.create("p-1", "vital_signs", {"pulse": "70"})
        records.clear("p-1", ["allergies"])
        assert records.list("p-1", "vital_signs") == [kept]

    def test_clear_only_that_patient(self, records):
        other = records.create("p-2", "allergies", {"allergen": "A"})
        records.create("p-1", "allergies", {"allergen": "B"})
        records.clear("p-1", ["allergies"])
        assert records.list("p-2", "allergies") == [other]

    def test_clear_accepts_generator(self, records, kv_store):
        records.create("p-1", "allergies", {"allergen": "A"})
        records.clear("p-1", (key for key in ["allergies"]))
        assert kv_store.get("emr_p-1_allergies") is None


class TestDefaultStore:

    def test_uses_configured_database(self, db_path, monkeypatch):
        monkeypatch.setattr("medchart.config.DB_PATH", db_path)
        store = RecordStore()
        created = store.create("p-1", "allergies", {"allergen": "A"})
        assert store.list("p-1", "allergies") == [created]


class TestSearchRecords:
    """Tests for search_records filtering."""

    RECORDS = [
        {"id": "1", "allergen": "Penicillin", "reaction": "Rash"},
        {"id": "2", "allergen": "Peanuts", "reaction": "Anaphylaxis"},
        {"id": "3", "allergen": "Latex", "reaction": "Hives"},
    ]

    def test_empty_query_returns_all(self):
        assert search_records(self.RECORDS, "") == self.RECORDS

    def test_case_insensitive_substring(self):
        assert [r["id"] for r in search_records(self.RECORDS, "pe")] == ["1", "2"]

    def test_matches_any_field(self):
        assert [r["id"] for r in search_records(self.RECORDS, "HIVES")] == ["3"]

    def test_no_match(self):
        assert search_records(self.RECORDS, "dust") == []


class TestImportedShapes:
    """Stored sequences written by chart import may hold odd items."""

    def test_non_object_items_are_skipped(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", '["junk", 7, null, {"id": "a", "allergen": "Latex"}]')
        assert records.list("p-1", "allergies") == [{"id": "a", "allergen": "Latex"}]

    def test_update_alongside_non_object_items(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", '["junk", {"id": "a", "allergen": "Latex"}]')
        records.update("p-1", "allergies", "a", {"allergen": "Dust"})
        assert records.list("p-1", "allergies") == [{"id": "a", "allergen": "Dust"}]

    def test_delete_alongside_non_object_items(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", '[7, {"id": "a"}]')
        records.delete("p-1", "allergies", "a")
        assert records.list("p-1", "allergies") == []

    def test_numeric_ids_match_as_strings(self, records, kv_store):
        kv_store.set("emr_p-1_allergies", '[{"id": 42, "allergen": "Latex"}, {"id": 43}]')
        records.update("p-1", "allergies", "42", {"reaction": "Hives"})
        records.delete("p-1", "allergies", "43")
        assert records.list("p-1", "allergies") == [{"id": 42, "allergen": "Latex", "reaction": "Hives"}]

    def test_entry_id(self):
        assert entry_id({"id": 42}) == "42"
        assert entry_id({}) == ""
