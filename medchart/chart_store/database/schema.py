"""
MedChart Storage Schema
A single string-keyed table standing in for the browser's key-value storage.
"""

SCHEMA = """
-- =============================================================================
-- KV_STORE - Durable string key -> string value mapping
-- =============================================================================
-- Keys in use:
--   emr_patients                    JSON array of patients
--   emr_current_patient             raw patient id (row absent when unset)
--   emr_{patientId}_{moduleKey}     JSON array of entry records
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""
