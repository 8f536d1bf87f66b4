"""Seed the chart store with demo patients and module records."""

from medchart.chart_store.database import KeyValueStore, PatientDirectory, RecordStore, init_database
from medchart.chart_store.database.patient_directory import Patient
from medchart.helpers import calculate_bmi


MOCK_PATIENTS = [
    Patient(id="p-001", name="John Smith", dob="1985-03-15", sex="Male", mrn="M001"),
    Patient(id="p-002", name="Sarah Johnson", dob="1992-07-22", sex="Female", mrn="M002"),
    Patient(id="p-003", name="Michael Chen", dob="1978-11-08", sex="Male", mrn="M003"),
]

# (patient id, module key, records newest first)
MOCK_RECORDS = [
    ("p-001", "allergies", [
        {"id": "r-001-a1", "allergen": "Penicillin", "reaction": "Rash", "severity": "Severe",
         "onset_date": "2001-06-01"},
        {"id": "r-001-a2", "allergen": "Pollen", "reaction": "Sneezing", "severity": "Mild"},
    ]),
    ("p-001", "medications", [
        {"id": "r-001-m1", "medication_name": "Lisinopril", "dose": "10 mg", "route": "Oral",
         "frequency": "Daily", "start_date": "2022-01-10", "prescriber": "Dr. Sarah Chen"},
        {"id": "r-001-m2", "medication_name": "Amoxicillin", "dose": "500 mg", "route": "Oral",
         "frequency": "TID", "start_date": "2020-03-01", "end_date": "2020-03-10"},
    ]),
    ("p-001", "lab_results", [
        {"id": "r-001-l1", "test_name": "LDL Cholesterol", "date": "2024-02-01", "value": "165",
         "units": "mg/dL", "reference_range": "<100", "flag": "High"},
        {"id": "r-001-l2", "test_name": "HbA1c", "date": "2024-02-01", "value": "5.4",
         "units": "%", "reference_range": "4.0-5.6", "flag": "Normal"},
    ]),
    ("p-001", "vital_signs", [
        {"id": "r-001-v1", "date_time": "2024-02-01T09:30", "temperature": "36.8", "pulse": "72",
         "bp_systolic": "138", "bp_diastolic": "88", "weight": "82", "height": "178",
         "bmi": calculate_bmi("82", "178")},
    ]),
    ("p-002", "diagnoses", [
        {"id": "r-002-d1", "date": "2023-09-12", "diagnosis_name": "Migraine without aura",
         "icd10": "G43.009", "status": "Active"},
    ]),
    ("p-002", "immunizations", [
        {"id": "r-002-i1", "vaccine": "Influenza", "date_given": "2023-10-05", "dose": "0.5 mL",
         "site": "Left deltoid"},
    ]),
    ("p-003", "imaging", [
        {"id": "r-003-x1", "modality": "MRI", "study_date": "2023-05-20", "body_part": "Right knee",
         "impression": "Partial tear of the medial meniscus."},
    ]),
    ("p-003", "treatment_plans", [
        {"id": "r-003-t1", "date": "2023-05-25", "problem_goal": "Restore knee mobility",
         "interventions": "Physical therapy twice weekly", "status": "Active"},
    ]),
]


def seed_database(db_path=None) -> None:
    """Load demo data. Re-running replaces the demo patients and their records."""
    init_database(db_path)
    store = KeyValueStore(db_path)
    directory = PatientDirectory(store)
    records = RecordStore(store)

    print("Creating patients...")
    for patient in MOCK_PATIENTS:
        directory.upsert(patient)
        print(f"  {patient.name} ({patient.mrn})")

    print("Creating module records...")
    for patient_id, module_key, entries in MOCK_RECORDS:
        records.save_all(patient_id, module_key, entries)
        print(f"  {len(entries)} {module_key} record(s) for {patient_id}")

    if directory.current() is None:
        directory.switch_current(MOCK_PATIENTS[0].id)

    print("\nDatabase seeded successfully!")
    print(f"  - {len(MOCK_PATIENTS)} patients")
    print(f"  - {sum(len(entries) for _, _, entries in MOCK_RECORDS)} records")


if __name__ == "__main__":
    seed_database()
