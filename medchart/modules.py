"""Clinical module definitions that drive entry forms and record tables."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldType(str, Enum):
    """Input types a module field can declare."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime-local"
    SELECT = "select"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "tel"


class FieldDefinition(BaseModel):
    """One field of a module form."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: tuple[str, ...] | None = None
    min: float | None = None
    max: float | None = None
    step: float | None = None
    in_summary_view: bool = Field(False, description="Shown as a table column, not only in detail")
    computed: bool = Field(False, description="Derived from other fields, not user-editable")

    @model_validator(mode="after")
    def check_type_metadata(self):
        """Options belong to select fields and bounds to number fields only."""
        if self.options is not None and self.type != FieldType.SELECT:
            raise ValueError(f"{self.key}: options are only allowed on select fields")
        if self.type == FieldType.SELECT and not self.options:
            raise ValueError(f"{self.key}: select fields need options")
        bounds = (self.min, self.max, self.step)
        if any(b is not None for b in bounds) and self.type != FieldType.NUMBER:
            raise ValueError(f"{self.key}: numeric bounds are only allowed on number fields")
        return self


class ModuleDefinition(BaseModel):
    """A clinical category with an ordered field schema."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    fields: tuple[FieldDefinition, ...]

    @model_validator(mode="after")
    def check_unique_field_keys(self):
        keys = [f.key for f in self.fields]
        if len(keys) != len(set(keys)):
            raise ValueError(f"{self.key}: duplicate field keys")
        return self

    @property
    def summary_fields(self) -> list[FieldDefinition]:
        """Fields shown as table columns."""
        return [f for f in self.fields if f.in_summary_view]

    @property
    def required_fields(self) -> list[FieldDefinition]:
        return [f for f in self.fields if f.required]


class UnknownModuleError(KeyError):
    """Raised when a module key is not in the registry."""
    pass


def _field(key: str, label: str, type: FieldType = FieldType.TEXT, **kwargs) -> FieldDefinition:
    return FieldDefinition(key=key, label=label, type=type, **kwargs)


T, NUM, DATE, DT, SEL, AREA, EMAIL, TEL = (
    FieldType.TEXT, FieldType.NUMBER, FieldType.DATE, FieldType.DATETIME,
    FieldType.SELECT, FieldType.TEXTAREA, FieldType.EMAIL, FieldType.PHONE,
)


MODULES: tuple[ModuleDefinition, ...] = (
    ModuleDefinition(key="administrative", label="Administrative Data", fields=(
        _field("visit_date", "Visit Date", DATE, required=True, in_summary_view=True),
        _field("full_name", "Full Name", required=True, in_summary_view=True),
        _field("mrn", "MRN", in_summary_view=True),
        _field("dob", "DOB", DATE),
        _field("sex", "Sex", SEL, options=("Male", "Female", "Other"), in_summary_view=True),
        _field("phone", "Phone", TEL),
        _field("email", "Email", EMAIL),
        _field("address", "Address"),
        _field("emergency_contact_name", "Emergency Contact"),
        _field("emergency_contact_phone", "Emergency Phone", TEL),
        _field("insurance_provider", "Insurance Provider", in_summary_view=True),
        _field("policy_no", "Policy No."),
        _field("primary_physician", "Primary Physician"),
    )),
    ModuleDefinition(key="clinical_notes", label="Clinical Notes", fields=(
        _field("date_time", "Date/Time", DT, required=True, in_summary_view=True),
        _field("author", "Author", required=True, in_summary_view=True),
        _field("note_type", "Note Type", SEL, options=("SOAP", "Progress", "Discharge"),
               required=True, in_summary_view=True),
        _field("subjective", "Subjective", AREA),
        _field("objective", "Objective", AREA),
        _field("assessment", "Assessment", AREA, in_summary_view=True),
        _field("plan", "Plan", AREA),
    )),
    ModuleDefinition(key="medical_history", label="Medical History", fields=(
        _field("condition", "Condition/Problem", required=True, in_summary_view=True),
        _field("onset_date", "Onset Date", DATE, in_summary_view=True),
        _field("status", "Status", SEL, options=("Active", "Resolved", "Chronic", "Remission"),
               required=True, in_summary_view=True),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="diagnoses", label="Diagnoses", fields=(
        _field("date", "Date", DATE, required=True, in_summary_view=True),
        _field("diagnosis_name", "Diagnosis Name", required=True, in_summary_view=True),
        _field("icd10", "ICD-10 Code", in_summary_view=True),
        _field("status", "Status", SEL, options=("Active", "Resolved", "Ruled Out"),
               required=True, in_summary_view=True),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="medications", label="Medications", fields=(
        _field("medication_name", "Medication Name", required=True, in_summary_view=True),
        _field("dose", "Dose", required=True, in_summary_view=True),
        _field("route", "Route", SEL,
               options=("Oral", "IV", "IM", "SC", "Topical", "Inhaled", "Rectal", "Other"),
               in_summary_view=True),
        _field("frequency", "Frequency", in_summary_view=True),
        _field("start_date", "Start Date", DATE, required=True),
        _field("end_date", "End Date", DATE),
        _field("prescriber", "Prescriber"),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="allergies", label="Allergies", fields=(
        _field("allergen", "Allergen", required=True, in_summary_view=True),
        _field("reaction", "Reaction", required=True, in_summary_view=True),
        _field("severity", "Severity", SEL, options=("Mild", "Moderate", "Severe", "Life-threatening"),
               required=True, in_summary_view=True),
        _field("onset_date", "Onset Date", DATE, in_summary_view=True),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="lab_results", label="Laboratory Results", fields=(
        _field("test_name", "Test Name", required=True, in_summary_view=True),
        _field("date", "Date", DATE, required=True, in_summary_view=True),
        _field("value", "Value", required=True, in_summary_view=True),
        _field("units", "Units", in_summary_view=True),
        _field("reference_range", "Reference Range"),
        _field("flag", "Flag", SEL, options=("Normal", "High", "Low", "Critical"), in_summary_view=True),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="immunizations", label="Immunizations", fields=(
        _field("vaccine", "Vaccine", required=True, in_summary_view=True),
        _field("date_given", "Date Given", DATE, required=True, in_summary_view=True),
        _field("dose", "Dose", in_summary_view=True),
        _field("lot_no", "Lot No."),
        _field("site", "Site", in_summary_view=True),
        _field("provider", "Provider"),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="imaging", label="Imaging Reports", fields=(
        _field("modality", "Modality", SEL, options=("XR", "CT", "MRI", "US", "PET", "Other"),
               required=True, in_summary_view=True),
        _field("study_date", "Study Date", DATE, required=True, in_summary_view=True),
        _field("body_part", "Body Part", required=True, in_summary_view=True),
        _field("impression", "Impression", AREA, in_summary_view=True),
        _field("findings", "Findings", AREA),
        _field("radiologist", "Radiologist"),
        _field("notes", "Notes", AREA),
    )),
    ModuleDefinition(key="vital_signs", label="Vital Signs", fields=(
        _field("date_time", "Date/Time", DT, required=True, in_summary_view=True),
        _field("temperature", "Temperature (°C)", NUM, step=0.1, min=30, max=45, in_summary_view=True),
        _field("pulse", "Pulse (bpm)", NUM, min=20, max=300, in_summary_view=True),
        _field("resp_rate", "Resp Rate (/min)", NUM, min=0, max=80),
        _field("bp_systolic", "BP Systolic", NUM, min=40, max=300, in_summary_view=True),
        _field("bp_diastolic", "BP Diastolic", NUM, min=20, max=200, in_summary_view=True),
        _field("spo2", "SpO₂ (%)", NUM, min=0, max=100),
        _field("weight", "Weight (kg)", NUM, step=0.1, min=0),
        _field("height", "Height (cm)", NUM, step=0.1, min=0),
        _field("bmi", "BMI", NUM, step=0.1, computed=True),
    )),
    ModuleDefinition(key="treatment_plans", label="Treatment Plans", fields=(
        _field("date", "Date", DATE, required=True, in_summary_view=True),
        _field("problem_goal", "Problem/Goal", required=True, in_summary_view=True),
        _field("interventions", "Interventions", AREA, in_summary_view=True),
        _field("responsible_clinician", "Responsible Clinician", in_summary_view=True),
        _field("followup_date", "Follow-up Date", DATE),
        _field("status", "Status", SEL, options=("Active", "Completed", "On Hold", "Cancelled"),
               required=True, in_summary_view=True),
        _field("notes", "Notes", AREA),
    )),
)

MODULE_KEYS: tuple[str, ...] = tuple(m.key for m in MODULES)

_MODULES_BY_KEY = {m.key: m for m in MODULES}


def list_modules() -> list[ModuleDefinition]:
    """All module definitions in display order."""
    return list(MODULES)


def get_module(module_key: str) -> ModuleDefinition:
    """Look up a module definition by key."""
    try:
        return _MODULES_BY_KEY[module_key]
    except KeyError:
        raise UnknownModuleError(module_key) from None


def fields_of(module_key: str) -> list[FieldDefinition]:
    """Ordered field definitions for a module."""
    return list(get_module(module_key).fields)
