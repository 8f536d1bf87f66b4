"""Chart overview: per-module counts and the alerts shown above a patient's chart."""

from dataclasses import dataclass, field
from datetime import date

from medchart.chart_store.database.record_store import EntryRecord, RecordStore
from medchart.modules import list_modules

SEVERE_ALLERGY_LEVELS = ("Severe", "Life-threatening")
ABNORMAL_LAB_FLAGS = ("High", "Low", "Critical")


@dataclass
class ChartSummary:
    counts: dict[str, int] = field(default_factory=dict)
    severe_allergies: list[EntryRecord] = field(default_factory=list)
    active_medications: list[EntryRecord] = field(default_factory=list)
    abnormal_labs: list[EntryRecord] = field(default_factory=list)

    @property
    def has_alerts(self) -> bool:
        return bool(self.severe_allergies or self.abnormal_labs)


def is_active_medication(record: EntryRecord, today: date) -> bool:
    """No end date, or an end date today or later. Unparseable end dates count as active."""
    end_date = record.get("end_date")
    if not end_date:
        return True
    try:
        return date.fromisoformat(str(end_date)[:10]) >= today
    except ValueError:
        return True


def build_summary(records: RecordStore, patient_id: str, today: date | None = None) -> ChartSummary:
    """Summarize a patient's chart across every module."""
    today = today or date.today()
    summary = ChartSummary()
    for module in list_modules():
        summary.counts[module.key] = len(records.list(patient_id, module.key))

    summary.severe_allergies = [
        a for a in records.list(patient_id, "allergies")
        if a.get("severity") in SEVERE_ALLERGY_LEVELS
    ]
    summary.active_medications = [
        m for m in records.list(patient_id, "medications")
        if is_active_medication(m, today)
    ]
    summary.abnormal_labs = [
        lab for lab in records.list(patient_id, "lab_results")
        if lab.get("flag") in ABNORMAL_LAB_FLAGS
    ]
    return summary
