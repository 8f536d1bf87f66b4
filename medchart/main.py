"""Interactive chart shell: patients, module records, import/export."""

import logging
import shlex
import sys
from datetime import date

from rich.console import Console, Group
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.status import Status
from rich.table import Table

from medchart import config
from medchart.chart_store.database import ImportRejectedError, init_database
from medchart.chart_store.database.chart_transfer import (
    export_filename,
    read_chart_file,
    write_chart_file,
)
from medchart.chart_store.database.patient_directory import SEX_OPTIONS
from medchart.chart_store.database.record_store import entry_id, search_records
from medchart.dashboard import build_summary
from medchart.entry_form import (
    apply_computed_fields,
    display_value,
    edit_form_values,
    validate_entry,
)
from medchart.helpers import EMPTY_VALUE, format_date
from medchart.modules import MODULE_KEYS, FieldType, UnknownModuleError, get_module, list_modules
from medchart.session import ChartSession

console = Console()
logger = logging.getLogger(__name__)

# Typed at a field prompt to blank the value, or as `list -` to drop the search
CLEAR_TOKEN = "-"

HELP = """
**Patients**: `patients`, `new`, `switch <id>`, `remove <id>`

**Chart**: `summary`, `modules`, `open <module>`, `list [search]`, `show <id>`, `add`, `edit <id>`, `delete <id>`

**Data**: `export [path]`, `import <path>`, `clear`

When editing, press Enter to keep a value or type `-` to clear it. `list -` drops the current search.

Type `quit` or `exit` to leave.
"""


class CommandError(Exception):
    """Raised when a command cannot run in the current session state."""
    pass


def ask(prompt: str) -> str:
    """Prompt the user for one line of input."""
    return console.input(prompt).strip()


def confirm(prompt: str) -> bool:
    return ask(f"{prompt} [y/N] ").lower() in ("y", "yes")


def success(message: str) -> str:
    return f"[bold green]✓[/bold green] {message}"


def _require_patient(session: ChartSession):
    patient = session.directory.current()
    if patient is None:
        raise CommandError("No patient selected. Create one with `new` or pick one with `switch`.")
    return patient


def _require_module(session: ChartSession):
    if session.active_module is None:
        raise CommandError("No module open. Use `open <module>` first.")
    return session.active_module


def _resolve_record_id(session: ChartSession, patient_id: str, prefix: str) -> str:
    """Accept a full id or a unique prefix of one, as shown in the table."""
    if not prefix:
        raise CommandError("Record id required.")
    records = session.records.list(patient_id, session.active_module.key)
    matches = [entry_id(r) for r in records if entry_id(r).startswith(prefix)]
    if len(matches) != 1:
        raise CommandError(f"No single record matches {prefix!r}.")
    return matches[0]


def _find_record(session: ChartSession, patient_id: str, record_id: str) -> dict:
    records = session.records.list(patient_id, session.active_module.key)
    return next(r for r in records if entry_id(r) == record_id)


# Patient commands

def handle_patients(session: ChartSession, args: str):
    """List patients, marking the current one."""
    patients = session.directory.list()
    if not patients:
        return "No patients yet. Use `new` to create one."
    current_id = session.directory.current_id()
    table = Table(title="Patients")
    for column in ("", "ID", "Name", "MRN", "DOB", "Sex"):
        table.add_column(column)
    for p in patients:
        table.add_row(
            "*" if p.id == current_id else "",
            p.id[:8], p.name, p.mrn or EMPTY_VALUE, format_date(p.dob), p.sex or EMPTY_VALUE,
        )
    return table


def handle_new_patient(session: ChartSession, args: str):
    name = ask("Name: ")
    dob = ask("DOB (YYYY-MM-DD, optional): ")
    sex = ask(f"Sex ({'/'.join(SEX_OPTIONS)}, optional): ")
    mrn = ask("MRN: ")
    if not name or not mrn:
        raise CommandError("Name and MRN are required")
    if sex and sex not in SEX_OPTIONS:
        raise CommandError(f"Sex must be one of: {', '.join(SEX_OPTIONS)}")
    patient = session.directory.create(name=name, dob=dob, sex=sex, mrn=mrn)
    session.active_module = None
    return success(f'Patient "{patient.name}" created')


def _resolve_patient_id(session: ChartSession, prefix: str) -> str:
    if not prefix:
        raise CommandError("Patient id required.")
    matches = [p.id for p in session.directory.list() if p.id.startswith(prefix)]
    # An exact id is always accepted, even one not in the directory
    if len(matches) == 1:
        return matches[0]
    return prefix


def handle_switch(session: ChartSession, args: str):
    patient_id = _resolve_patient_id(session, args)
    session.directory.switch_current(patient_id)
    session.active_module = None
    patient = session.directory.current()
    if patient is None:
        return "[yellow]No patient with that id; nothing selected.[/yellow]"
    return success(f"Switched to {patient.name}")


def handle_remove_patient(session: ChartSession, args: str):
    patient_id = _resolve_patient_id(session, args)
    patient = session.directory.get(patient_id)
    if patient is None:
        raise CommandError(f"No patient matches {args!r}.")
    if not confirm(f"Delete patient {patient.name}?"):
        return "Cancelled."
    session.directory.delete(patient.id)
    session.active_module = None
    return success(f"Patient {patient.name} deleted")


# Chart commands

def handle_summary(session: ChartSession, args: str):
    """Dashboard for the current patient."""
    patient = session.directory.current()
    if patient is None:
        return Markdown("**No Patient Selected.** Create or select a patient to get started.")
    summary = build_summary(session.records, patient.id)

    header = f"# {patient.name}\n\nMRN: **{patient.mrn or EMPTY_VALUE}**"
    if patient.dob:
        header += f" · DOB: {format_date(patient.dob)}"
    if patient.sex:
        header += f" · Sex: {patient.sex}"
    parts = [Markdown(header)]

    if summary.has_alerts:
        alerts = [f"- Allergy: **{a.get('allergen', '')}** ({a.get('severity')})" for a in summary.severe_allergies]
        alerts += [
            f"- Lab: **{lab.get('test_name', '')}** {lab.get('value', '')} {lab.get('units', '')} ({lab.get('flag')})"
            for lab in summary.abnormal_labs
        ]
        parts.append(Markdown("## Alerts\n\n" + "\n".join(alerts)))

    if summary.active_medications:
        meds = [
            f"- {m.get('medication_name', '')} {m.get('dose', '')} {m.get('frequency', '')}".rstrip()
            for m in summary.active_medications
        ]
        parts.append(Markdown(f"## Active Medications ({len(meds)})\n\n" + "\n".join(meds)))

    counts = Table(title="Records")
    counts.add_column("Module")
    counts.add_column("Count", justify="right")
    for module in list_modules():
        counts.add_row(module.label, str(summary.counts[module.key]))
    parts.append(counts)
    return Group(*parts)


def handle_modules(session: ChartSession, args: str):
    table = Table(title="Modules")
    table.add_column("Key")
    table.add_column("Label")
    for module in list_modules():
        table.add_row(module.key, module.label)
    return table


def handle_open(session: ChartSession, args: str):
    try:
        module = get_module(args)
    except UnknownModuleError:
        raise CommandError(f"Unknown module {args!r}. Try `modules`.") from None
    session.active_module = module
    session.search = ""
    return handle_list(session, "")


def handle_list(session: ChartSession, args: str):
    """Show the open module's records as a table, optionally filtered."""
    patient = _require_patient(session)
    module = _require_module(session)
    if args == CLEAR_TOKEN:
        session.search = ""
    elif args:
        session.search = args
    records = session.records.list(patient.id, module.key)
    filtered = search_records(records, session.search)
    if not filtered:
        if not records:
            return 'No records yet. Use "add" to create one.'
        return "No records match your search."

    table = Table(title=module.label, caption=f"{len(filtered)} of {len(records)} record{'s' if len(records) != 1 else ''}")
    table.add_column("ID")
    fields = module.summary_fields
    for field in fields:
        table.add_column(field.label)
    for record in filtered:
        table.add_row(entry_id(record)[:8], *(display_value(f, record.get(f.key)) for f in fields))
    return table


def handle_show(session: ChartSession, args: str):
    """Every field of one record, long text in full."""
    patient = _require_patient(session)
    module = _require_module(session)
    record = _find_record(session, patient.id, _resolve_record_id(session, patient.id, args))
    table = Table(title=f"{module.label} / {entry_id(record)[:8]}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", overflow="fold")
    for field in module.fields:
        table.add_row(field.label, display_value(field, record.get(field.key), full=True))
    return table


def _prompt_fields(module, current: dict[str, str]) -> dict[str, str]:
    values = dict(current)
    for field in module.fields:
        if field.computed:
            continue
        label = field.label + ("*" if field.required else "")
        hint = ""
        if field.type == FieldType.SELECT:
            hint = f" ({'/'.join(field.options)})"
        elif field.type in (FieldType.DATE, FieldType.DATETIME):
            hint = " (YYYY-MM-DD)" if field.type == FieldType.DATE else " (YYYY-MM-DDTHH:MM)"
        default = escape(f" [{current[field.key]}, - to clear]") if current.get(field.key) else ""
        answer = ask(f"{label}{hint}{default}: ")
        if answer == CLEAR_TOKEN:
            values[field.key] = ""
        elif answer:
            values[field.key] = answer
    return apply_computed_fields(module, values)


def handle_add(session: ChartSession, args: str):
    patient = _require_patient(session)
    module = _require_module(session)
    values = _prompt_fields(module, {})
    errors = validate_entry(module, values)
    if errors:
        raise CommandError(errors[0])
    session.records.create(patient.id, module.key, values)
    return success("Record added")


def handle_edit(session: ChartSession, args: str):
    patient = _require_patient(session)
    module = _require_module(session)
    record_id = _resolve_record_id(session, patient.id, args)
    record = _find_record(session, patient.id, record_id)
    values = _prompt_fields(module, edit_form_values(module, record))
    errors = validate_entry(module, values)
    if errors:
        raise CommandError(errors[0])
    session.records.update(patient.id, module.key, record_id, values)
    return success("Record updated")


def handle_delete(session: ChartSession, args: str):
    patient = _require_patient(session)
    module = _require_module(session)
    record_id = _resolve_record_id(session, patient.id, args)
    if not confirm("Delete this record?"):
        return "Cancelled."
    session.records.delete(patient.id, module.key, record_id)
    return success("Record deleted")


# Data commands

def handle_export(session: ChartSession, args: str):
    patient = _require_patient(session)
    with Status("Exporting chart...", console=console, spinner="dots"):
        document = session.transfer.export_chart(patient.id, MODULE_KEYS)
        path = write_chart_file(args or export_filename(patient, date.today()), document)
    return success(f"Chart exported to {path}")


def handle_import(session: ChartSession, args: str):
    if not args:
        raise CommandError("Path required.")
    with Status("Importing chart...", console=console, spinner="dots"):
        document = read_chart_file(args)
        patient = session.transfer.import_chart(document, MODULE_KEYS)
    session.active_module = None
    return success(f'Imported chart for "{patient.name}"')


def handle_clear(session: ChartSession, args: str):
    patient = _require_patient(session)
    if not confirm(f"Clear ALL data for {patient.name}? This cannot be undone."):
        return "Cancelled."
    session.records.clear(patient.id, MODULE_KEYS)
    session.active_module = None
    return success("Patient data cleared")


def handle_help(session: ChartSession, args: str):
    return Markdown(HELP)


COMMAND_HANDLERS = {
    "help": handle_help,
    "patients": handle_patients,
    "new": handle_new_patient,
    "switch": handle_switch,
    "remove": handle_remove_patient,
    "summary": handle_summary,
    "modules": handle_modules,
    "open": handle_open,
    "list": handle_list,
    "show": handle_show,
    "add": handle_add,
    "edit": handle_edit,
    "delete": handle_delete,
    "export": handle_export,
    "import": handle_import,
    "clear": handle_clear,
}


def process_input(session: ChartSession, user_input: str):
    """Dispatch one command line and return what to print."""
    command, _, args = user_input.partition(" ")
    handler = COMMAND_HANDLERS.get(command.lower())
    if handler is None:
        return f"[yellow]Unknown command {command!r}.[/yellow] Type `help` for a list."
    args = args.strip()
    if command.lower() in ("export", "import") and args:
        try:
            args = shlex.split(args)[0]
        except ValueError:
            raise CommandError("Unbalanced quotes in path") from None
    return handler(session, args)


def prompt_label(session: ChartSession) -> str:
    patient = session.directory.current()
    where = patient.name if patient else "no patient"
    if session.active_module is not None:
        where += f" / {session.active_module.label}"
    return f"[bold green]{where}>[/bold green] "


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Main shell loop."""
    configure_logging()
    init_database()
    session = ChartSession.open()

    console.print("[bold blue]MedChart EMR[/bold blue]")
    console.print("Type 'help' for commands, 'quit' or 'exit' to leave.\n")
    console.print(handle_summary(session, ""), "\n")

    is_tty = sys.stdin.isatty()

    while True:
        try:
            user_input = console.input(prompt_label(session)).strip()
            # Echo input when stdin is piped (not interactive)
            if not is_tty and user_input:
                console.print(f"[dim]{user_input}[/dim]")
        except (EOFError, KeyboardInterrupt):
            console.print("\n[bold blue]Goodbye![/bold blue]")
            break

        if not user_input:
            continue

        if user_input.lower() in ("quit", "exit"):
            console.print("[bold blue]Goodbye![/bold blue]")
            break

        try:
            response = process_input(session, user_input)
            console.print(response, "\n")
        except (CommandError, ImportRejectedError) as e:
            console.print(f"[bold red]Error:[/bold red] {e}\n")
        except Exception as e:
            logger.exception("Command failed: %s", user_input)
            console.print(f"[bold red]Error:[/bold red] {e}\n")


if __name__ == "__main__":
    main()
