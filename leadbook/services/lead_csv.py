import csv
import io
from datetime import date
from typing import Dict, Iterable, List

from leadbook.models import Lead
from leadbook.models.enums import BHK, City, PropertyType, Purpose, Source, Status, Timeline

EXPORT_COLUMNS = [
    "fullName", "email", "phone", "city", "propertyType", "bhk", "purpose",
    "budgetMin", "budgetMax", "timeline", "source", "notes", "tags", "status",
]

# Headers must match what the import accepts
TEMPLATE_COLUMNS = [
    "fullName", "email", "phone", "city", "propertyType", "bhk", "purpose",
    "budgetMin", "budgetMax", "timeline", "source", "status", "notes", "tags",
]

TEMPLATE_SAMPLE = {
    "fullName": "John Doe",
    "email": "john@example.com",
    "phone": "9876543210",
    "city": City.CHANDIGARH.value,
    "propertyType": PropertyType.APARTMENT.value,
    "bhk": BHK.TWO.value,
    "purpose": Purpose.BUY.value,
    "budgetMin": "3000000",
    "budgetMax": "5000000",
    "timeline": Timeline.ZERO_TO_THREE_MONTHS.value,
    "source": Source.WEBSITE.value,
    "status": Status.NEW.value,
    "notes": "Looking for 2BHK near IT Park",
    "tags": "hot,priority",
}


def _cell(value) -> str:
    return "" if value is None else str(value)


def export_row(lead: Lead) -> List[str]:
    return [
        _cell(lead.full_name),
        _cell(lead.email),
        _cell(lead.phone),
        _cell(lead.city),
        _cell(lead.property_type),
        _cell(lead.bhk),
        _cell(lead.purpose),
        _cell(lead.budget_min),
        _cell(lead.budget_max),
        _cell(lead.timeline),
        _cell(lead.source),
        _cell(lead.notes),
        ",".join(lead.tags or []),
        _cell(lead.status),
    ]


def export_leads_csv(leads: Iterable[Lead]) -> str:
    """Header line, then one fully quoted row per lead; tags share one field."""
    buf = io.StringIO()
    buf.write(",".join(EXPORT_COLUMNS) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for lead in leads:
        writer.writerow(export_row(lead))
    return buf.getvalue()


def template_csv() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(TEMPLATE_COLUMNS)
    writer.writerow([TEMPLATE_SAMPLE[column] for column in TEMPLATE_COLUMNS])
    return buf.getvalue()


def export_filename(today: date) -> str:
    return f"leads-export-{today.isoformat()}.csv"


def parse_csv_rows(text: str) -> List[Dict[str, str]]:
    """Header-keyed rows; blank lines and all-empty rows are skipped."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for record in reader:
        # extra cells beyond the header land under the None key
        record.pop(None, None)
        if not any((value or "").strip() for value in record.values()):
            continue
        rows.append(record)
    return rows
