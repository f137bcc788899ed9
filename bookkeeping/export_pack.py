import json
import logging
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .models import Advance, DailyLedgerEntry, StaffActivity
from .services.aggregation import month_bounds, month_label
from .services.ledger import fetch_entries, get_month_report

logger = logging.getLogger(__name__)

DAILY_LOG_FIELDS = (
    "date",
    "sales_amount",
    "staff_salary",
    "partner_commission",
    "rent",
    "utilities",
    "supplies",
    "other_expenses",
    "staff_advances",
    "partner_advances",
    "total_expenses",
    "net_profit",
    "notes",
)
ADVANCE_FIELDS = (
    "id",
    "staff_name",
    "advance_type",
    "amount",
    "advance_date",
    "status",
    "repayment_date",
    "notes",
)
ACTIVITY_FIELDS = (
    "id",
    "staff_name",
    "activity_type",
    "hours_worked",
    "amount",
    "activity_date",
)


def _fmt_date(val):
    if not val:
        return ""
    if isinstance(val, (date, datetime)):
        return val.strftime("%Y-%m-%d")
    return str(val)


def _auto_width(ws, max_cols=40):
    for col in range(1, min(ws.max_column, max_cols) + 1):
        letter = get_column_letter(col)
        ws.column_dimensions[letter].width = 18


def _wb_to_bytes(wb: Workbook) -> bytes:
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _bold_header(ws, headers):
    ws.append(headers)
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)


# =========================
# JSON EXPORT
# =========================
def build_owner_export(owner) -> dict:
    """
    Everything the owner has recorded, ready for json.dumps with DjangoJSONEncoder.
    """
    return {
        "export_date": timezone.now().isoformat(),
        "user_email": owner.email,
        "daily_logs": list(
            DailyLedgerEntry.objects.filter(owner=owner).order_by("date").values(*DAILY_LOG_FIELDS)
        ),
        "advances": list(
            Advance.objects.filter(owner=owner).order_by("advance_date", "id").values(*ADVANCE_FIELDS)
        ),
        "staff_activities": list(
            StaffActivity.objects.filter(owner=owner).order_by("activity_date", "id").values(*ACTIVITY_FIELDS)
        ),
    }


def owner_export_json(owner) -> str:
    data = build_owner_export(owner)
    logger.info(
        "Exported %s entries, %s advances, %s activities for owner %s",
        len(data["daily_logs"]),
        len(data["advances"]),
        len(data["staff_activities"]),
        owner.pk,
    )
    return json.dumps(data, cls=DjangoJSONEncoder, indent=2)


def export_filename(today=None) -> str:
    today = today or timezone.localdate()
    return f"pharmacy-books-{today.isoformat()}.json"


# =========================
# MONTHLY REPORT (XLSX)
# =========================
SUMMARY_ROWS = [
    ("Total sales", "total_sales"),
    ("Staff salaries", "total_staff_salary"),
    ("Partner commissions", "total_partner_commission"),
    ("Rent", "total_rent"),
    ("Utilities", "total_utilities"),
    ("Supplies", "total_supplies"),
    ("Other expenses", "total_other_expenses"),
    ("Total expenses", "total_expenses"),
    ("Total advances", "total_advances"),
    ("Net profit", "net_profit"),
    ("Days with data", "days_with_data"),
    ("Average sales / day", "average_sales_per_day"),
    ("Average profit / day", "average_profit_per_day"),
    ("Profit margin %", "profit_margin"),
    ("Expenses / sales %", "expense_ratio"),
    ("Advances / sales %", "advance_ratio"),
]


def _num(val):
    if isinstance(val, Decimal):
        return float(val.quantize(Decimal("0.01")))
    return val


def generate_monthly_report(owner, year: int, month: int) -> bytes:
    """
    Two sheets: the month summary (with previous month alongside) and the daily rows.
    """
    report = get_month_report(owner=owner, year=year, month=month)

    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"

    _bold_header(ws, ["Metric", month_label(year, month), "Previous month", "Change %"])
    for label, attr in SUMMARY_ROWS:
        change = report.changes.get(attr)
        ws.append([
            label,
            _num(getattr(report.summary, attr)),
            _num(getattr(report.previous, attr)),
            _num(change.percent) if change else "",
        ])
    _auto_width(ws)

    ws = wb.create_sheet("Daily Log")
    _bold_header(ws, [
        "Date",
        "Sales",
        "Staff Salary",
        "Partner Commission",
        "Rent",
        "Utilities",
        "Supplies",
        "Other Expenses",
        "Staff Advances",
        "Partner Advances",
        "Total Expenses",
        "Net Profit",
        "Notes",
    ])

    start, end = month_bounds(year, month)
    for e in fetch_entries(owner=owner, start=start, end=end):
        ws.append([
            _fmt_date(e.date),
            _num(e.sales_amount),
            _num(e.staff_salary),
            _num(e.partner_commission),
            _num(e.rent),
            _num(e.utilities),
            _num(e.supplies),
            _num(e.other_expenses),
            _num(e.staff_advances),
            _num(e.partner_advances),
            _num(e.total_expenses),
            _num(e.net_profit),
            e.notes or "",
        ])
    _auto_width(ws)

    logger.info("Built monthly report %s for owner %s", month_label(year, month), owner.pk)
    return _wb_to_bytes(wb)
