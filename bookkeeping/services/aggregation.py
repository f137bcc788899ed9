from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional, Tuple

ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Magnitudes of 1e16 and above count as malformed input.
MAX_EXPONENT = 15

EXPENSE_FIELDS = (
    "staff_salary",
    "partner_commission",
    "rent",
    "utilities",
    "supplies",
    "other_expenses",
)
ADVANCE_FIELDS = ("staff_advances", "partner_advances")

COMPARED_METRICS = ("total_sales", "total_expenses", "total_advances", "net_profit")

INCREASE = "increase"
DECREASE = "decrease"
NO_CHANGE = "no_change"


def _finite(value: Decimal) -> Decimal:
    if not value.is_finite() or (value and value.adjusted() > MAX_EXPONENT):
        return ZERO
    return value


def to_decimal(x) -> Decimal:
    """
    Lenient money coercion: empty, missing, malformed, non-finite or
    absurdly large -> 0.
    """
    if isinstance(x, Decimal):
        return _finite(x)
    if x is None or isinstance(x, bool):
        return ZERO
    try:
        value = Decimal(str(x).strip() or "0")
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return _finite(value)


def _get(entry: Any, name: str) -> Decimal:
    if isinstance(entry, dict):
        return to_decimal(entry.get(name))
    return to_decimal(getattr(entry, name, None))


def _ratio(numerator: Decimal, denominator: Decimal, scale: Decimal = Decimal("1")) -> Decimal:
    if not denominator:
        return ZERO
    return numerator / denominator * scale


# -------------------------
# DAILY TOTALS (entry form + live preview)
# -------------------------

@dataclass(frozen=True)
class DailyTotals:
    total_expenses: Decimal
    total_advances: Decimal
    net_profit: Decimal
    sales: Decimal


def compute_daily_totals(
    *,
    sales_amount=None,
    staff_salary=None,
    partner_commission=None,
    rent=None,
    utilities=None,
    supplies=None,
    other_expenses=None,
    staff_advances=None,
    partner_advances=None,
    **_ignored,
) -> DailyTotals:
    sales = to_decimal(sales_amount)
    total_expenses = (
        to_decimal(staff_salary)
        + to_decimal(partner_commission)
        + to_decimal(rent)
        + to_decimal(utilities)
        + to_decimal(supplies)
        + to_decimal(other_expenses)
    )
    total_advances = to_decimal(staff_advances) + to_decimal(partner_advances)

    return DailyTotals(
        total_expenses=total_expenses,
        total_advances=total_advances,
        net_profit=sales - total_expenses - total_advances,
        sales=sales,
    )


# -------------------------
# MONTHLY SUMMARY
# -------------------------

@dataclass(frozen=True)
class MonthlySummary:
    total_sales: Decimal = ZERO
    total_staff_salary: Decimal = ZERO
    total_partner_commission: Decimal = ZERO
    total_rent: Decimal = ZERO
    total_utilities: Decimal = ZERO
    total_supplies: Decimal = ZERO
    total_other_expenses: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_advances: Decimal = ZERO
    net_profit: Decimal = ZERO
    days_with_data: int = 0

    @property
    def average_sales_per_day(self) -> Decimal:
        return _ratio(self.total_sales, Decimal(self.days_with_data))

    @property
    def average_profit_per_day(self) -> Decimal:
        return _ratio(self.net_profit, Decimal(self.days_with_data))

    @property
    def profit_margin(self) -> Decimal:
        return _ratio(self.net_profit, self.total_sales, HUNDRED)

    @property
    def expense_ratio(self) -> Decimal:
        return _ratio(self.total_expenses, self.total_sales, HUNDRED)

    @property
    def advance_ratio(self) -> Decimal:
        return _ratio(self.total_advances, self.total_sales, HUNDRED)

    def expense_breakdown(self) -> Dict[str, Decimal]:
        return {
            "staff_salary": self.total_staff_salary,
            "partner_commission": self.total_partner_commission,
            "rent": self.total_rent,
            "utilities": self.total_utilities,
            "supplies": self.total_supplies,
            "other_expenses": self.total_other_expenses,
        }

    def as_dict(self) -> Dict[str, Any]:
        data = {
            k: (str(v) if isinstance(v, Decimal) else v)
            for k, v in asdict(self).items()
        }
        data["average_sales_per_day"] = str(self.average_sales_per_day.quantize(Decimal("0.01")))
        data["average_profit_per_day"] = str(self.average_profit_per_day.quantize(Decimal("0.01")))
        data["profit_margin"] = str(self.profit_margin.quantize(Decimal("0.1")))
        data["expense_ratio"] = str(self.expense_ratio.quantize(Decimal("0.1")))
        data["advance_ratio"] = str(self.advance_ratio.quantize(Decimal("0.1")))
        return data


def summarize(entries: Iterable[Any]) -> MonthlySummary:
    """
    Sum a month of ledger entries (model instances or dicts).

    total_expenses and net_profit are rebuilt from the components of each
    entry; stored copies on the rows are ignored.
    """
    totals = {name: ZERO for name in EXPENSE_FIELDS}
    sales = ZERO
    advances = ZERO
    days = 0

    for entry in entries:
        days += 1
        sales += _get(entry, "sales_amount")
        for name in EXPENSE_FIELDS:
            totals[name] += _get(entry, name)
        for name in ADVANCE_FIELDS:
            advances += _get(entry, name)

    total_expenses = sum(totals.values(), ZERO)

    return MonthlySummary(
        total_sales=sales,
        total_staff_salary=totals["staff_salary"],
        total_partner_commission=totals["partner_commission"],
        total_rent=totals["rent"],
        total_utilities=totals["utilities"],
        total_supplies=totals["supplies"],
        total_other_expenses=totals["other_expenses"],
        total_expenses=total_expenses,
        total_advances=advances,
        # Sum of per-entry net profit; equal to the difference of sums.
        net_profit=sales - total_expenses - advances,
        days_with_data=days,
    )


# -------------------------
# PERIOD COMPARISON
# -------------------------

@dataclass(frozen=True)
class ChangeIndicator:
    percent: Decimal
    direction: str

    @property
    def magnitude(self) -> Decimal:
        return abs(self.percent)

    @property
    def symbol(self) -> str:
        return {INCREASE: "↑", DECREASE: "↓"}.get(self.direction, "→")


def percent_change(current, previous) -> Decimal:
    """
    ((current - previous) / |previous|) * 100, or 0 when previous is 0.
    """
    current = to_decimal(current)
    previous = to_decimal(previous)
    if previous == 0:
        return ZERO
    return (current - previous) / abs(previous) * HUNDRED


def change_indicator(percent) -> ChangeIndicator:
    percent = to_decimal(percent)
    if percent > 0:
        direction = INCREASE
    elif percent < 0:
        direction = DECREASE
    else:
        direction = NO_CHANGE
    return ChangeIndicator(percent=percent, direction=direction)


def compare_summaries(current: MonthlySummary, previous: Optional[MonthlySummary]) -> Dict[str, ChangeIndicator]:
    if previous is None:
        return {}
    return {
        metric: change_indicator(percent_change(getattr(current, metric), getattr(previous, metric)))
        for metric in COMPARED_METRICS
    }


# -------------------------
# MONTH RANGES
# -------------------------

def parse_month(raw: Optional[str], today: Optional[date] = None) -> Tuple[int, int]:
    """
    "YYYY-MM" -> (year, month). Malformed input falls back to today's month.
    """
    today = today or date.today()
    try:
        year_str, month_str = (raw or "").strip().split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        return today.year, today.month

    if not (1 <= month <= 12) or not (1 < year <= 9999):
        return today.year, today.month
    return year, month


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"
