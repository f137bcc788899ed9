from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction

from .aggregation import (
    ADVANCE_FIELDS,
    EXPENSE_FIELDS,
    MonthlySummary,
    compare_summaries,
    month_bounds,
    previous_month,
    summarize,
)

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ("sales_amount", *EXPENSE_FIELDS, *ADVANCE_FIELDS, "notes")


def _require_owner(owner):
    if owner is None or getattr(owner, "pk", None) is None:
        raise PermissionDenied("Owner not resolved.")
    return owner


# -------------------------
# DAILY LEDGER
# -------------------------

def fetch_entries(*, owner, start: date, end: date, newest_first: bool = False):
    """
    Owner-scoped ledger rows with start <= date <= end.
    """
    from bookkeeping.models import DailyLedgerEntry

    _require_owner(owner)
    qs = DailyLedgerEntry.objects.filter(owner=owner, date__gte=start, date__lte=end)
    return qs.order_by("-date" if newest_first else "date")


def upsert_entry(*, owner, entry_date: date, **values):
    """
    Create or wholesale replace the owner's entry for entry_date.
    Fields not passed are reset to their defaults.
    """
    from bookkeeping.models import DailyLedgerEntry

    _require_owner(owner)

    unknown = set(values) - set(ENTRY_FIELDS)
    if unknown:
        raise ValueError(f"Unknown ledger fields: {', '.join(sorted(unknown))}")

    defaults = {f: Decimal("0") for f in ENTRY_FIELDS if f != "notes"}
    defaults["notes"] = ""
    defaults.update({k: v for k, v in values.items() if v is not None})

    with transaction.atomic():
        entry, created = DailyLedgerEntry.objects.update_or_create(
            owner=owner,
            date=entry_date,
            defaults=defaults,
        )

    logger.info(
        "%s daily entry %s for owner %s (net %s)",
        "Created" if created else "Replaced",
        entry_date,
        owner.pk,
        entry.net_profit,
    )
    return entry, created


@dataclass
class MonthReport:
    year: int
    month: int
    start: date
    end: date
    summary: MonthlySummary
    previous: MonthlySummary
    changes: dict


def get_month_report(*, owner, year: int, month: int) -> MonthReport:
    """
    Summary for one calendar month plus the previous month for comparison.
    """
    start, end = month_bounds(year, month)
    summary = summarize(fetch_entries(owner=owner, start=start, end=end))

    prev_start, prev_end = month_bounds(*previous_month(year, month))
    previous = summarize(fetch_entries(owner=owner, start=prev_start, end=prev_end))

    return MonthReport(
        year=year,
        month=month,
        start=start,
        end=end,
        summary=summary,
        previous=previous,
        changes=compare_summaries(summary, previous),
    )


# -------------------------
# ADVANCES
# -------------------------

def fetch_advances(*, owner, status: Optional[str] = None):
    from bookkeeping.models import Advance

    _require_owner(owner)
    qs = Advance.objects.filter(owner=owner)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-advance_date", "-id")


def pending_advances_total(*, owner) -> Decimal:
    from bookkeeping.models import Advance

    total = Decimal("0")
    for amount in fetch_advances(owner=owner, status=Advance.STATUS_PENDING).values_list("amount", flat=True):
        total += amount
    return total


def set_advance_status(*, owner, advance_id: int, status: str):
    """
    Apply a pending -> repaid/cancelled transition on an owner's advance.
    Raises ValidationError for unknown targets or non-pending advances.
    """
    from bookkeeping.models import Advance

    advance = fetch_advances(owner=owner).filter(pk=advance_id).first()
    if advance is None:
        raise Advance.DoesNotExist(f"Advance {advance_id} not found for this owner.")

    if status == Advance.STATUS_REPAID:
        advance.mark_repaid()
    elif status == Advance.STATUS_CANCELLED:
        advance.cancel()
    else:
        raise ValidationError(f"Unsupported status change: {status!r}.")
    return advance


# -------------------------
# STAFF ACTIVITIES
# -------------------------

def recent_activities(*, owner, limit: int = 20) -> List:
    from bookkeeping.models import StaffActivity

    _require_owner(owner)
    return list(
        StaffActivity.objects.filter(owner=owner).order_by("-activity_date", "-id")[:limit]
    )


def record_activity(*, owner, **values):
    from bookkeeping.models import StaffActivity

    _require_owner(owner)
    activity = StaffActivity.objects.create(owner=owner, **values)
    logger.info("Recorded activity %s for owner %s", activity.pk, owner.pk)
    return activity
