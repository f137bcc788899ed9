from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from bookkeeping.models import Advance, DailyLedgerEntry, StaffActivity

pytestmark = pytest.mark.django_db


def test_save_stores_derived_totals(owner):
    entry = DailyLedgerEntry.objects.create(
        owner=owner,
        date=date(2024, 3, 1),
        sales_amount=Decimal("1000"),
        staff_salary=Decimal("200"),
        rent=Decimal("100"),
        staff_advances=Decimal("50"),
    )
    entry.refresh_from_db()
    assert entry.total_expenses == Decimal("300")
    assert entry.total_advances == Decimal("50")
    assert entry.net_profit == Decimal("650")

    entry.supplies = Decimal("25")
    entry.save()
    entry.refresh_from_db()
    assert entry.total_expenses == Decimal("325")
    assert entry.net_profit == Decimal("625")


def test_one_entry_per_owner_and_date(owner, other_owner):
    DailyLedgerEntry.objects.create(owner=owner, date=date(2024, 3, 1))
    DailyLedgerEntry.objects.create(owner=other_owner, date=date(2024, 3, 1))

    with pytest.raises(ValidationError):
        DailyLedgerEntry.objects.create(owner=owner, date=date(2024, 3, 1))


def test_negative_amounts_rejected(owner):
    with pytest.raises(ValidationError):
        DailyLedgerEntry.objects.create(owner=owner, date=date(2024, 3, 1), rent=Decimal("-1"))


def test_entry_requires_owner():
    with pytest.raises(ValidationError):
        DailyLedgerEntry(date=date(2024, 3, 1)).full_clean()


# --------------------------
# Advances
# --------------------------

def _advance(owner, **kwargs):
    kwargs.setdefault("staff_name", "Yacine")
    kwargs.setdefault("amount", Decimal("5000"))
    return Advance.objects.create(owner=owner, **kwargs)


def test_advance_created_pending(owner):
    advance = _advance(owner)
    assert advance.status == Advance.STATUS_PENDING
    assert advance.is_pending
    assert advance.repayment_date is None


def test_mark_repaid_sets_repayment_date(owner):
    advance = _advance(owner)
    advance.mark_repaid()

    advance.refresh_from_db()
    assert advance.status == Advance.STATUS_REPAID
    assert advance.repayment_date == timezone.localdate()


def test_mark_repaid_on_given_day(owner):
    advance = _advance(owner)
    advance.mark_repaid(on=date(2024, 3, 9))
    advance.refresh_from_db()
    assert advance.repayment_date == date(2024, 3, 9)


def test_cancel(owner):
    advance = _advance(owner)
    advance.cancel()
    advance.refresh_from_db()
    assert advance.status == Advance.STATUS_CANCELLED
    assert advance.repayment_date is None


@pytest.mark.parametrize("first", ["mark_repaid", "cancel"])
@pytest.mark.parametrize("second", ["mark_repaid", "cancel"])
def test_terminal_states_reject_transitions(owner, first, second):
    advance = _advance(owner)
    getattr(advance, first)()
    status = advance.status

    with pytest.raises(ValidationError):
        getattr(advance, second)()

    advance.refresh_from_db()
    assert advance.status == status


def test_stale_instance_cannot_reopen(owner):
    advance = _advance(owner)
    stale = Advance.objects.get(pk=advance.pk)
    advance.cancel()

    with pytest.raises(ValidationError):
        stale.mark_repaid()
    assert Advance.objects.get(pk=advance.pk).status == Advance.STATUS_CANCELLED


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10")])
def test_advance_amount_must_be_positive(owner, amount):
    with pytest.raises(ValidationError):
        _advance(owner, amount=amount)


def test_advance_needs_beneficiary(owner):
    with pytest.raises(ValidationError):
        _advance(owner, staff_name="   ")


def test_repayment_date_only_when_repaid(owner):
    with pytest.raises(ValidationError):
        _advance(owner, repayment_date=date(2024, 3, 1))
    with pytest.raises(ValidationError):
        _advance(owner, status=Advance.STATUS_REPAID)


# --------------------------
# Staff activities
# --------------------------

def test_staff_activity_optional_numbers(owner):
    activity = StaffActivity.objects.create(owner=owner, staff_name=" Nadia ", activity_type=" night shift ")
    assert activity.staff_name == "Nadia"
    assert activity.activity_type == "night shift"
    assert activity.hours_worked is None
    assert activity.amount is None


def test_staff_activity_rejects_negative_hours(owner):
    with pytest.raises(ValidationError):
        StaffActivity.objects.create(
            owner=owner, staff_name="Nadia", activity_type="inventory", hours_worked=Decimal("-1")
        )
