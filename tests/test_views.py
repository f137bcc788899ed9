import json
from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest
from django.urls import reverse
from django.utils import timezone
from openpyxl import load_workbook

from bookkeeping.models import Advance, DailyLedgerEntry, StaffActivity
from bookkeeping.services.ledger import upsert_entry

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "name",
    ["dashboard", "daily_log_page", "advances_page", "staff_activities_page", "monthly_summary", "settings_page"],
)
def test_pages_require_login(client, name):
    resp = client.get(reverse(name))
    assert resp.status_code == 302
    assert resp["Location"].startswith(reverse("login"))


def test_api_answers_401_when_anonymous(client):
    resp = client.get(reverse("monthly_summary_api"))
    assert resp.status_code == 401
    assert resp.json() == {"error": "Authentication required."}


def test_landing_redirects(owner_client):
    assert owner_client.get(reverse("landing"))["Location"] == reverse("dashboard")


@pytest.mark.parametrize(
    "name",
    ["dashboard", "daily_log_page", "advances_page", "staff_activities_page", "monthly_summary", "settings_page"],
)
def test_pages_render(owner_client, name):
    resp = owner_client.get(reverse(name))
    assert resp.status_code == 200


# --------------------------
# Daily log
# --------------------------

def test_daily_log_post_creates_and_replaces(owner_client, owner):
    url = reverse("daily_log_page")
    data = {"date": "2024-03-01", "sales_amount": "1000", "staff_salary": "200", "rent": "100", "staff_advances": "50"}

    resp = owner_client.post(url, data)
    assert resp.status_code == 302
    assert resp["Location"] == f"{url}?month=2024-03"

    entry = DailyLedgerEntry.objects.get(owner=owner, date=date(2024, 3, 1))
    assert entry.net_profit == Decimal("650")

    owner_client.post(url, {"date": "2024-03-01", "sales_amount": "abc", "rent": ""})
    entry.refresh_from_db()
    assert DailyLedgerEntry.objects.filter(owner=owner).count() == 1
    assert entry.sales_amount == Decimal("0")
    assert entry.net_profit == Decimal("0")


def test_daily_log_rejects_negative(owner_client, owner):
    resp = owner_client.post(reverse("daily_log_page"), {"date": "2024-03-01", "rent": "-1"})
    assert resp.status_code == 200
    assert "Amount cannot be negative." in resp.content.decode()
    assert not DailyLedgerEntry.objects.filter(owner=owner).exists()


def test_daily_log_lists_only_the_month(owner_client, owner, other_owner):
    upsert_entry(owner=owner, entry_date=date(2024, 3, 4), sales_amount=Decimal("10"), notes="march-row")
    upsert_entry(owner=owner, entry_date=date(2024, 4, 4), sales_amount=Decimal("10"), notes="april-row")
    upsert_entry(owner=other_owner, entry_date=date(2024, 3, 5), notes="not-mine")

    resp = owner_client.get(reverse("daily_log_page"), {"month": "2024-03"})
    assert [e.notes for e in resp.context["entries"]] == ["march-row"]
    assert resp.context["totals"].total_sales == Decimal("10")


def test_daily_log_preview_api(owner_client):
    resp = owner_client.get(
        reverse("daily_log_preview_api"),
        {"sales_amount": "1000", "staff_salary": "200", "rent": "100", "staff_advances": "50", "supplies": "x"},
    )
    assert resp.json() == {
        "sales": "1000",
        "total_expenses": "300",
        "total_advances": "50",
        "net_profit": "650",
    }


# --------------------------
# Advances
# --------------------------

def test_create_advance(owner_client, owner):
    resp = owner_client.post(
        reverse("advances_page"),
        {"advance_type": "partner", "staff_name": "Samir", "amount": "2000", "advance_date": "2024-03-02"},
    )
    assert resp.status_code == 302

    advance = Advance.objects.get(owner=owner)
    assert advance.status == Advance.STATUS_PENDING
    assert advance.advance_type == Advance.TYPE_PARTNER


def test_advance_status_flow(owner_client, owner):
    advance = Advance.objects.create(owner=owner, staff_name="Yacine", amount=Decimal("300"))
    url = reverse("advance_status", args=[advance.pk])

    resp = owner_client.post(url, {"status": "repaid"})
    assert resp["Location"] == reverse("advances_page")
    advance.refresh_from_db()
    assert advance.status == Advance.STATUS_REPAID
    assert advance.repayment_date == timezone.localdate()

    resp = owner_client.post(url, {"status": "cancelled"}, follow=True)
    advance.refresh_from_db()
    assert advance.status == Advance.STATUS_REPAID
    assert any("Only pending advances" in str(m) for m in resp.context["messages"])


def test_advance_status_of_another_owner_is_404(owner_client, other_owner):
    advance = Advance.objects.create(owner=other_owner, staff_name="Omar", amount=Decimal("10"))
    resp = owner_client.post(reverse("advance_status", args=[advance.pk]), {"status": "cancelled"})
    assert resp.status_code == 404
    advance.refresh_from_db()
    assert advance.status == Advance.STATUS_PENDING


def test_advance_status_requires_post(owner_client, owner):
    advance = Advance.objects.create(owner=owner, staff_name="Yacine", amount=Decimal("300"))
    assert owner_client.get(reverse("advance_status", args=[advance.pk])).status_code == 405


def test_advances_status_filter(owner_client, owner):
    Advance.objects.create(owner=owner, staff_name="A", amount=Decimal("1"))
    Advance.objects.create(owner=owner, staff_name="B", amount=Decimal("2")).cancel()

    resp = owner_client.get(reverse("advances_page"), {"status": "cancelled"})
    assert [a.staff_name for a in resp.context["advances"]] == ["B"]
    assert resp.context["pending_total"] == Decimal("1")

    resp = owner_client.get(reverse("advances_page"), {"status": "bogus"})
    assert resp.context["status"] == "all"
    assert len(resp.context["advances"]) == 2


# --------------------------
# Staff activities
# --------------------------

def test_record_staff_activity(owner_client, owner):
    resp = owner_client.post(
        reverse("staff_activities_page"),
        {"staff_name": "Nadia", "activity_type": "inventory", "hours_worked": "4.5", "amount": "", "activity_date": "2024-03-02"},
    )
    assert resp.status_code == 302

    activity = StaffActivity.objects.get(owner=owner)
    assert activity.hours_worked == Decimal("4.5")
    assert activity.amount is None


# --------------------------
# Monthly summary
# --------------------------

def test_monthly_summary_api(owner_client, owner):
    upsert_entry(owner=owner, entry_date=date(2024, 3, 1), sales_amount=Decimal("1000"),
                 staff_salary=Decimal("200"), rent=Decimal("100"), staff_advances=Decimal("50"))
    upsert_entry(owner=owner, entry_date=date(2024, 3, 2), sales_amount=Decimal("1500"), supplies=Decimal("400"))
    upsert_entry(owner=owner, entry_date=date(2024, 2, 10), sales_amount=Decimal("2000"))

    data = owner_client.get(reverse("monthly_summary_api"), {"month": "2024-03"}).json()

    assert data["month"] == "2024-03"
    assert (data["start"], data["end"]) == ("2024-03-01", "2024-03-31")
    assert data["summary"]["days_with_data"] == 2
    assert Decimal(data["summary"]["total_sales"]) == Decimal("2500")
    assert Decimal(data["summary"]["net_profit"]) == Decimal("1750")
    assert Decimal(data["previous"]["total_sales"]) == Decimal("2000")
    assert data["changes"]["total_sales"] == {"percent": "25.0", "direction": "increase", "magnitude": "25.0"}


def test_monthly_summary_page_context(owner_client, owner):
    upsert_entry(owner=owner, entry_date=date(2024, 2, 29), sales_amount=Decimal("80"))

    resp = owner_client.get(reverse("monthly_summary"), {"month": "2024-02"})
    assert resp.context["month"] == "2024-02"
    assert resp.context["report"].end == date(2024, 2, 29)
    assert resp.context["summary"].total_sales == Decimal("80")
    # January had nothing: zero baseline
    assert resp.context["changes"]["total_sales"].direction == "no_change"


# --------------------------
# Settings
# --------------------------

def test_profile_update(owner_client, owner):
    resp = owner_client.post(
        reverse("settings_page"),
        {"section": "profile", "first_name": "Amina", "last_name": "B", "email": "amina.b@example.com"},
    )
    assert resp.status_code == 302
    owner.refresh_from_db()
    assert owner.email == "amina.b@example.com"


def test_password_change_keeps_session(owner_client, owner):
    resp = owner_client.post(
        reverse("settings_page"),
        {"section": "password", "old_password": "secret123", "new_password1": "n3w-pass!", "new_password2": "n3w-pass!"},
    )
    assert resp.status_code == 302
    owner.refresh_from_db()
    assert owner.check_password("n3w-pass!")
    assert owner_client.get(reverse("dashboard")).status_code == 200


# --------------------------
# Exports
# --------------------------

def test_json_export_contains_only_own_rows(owner_client, owner, other_owner):
    upsert_entry(owner=owner, entry_date=date(2024, 3, 1), sales_amount=Decimal("1000"), rent=Decimal("100"))
    Advance.objects.create(owner=owner, staff_name="Yacine", amount=Decimal("300"))
    upsert_entry(owner=other_owner, entry_date=date(2024, 3, 1), sales_amount=Decimal("5"))
    Advance.objects.create(owner=other_owner, staff_name="Omar", amount=Decimal("7"))

    resp = owner_client.get(reverse("export_json"))
    assert resp["Content-Type"] == "application/json"
    assert f"pharmacy-books-{timezone.localdate().isoformat()}.json" in resp["Content-Disposition"]

    data = json.loads(resp.content)
    assert set(data) == {"export_date", "user_email", "daily_logs", "advances", "staff_activities"}
    assert data["user_email"] == "amina@example.com"
    assert len(data["daily_logs"]) == 1
    assert data["daily_logs"][0]["date"] == "2024-03-01"
    assert data["daily_logs"][0]["net_profit"] == "900.00"
    assert [a["staff_name"] for a in data["advances"]] == ["Yacine"]
    assert data["staff_activities"] == []


def test_xlsx_export(owner_client, owner):
    upsert_entry(owner=owner, entry_date=date(2024, 3, 1), sales_amount=Decimal("1000"), rent=Decimal("100"))

    resp = owner_client.get(reverse("export_xlsx"), {"month": "2024-03"})
    assert resp.status_code == 200
    assert 'filename="monthly-report-2024-03.xlsx"' in resp["Content-Disposition"]

    wb = load_workbook(BytesIO(resp.content))
    assert wb.sheetnames == ["Summary", "Daily Log"]

    summary = wb["Summary"]
    assert summary["A1"].value == "Metric"
    assert summary["B1"].value == "2024-03"
    assert summary["A2"].value == "Total sales"
    assert summary["B2"].value == 1000

    daily = wb["Daily Log"]
    assert daily.max_row == 2
    assert daily["A2"].value == "2024-03-01"
    assert daily["L2"].value == 900


def test_daily_log_preview_api_survives_huge_exponents(owner_client):
    resp = owner_client.get(reverse("daily_log_preview_api"), {"sales_amount": "1e9999999", "rent": "100"})
    assert resp.status_code == 200
    assert resp.json()["sales"] == "0"
    assert resp.json()["net_profit"] == "-100"


def test_daily_log_post_with_huge_exponent_saves_zero(owner_client, owner):
    resp = owner_client.post(reverse("daily_log_page"), {"date": "2024-03-01", "sales_amount": "1e9999999", "rent": "5"})
    assert resp.status_code == 302
    entry = DailyLedgerEntry.objects.get(owner=owner, date=date(2024, 3, 1))
    assert entry.sales_amount == Decimal("0")
    assert entry.net_profit == Decimal("-5")
