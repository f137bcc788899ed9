# =========================
# Standard library
# =========================
import logging
from decimal import Decimal

# =========================
# Django core
# =========================
from django.contrib import messages
from django.contrib.auth import update_session_auth_hash
from django.contrib.auth.forms import PasswordChangeForm
from django.contrib.auth.views import redirect_to_login
from django.core.exceptions import ValidationError
from django.http import Http404, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

# =========================
# Local app imports
# =========================
from .decorators import api_owner_required, owner_required
from .export_pack import export_filename, generate_monthly_report, owner_export_json
from .forms import AdvanceForm, DailyLedgerEntryForm, OwnerUpdateForm, StaffActivityForm
from .models import Advance, DailyLedgerEntry, StaffActivity
from .owner_utils import owner_qs
from .services.aggregation import (
    compute_daily_totals,
    month_bounds,
    month_label,
    parse_month,
    summarize,
)
from .services.ledger import (
    fetch_advances,
    fetch_entries,
    get_month_report,
    pending_advances_total,
    recent_activities,
    record_activity,
    set_advance_status,
    upsert_entry,
)

logger = logging.getLogger(__name__)

ADVANCE_STATUS_FILTERS = ("all", Advance.STATUS_PENDING, Advance.STATUS_REPAID, Advance.STATUS_CANCELLED)


def _get_month(request):
    """
    Read ?month=YYYY-MM from querystring. Default: current month.
    """
    return parse_month(request.GET.get("month"), today=timezone.localdate())


def _redirect_with_month(name, year, month):
    return redirect(f"{reverse(name)}?month={month_label(year, month)}")


def landing_page(request):
    if request.user.is_authenticated:
        return redirect("dashboard")
    return redirect("login")


def forbidden(request, exception=None):
    # Unauthenticated/session-expired users should always go to login.
    if not getattr(request, "user", None) or not request.user.is_authenticated:
        messages.warning(request, "Session expired. Please sign in again.")
        return redirect_to_login(request.get_full_path())

    context = {"message": str(exception) if exception else "Access denied."}
    return render(request, "403.html", context, status=403)


# --------------------------
# Dashboard
# --------------------------

@owner_required
def dashboard(request):
    owner = request.owner
    today = timezone.localdate()

    today_entry = DailyLedgerEntry.objects.filter(owner=owner, date=today).first()
    report = get_month_report(owner=owner, year=today.year, month=today.month)

    context = {
        "today": today,
        "today_entry": today_entry,
        "report": report,
        "month": month_label(today.year, today.month),
        "pending_total": pending_advances_total(owner=owner),
        "pending_count": fetch_advances(owner=owner, status=Advance.STATUS_PENDING).count(),
        "activities": recent_activities(owner=owner, limit=5),
        "active_tab": "dashboard",
    }
    return render(request, "bookkeeping/dashboard.html", context)


# --------------------------
# Daily log
# --------------------------

@owner_required
def daily_log_page(request):
    """
    One-page daily log:
    - Top: create/replace the entry for a date (upsert on owner+date)
    - Filter: month
    - Table: entries of the month (latest first) with month totals
    """
    owner = request.owner
    year, month = _get_month(request)

    if request.method == "POST":
        form = DailyLedgerEntryForm(request.POST)
        if form.is_valid():
            entry_date = form.cleaned_data["date"]
            try:
                _entry, created = upsert_entry(owner=owner, entry_date=entry_date, **form.entry_values())
            except ValidationError as exc:
                form.add_error(None, exc)
            else:
                messages.success(
                    request,
                    "Daily entry saved." if created else f"Daily entry for {entry_date} replaced.",
                )
                return _redirect_with_month("daily_log_page", entry_date.year, entry_date.month)
    else:
        form = DailyLedgerEntryForm()

    start, end = month_bounds(year, month)
    entries = list(fetch_entries(owner=owner, start=start, end=end, newest_first=True))

    context = {
        "form": form,
        "entries": entries,
        "totals": summarize(entries),
        "preview": compute_daily_totals(**(form.data.dict() if form.is_bound else {})),
        "month": month_label(year, month),
        "active_tab": "daily_log",
    }
    return render(request, "bookkeeping/daily_log.html", context)


@require_GET
@api_owner_required
def daily_log_preview_api(request):
    """
    GET /api/daily-log/preview/?sales_amount=1000&staff_salary=200&...
    Live totals for the entry form; malformed numbers count as 0.
    """
    totals = compute_daily_totals(**request.GET.dict())
    return JsonResponse(
        {
            "sales": str(totals.sales),
            "total_expenses": str(totals.total_expenses),
            "total_advances": str(totals.total_advances),
            "net_profit": str(totals.net_profit),
        }
    )


# --------------------------
# Advances
# --------------------------

@owner_required
def advances_page(request):
    owner = request.owner

    status = (request.GET.get("status") or "all").lower()
    if status not in ADVANCE_STATUS_FILTERS:
        status = "all"

    if request.method == "POST":
        form = AdvanceForm(request.POST, instance=Advance(owner=owner))
        if form.is_valid():
            advance = form.save(commit=False)
            advance.owner = owner
            advance.status = Advance.STATUS_PENDING
            try:
                advance.save()
            except ValidationError as exc:
                form.add_error(None, exc)
            else:
                logger.info("Created advance %s for owner %s", advance.pk, owner.pk)
                messages.success(request, "Advance recorded.")
                return redirect("advances_page")
    else:
        form = AdvanceForm(initial={"advance_date": timezone.localdate()})

    context = {
        "form": form,
        "advances": fetch_advances(owner=owner, status=None if status == "all" else status),
        "status": status,
        "status_filters": ADVANCE_STATUS_FILTERS,
        "pending_total": pending_advances_total(owner=owner),
        "active_tab": "advances",
    }
    return render(request, "bookkeeping/advances.html", context)


@require_POST
@owner_required
def advance_status(request, pk):
    new_status = (request.POST.get("status") or "").lower()

    try:
        set_advance_status(owner=request.owner, advance_id=pk, status=new_status)
    except Advance.DoesNotExist:
        raise Http404("Advance not found")
    except ValidationError as exc:
        messages.error(request, " ".join(exc.messages))
    else:
        messages.success(request, f"Advance marked as {new_status}.")

    return redirect("advances_page")


# --------------------------
# Staff activities
# --------------------------

@owner_required
def staff_activities_page(request):
    owner = request.owner

    if request.method == "POST":
        form = StaffActivityForm(request.POST, instance=StaffActivity(owner=owner))
        if form.is_valid():
            try:
                record_activity(owner=owner, **form.cleaned_data)
            except ValidationError as exc:
                form.add_error(None, exc)
            else:
                messages.success(request, "Activity recorded.")
                return redirect("staff_activities_page")
    else:
        form = StaffActivityForm(initial={"activity_date": timezone.localdate()})

    context = {
        "form": form,
        "activities": recent_activities(owner=owner, limit=20),
        "active_tab": "staff_activities",
    }
    return render(request, "bookkeeping/staff_activities.html", context)


# --------------------------
# Monthly summary
# --------------------------

@owner_required
def monthly_summary(request):
    year, month = _get_month(request)
    report = get_month_report(owner=request.owner, year=year, month=month)

    context = {
        "report": report,
        "summary": report.summary,
        "previous": report.previous,
        "changes": report.changes,
        "month": month_label(year, month),
        "active_tab": "summary",
    }
    return render(request, "bookkeeping/monthly_summary.html", context)


@require_GET
@api_owner_required
def monthly_summary_api(request):
    """
    GET /api/summary/?month=2024-03
    Returns: {month, start, end, summary, previous, changes}
    """
    year, month = _get_month(request)
    report = get_month_report(owner=request.owner, year=year, month=month)

    return JsonResponse(
        {
            "month": month_label(year, month),
            "start": report.start.isoformat(),
            "end": report.end.isoformat(),
            "summary": report.summary.as_dict(),
            "previous": report.previous.as_dict(),
            "changes": {
                metric: {
                    "percent": str(change.percent.quantize(Decimal("0.1"))),
                    "direction": change.direction,
                    "magnitude": str(change.magnitude.quantize(Decimal("0.1"))),
                }
                for metric, change in report.changes.items()
            },
        }
    )


# --------------------------
# Settings
# --------------------------

@owner_required
def settings_page(request):
    user = request.user
    section = (request.GET.get("section") or request.POST.get("section") or "profile").lower()

    profile_form = OwnerUpdateForm(instance=user)
    password_form = PasswordChangeForm(user)

    if request.method == "POST":
        if section == "password":
            password_form = PasswordChangeForm(user, request.POST)
            if password_form.is_valid():
                password_form.save()
                update_session_auth_hash(request, password_form.user)
                logger.info("Password changed for user %s", user.pk)
                messages.success(request, "Password changed.")
                return redirect(f"{reverse('settings_page')}?section=password")
        else:
            section = "profile"
            profile_form = OwnerUpdateForm(request.POST, instance=user)
            if profile_form.is_valid():
                profile_form.save()
                messages.success(request, "Profile updated.")
                return redirect("settings_page")

    context = {
        "section": section,
        "profile_form": profile_form,
        "password_form": password_form,
        "entries_count": owner_qs(request, DailyLedgerEntry).count(),
        "advances_count": owner_qs(request, Advance).count(),
        "active_tab": "settings",
    }
    return render(request, "bookkeeping/settings.html", context)


# --------------------------
# Exports
# --------------------------

@require_GET
@owner_required
def export_json(request):
    payload = owner_export_json(request.owner)
    resp = HttpResponse(payload, content_type="application/json")
    resp["Content-Disposition"] = f'attachment; filename="{export_filename()}"'
    return resp


@require_GET
@owner_required
def export_xlsx(request):
    year, month = _get_month(request)
    content = generate_monthly_report(request.owner, year, month)
    resp = HttpResponse(
        content,
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    resp["Content-Disposition"] = f'attachment; filename="monthly-report-{month_label(year, month)}.xlsx"'
    return resp
