# bookkeeping/urls.py
from django.urls import path

from . import views


urlpatterns = [
    # =========================
    # Public
    # =========================
    path("", views.landing_page, name="landing"),

    # =========================
    # App (authenticated)
    # =========================
    path("dashboard/", views.dashboard, name="dashboard"),

    # Daily log
    path("daily-log/", views.daily_log_page, name="daily_log_page"),

    # Advances
    path("advances/", views.advances_page, name="advances_page"),
    path("advances/<int:pk>/status/", views.advance_status, name="advance_status"),

    # Staff
    path("staff-activities/", views.staff_activities_page, name="staff_activities_page"),

    # Reports
    path("summary/", views.monthly_summary, name="monthly_summary"),

    # Settings + exports
    path("settings/", views.settings_page, name="settings_page"),
    path("export/json/", views.export_json, name="export_json"),
    path("export/xlsx/", views.export_xlsx, name="export_xlsx"),

    # =========================
    # JSON API
    # =========================
    path("api/summary/", views.monthly_summary_api, name="monthly_summary_api"),
    path("api/daily-log/preview/", views.daily_log_preview_api, name="daily_log_preview_api"),
]
