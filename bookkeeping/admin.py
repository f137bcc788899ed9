from django.contrib import admin

from .models import Advance, DailyLedgerEntry, StaffActivity


def _obj_belongs_to_request_owner(request, obj) -> bool:
    """
    Object-level guard: prevents cross-owner access even via direct URL.
    """
    if request.user.is_superuser or obj is None:
        return True
    return obj.owner_id == request.user.pk


# -------------------------
# Base Admin: owner-scoped
# -------------------------
class OwnerScopedAdmin(admin.ModelAdmin):
    """
    - Non-superusers see only their own rows.
    - Auto-sets owner on create.
    - Blocks cross-owner access at object-level too.
    """
    exclude = ("owner",)

    def get_exclude(self, request, obj=None):
        if request.user.is_superuser:
            return ()
        return super().get_exclude(request, obj)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        return qs.filter(owner=request.user)

    def save_model(self, request, obj, form, change):
        if not obj.owner_id:
            obj.owner = request.user
        super().save_model(request, obj, form, change)

    def has_view_permission(self, request, obj=None):
        if not _obj_belongs_to_request_owner(request, obj):
            return False
        return super().has_view_permission(request, obj=obj)

    def has_change_permission(self, request, obj=None):
        if not _obj_belongs_to_request_owner(request, obj):
            return False
        return super().has_change_permission(request, obj=obj)

    def has_delete_permission(self, request, obj=None):
        if not _obj_belongs_to_request_owner(request, obj):
            return False
        return super().has_delete_permission(request, obj=obj)


@admin.register(DailyLedgerEntry)
class DailyLedgerEntryAdmin(OwnerScopedAdmin):
    list_display = ("date", "owner", "sales_amount", "total_expenses", "staff_advances", "partner_advances", "net_profit")
    list_filter = ("date",)
    date_hierarchy = "date"
    readonly_fields = ("total_expenses", "net_profit")


@admin.register(Advance)
class AdvanceAdmin(OwnerScopedAdmin):
    list_display = ("advance_date", "staff_name", "advance_type", "amount", "status", "repayment_date")
    list_filter = ("status", "advance_type")
    search_fields = ("staff_name", "notes")
    # Status only moves through mark_repaid()/cancel()
    readonly_fields = ("status", "repayment_date")


@admin.register(StaffActivity)
class StaffActivityAdmin(OwnerScopedAdmin):
    list_display = ("activity_date", "staff_name", "activity_type", "hours_worked", "amount")
    search_fields = ("staff_name", "activity_type")
