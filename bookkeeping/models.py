import logging
from decimal import Decimal

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.utils import timezone

from .services.aggregation import ADVANCE_FIELDS, EXPENSE_FIELDS, compute_daily_totals

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


# --------------------------
# Helpers
# --------------------------

def money_field(**kwargs):
    kwargs.setdefault("max_digits", 14)
    kwargs.setdefault("decimal_places", 2)
    kwargs.setdefault("default", ZERO)
    kwargs.setdefault("validators", [MinValueValidator(ZERO)])
    return models.DecimalField(**kwargs)


class OwnerRequiredMixin(models.Model):
    """
    Ensures owner is present for all owner-scoped models.
    """

    def clean(self):
        super().clean()
        if getattr(self, "owner_id", None) is None:
            raise ValidationError("Owner must be set.")

    class Meta:
        abstract = True


class TimeStampedModel(models.Model):
    """
    Abstract base: adds created_at / updated_at timestamps.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# --------------------------
# Daily Ledger
# --------------------------

class DailyLedgerEntry(OwnerRequiredMixin, TimeStampedModel):
    """
    One calendar day of sales, fixed expenses and cash advances.

    total_expenses and net_profit are stored redundantly and recomputed
    on every save:
      total_expenses = staff_salary + partner_commission + rent
                       + utilities + supplies + other_expenses
      net_profit     = sales_amount - total_expenses
                       - (staff_advances + partner_advances)
    """

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="daily_entries",
        help_text="Account that owns this ledger.",
    )

    date = models.DateField(default=timezone.localdate)

    sales_amount = money_field()

    staff_salary = money_field()
    partner_commission = money_field()
    rent = money_field()
    utilities = money_field()
    supplies = money_field()
    other_expenses = money_field()

    staff_advances = money_field()
    partner_advances = money_field()

    total_expenses = models.DecimalField(max_digits=16, decimal_places=2, default=ZERO, editable=False)
    net_profit = models.DecimalField(max_digits=16, decimal_places=2, default=ZERO, editable=False)

    notes = models.TextField(blank=True, default="")

    @property
    def total_advances(self):
        return sum((getattr(self, f) or ZERO for f in ADVANCE_FIELDS), ZERO)

    def refresh_totals(self):
        totals = compute_daily_totals(**{f: getattr(self, f) for f in ("sales_amount", *EXPENSE_FIELDS, *ADVANCE_FIELDS)})
        self.total_expenses = totals.total_expenses
        self.net_profit = totals.net_profit

    def save(self, *args, **kwargs):
        self.refresh_totals()
        self.full_clean()

        # update_or_create() saves with update_fields; keep derived totals in sync
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = {*update_fields, "total_expenses", "net_profit"}

        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.date} | sales {self.sales_amount} | net {self.net_profit}"

    class Meta:
        ordering = ["-date"]
        verbose_name_plural = "daily ledger entries"
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "date"],
                name="unique_daily_entry_per_owner",
            )
        ]
        indexes = [
            models.Index(fields=["owner", "date"], name="daily_entry_owner_date_idx"),
        ]


# --------------------------
# Advances
# --------------------------

class Advance(OwnerRequiredMixin, TimeStampedModel):
    """
    Cash advance to a staff member or a partner.

    pending -> repaid (repayment_date set to the day of transition)
    pending -> cancelled
    repaid and cancelled are terminal.
    """

    TYPE_STAFF = "staff"
    TYPE_PARTNER = "partner"
    TYPE_CHOICES = [
        (TYPE_STAFF, "Staff"),
        (TYPE_PARTNER, "Partner"),
    ]

    STATUS_PENDING = "pending"
    STATUS_REPAID = "repaid"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_REPAID, "Repaid"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="advances",
        help_text="Account that owns this ledger.",
    )

    staff_name = models.CharField(max_length=150, help_text="Beneficiary (staff member or partner).")
    advance_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_STAFF)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    advance_date = models.DateField(default=timezone.localdate)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    repayment_date = models.DateField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")

    def __str__(self):
        return f"{self.advance_date} | {self.staff_name} {self.amount} ({self.status})"

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING

    def clean(self):
        super().clean()
        if self.staff_name:
            self.staff_name = self.staff_name.strip()
        if not self.staff_name:
            raise ValidationError("Beneficiary name is required.")

        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Amount must be greater than zero.")

        if self.status == self.STATUS_REPAID and not self.repayment_date:
            raise ValidationError("Repaid advances need a repayment date.")
        if self.status != self.STATUS_REPAID and self.repayment_date:
            raise ValidationError("Only repaid advances can have a repayment date.")

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def _transition(self, new_status, **changes):
        with transaction.atomic():
            locked = Advance.objects.select_for_update().get(pk=self.pk)
            if locked.status != self.STATUS_PENDING:
                logger.warning(
                    "Rejected advance %s transition %s -> %s", locked.pk, locked.status, new_status
                )
                raise ValidationError(
                    f"Only pending advances can change status (this one is {locked.status})."
                )

            locked.status = new_status
            for field, value in changes.items():
                setattr(locked, field, value)
            locked.save(update_fields=["status", *changes.keys(), "updated_at"])

        self.status = locked.status
        for field, value in changes.items():
            setattr(self, field, value)
        logger.info("Advance %s is now %s", self.pk, new_status)

    def mark_repaid(self, on=None):
        self._transition(self.STATUS_REPAID, repayment_date=on or timezone.localdate())

    def cancel(self):
        self._transition(self.STATUS_CANCELLED)

    class Meta:
        ordering = ["-advance_date", "-id"]
        indexes = [
            models.Index(fields=["owner", "advance_date"], name="advance_owner_date_idx"),
            models.Index(fields=["owner", "status"], name="advance_owner_status_idx"),
        ]


# --------------------------
# Staff activity log
# --------------------------

class StaffActivity(OwnerRequiredMixin, TimeStampedModel):
    """
    Append-only log of what staff did on a given day.
    """

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="staff_activities",
        help_text="Account that owns this ledger.",
    )

    staff_name = models.CharField(max_length=150)
    activity_type = models.CharField(max_length=150)
    hours_worked = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(ZERO)],
    )
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(ZERO)],
    )
    activity_date = models.DateField(default=timezone.localdate)

    def __str__(self):
        return f"{self.activity_date} | {self.staff_name}: {self.activity_type}"

    def clean(self):
        super().clean()
        if self.staff_name:
            self.staff_name = self.staff_name.strip()
        if self.activity_type:
            self.activity_type = self.activity_type.strip()

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    class Meta:
        ordering = ["-activity_date", "-id"]
        verbose_name_plural = "staff activities"
        indexes = [
            models.Index(fields=["owner", "activity_date"], name="activity_owner_date_idx"),
        ]
