from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    return models.DecimalField(
        decimal_places=2,
        default=Decimal("0"),
        max_digits=14,
        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
        **kwargs,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DailyLedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                ("sales_amount", money()),
                ("staff_salary", money()),
                ("partner_commission", money()),
                ("rent", money()),
                ("utilities", money()),
                ("supplies", money()),
                ("other_expenses", money()),
                ("staff_advances", money()),
                ("partner_advances", money()),
                ("total_expenses", models.DecimalField(decimal_places=2, default=Decimal("0"), editable=False, max_digits=16)),
                ("net_profit", models.DecimalField(decimal_places=2, default=Decimal("0"), editable=False, max_digits=16)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Account that owns this ledger.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="daily_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "daily ledger entries",
                "ordering": ["-date"],
                "indexes": [models.Index(fields=["owner", "date"], name="daily_entry_owner_date_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("owner", "date"), name="unique_daily_entry_per_owner")
                ],
            },
        ),
        migrations.CreateModel(
            name="Advance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("staff_name", models.CharField(help_text="Beneficiary (staff member or partner).", max_length=150)),
                (
                    "advance_type",
                    models.CharField(
                        choices=[("staff", "Staff"), ("partner", "Partner")],
                        default="staff",
                        max_length=10,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("advance_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("repaid", "Repaid"), ("cancelled", "Cancelled")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("repayment_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Account that owns this ledger.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="advances",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-advance_date", "-id"],
                "indexes": [
                    models.Index(fields=["owner", "advance_date"], name="advance_owner_date_idx"),
                    models.Index(fields=["owner", "status"], name="advance_owner_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StaffActivity",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("staff_name", models.CharField(max_length=150)),
                ("activity_type", models.CharField(max_length=150)),
                (
                    "hours_worked",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=6,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=14,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("activity_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Account that owns this ledger.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="staff_activities",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "staff activities",
                "ordering": ["-activity_date", "-id"],
                "indexes": [models.Index(fields=["owner", "activity_date"], name="activity_owner_date_idx")],
            },
        ),
    ]
