from decimal import Decimal

from django import forms
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.utils import timezone

from .models import Advance, StaffActivity
from .services.aggregation import ADVANCE_FIELDS, EXPENSE_FIELDS, to_decimal

CENT = Decimal("0.01")
# DecimalField(max_digits=14, decimal_places=2)
MAX_AMOUNT = Decimal("1000000000000")


def _amount_field(label):
    return forms.CharField(
        label=label,
        required=False,
        widget=forms.NumberInput(attrs={"step": "0.01", "placeholder": "0.00"}),
    )


class DailyLedgerEntryForm(forms.Form):
    """
    Amount fields are lenient: empty or unparsable input counts as 0.
    Negative amounts are rejected.
    """

    date = forms.DateField(initial=timezone.localdate, widget=forms.DateInput(attrs={"type": "date"}))

    sales_amount = _amount_field("Sales")

    staff_salary = _amount_field("Staff salary")
    partner_commission = _amount_field("Partner commission")
    rent = _amount_field("Rent")
    utilities = _amount_field("Electricity / water")
    supplies = _amount_field("Supplies")
    other_expenses = _amount_field("Other expenses")

    staff_advances = _amount_field("Staff advances")
    partner_advances = _amount_field("Partner advances")

    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 3}))

    AMOUNT_FIELDS = ("sales_amount", *EXPENSE_FIELDS, *ADVANCE_FIELDS)

    def clean(self):
        cleaned = super().clean()
        for name in self.AMOUNT_FIELDS:
            value = to_decimal(cleaned.get(name))
            if value < 0:
                self.add_error(name, "Amount cannot be negative.")
            elif value >= MAX_AMOUNT:
                self.add_error(name, "Amount is too large.")
            else:
                value = value.quantize(CENT)
            cleaned[name] = value
        cleaned["notes"] = (cleaned.get("notes") or "").strip()
        return cleaned

    def entry_values(self):
        data = self.cleaned_data
        return {name: data[name] for name in (*self.AMOUNT_FIELDS, "notes")}


class AdvanceForm(forms.ModelForm):
    class Meta:
        model = Advance
        fields = ["advance_type", "staff_name", "amount", "advance_date", "notes"]
        widgets = {
            "advance_date": forms.DateInput(attrs={"type": "date"}),
            "notes": forms.Textarea(attrs={"rows": 3}),
        }

    def clean_amount(self):
        amount = self.cleaned_data.get("amount")
        if amount is None or amount <= 0:
            raise ValidationError("Amount must be greater than zero.")
        return amount


class StaffActivityForm(forms.ModelForm):
    class Meta:
        model = StaffActivity
        fields = ["staff_name", "activity_type", "hours_worked", "amount", "activity_date"]
        widgets = {
            "activity_date": forms.DateInput(attrs={"type": "date"}),
        }


class OwnerUpdateForm(forms.ModelForm):
    email = forms.EmailField(required=True)

    class Meta:
        model = User
        fields = ["first_name", "last_name", "email"]

    def clean_email(self):
        email = (self.cleaned_data.get("email") or "").strip().lower()

        if not email:
            raise ValidationError("Email is required.")

        # unique check excluding current user
        qs = User.objects.filter(email__iexact=email).exclude(pk=self.instance.pk)
        if qs.exists():
            raise ValidationError("This email is already in use.")

        return email
