from django.core.management.base import BaseCommand
from django.db import transaction

from bookkeeping.models import DailyLedgerEntry


class Command(BaseCommand):
    help = "Repair stored total_expenses / net_profit on daily ledger entries."

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true")

    def handle(self, *args, **opts):
        dry = opts["dry_run"]

        fixed = 0
        checked = 0
        for entry in DailyLedgerEntry.objects.order_by("owner_id", "date").iterator():
            checked += 1
            stored = (entry.total_expenses, entry.net_profit)
            entry.refresh_totals()
            if (entry.total_expenses, entry.net_profit) == stored:
                continue

            fixed += 1
            self.stdout.write(
                f"{entry.owner_id} {entry.date}: "
                f"expenses {stored[0]} -> {entry.total_expenses}, net {stored[1]} -> {entry.net_profit}"
            )
            if not dry:
                with transaction.atomic():
                    DailyLedgerEntry.objects.filter(pk=entry.pk).update(
                        total_expenses=entry.total_expenses,
                        net_profit=entry.net_profit,
                    )

        verb = "Would fix" if dry else "Fixed"
        self.stdout.write(self.style.SUCCESS(f"{verb} {fixed} of {checked} entries."))
