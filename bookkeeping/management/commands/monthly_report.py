from decimal import Decimal
from pathlib import Path

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from bookkeeping.export_pack import SUMMARY_ROWS, generate_monthly_report
from bookkeeping.services.aggregation import month_label, parse_month
from bookkeeping.services.ledger import get_month_report


class Command(BaseCommand):
    help = "Print the monthly summary for an owner (optionally write the .xlsx report)."

    def add_arguments(self, parser):
        parser.add_argument("username")
        parser.add_argument("--month", default="", help="YYYY-MM (default: current month)")
        parser.add_argument("--xlsx", default="", help="Write the spreadsheet report to this path.")

    def handle(self, *args, **opts):
        try:
            owner = User.objects.get(username=opts["username"])
        except User.DoesNotExist:
            raise CommandError(f"Unknown user: {opts['username']}")

        year, month = parse_month(opts["month"], today=timezone.localdate())
        report = get_month_report(owner=owner, year=year, month=month)

        self.stdout.write(f"Month: {month_label(year, month)} ({report.start} .. {report.end})")
        for label, attr in SUMMARY_ROWS:
            value = getattr(report.summary, attr)
            if isinstance(value, Decimal):
                value = value.quantize(Decimal("0.01"))
            line = f"  {label:<22} {value}"
            change = report.changes.get(attr)
            if change is not None:
                line += f"  {change.symbol} {change.magnitude:.1f}%"
            self.stdout.write(line)

        if opts["xlsx"]:
            path = Path(opts["xlsx"])
            path.write_bytes(generate_monthly_report(owner, year, month))
            self.stdout.write(self.style.SUCCESS(f"Report written: {path}"))
