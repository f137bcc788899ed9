from pathlib import Path

from django.conf import settings
from django.contrib.auth.models import User
from django.core import serializers
from django.core.management.base import BaseCommand
from django.utils import timezone

from bookkeeping.models import Advance, DailyLedgerEntry, StaffActivity

MODELS_TO_DUMP = [DailyLedgerEntry, Advance, StaffActivity]


def _backup_dir_for_owner(owner) -> Path:
    base = Path(getattr(settings, "BACKUP_DIR", "") or "")
    if not str(base).strip():
        # local fallback (only if BACKUP_DIR not configured)
        base = Path(settings.BASE_DIR) / "backups"
    return base / f"owner-{owner.pk}"


def _write_owner_backup(owner) -> Path:
    all_objects = []
    for m in MODELS_TO_DUMP:
        all_objects.extend(m.objects.filter(owner=owner).order_by("pk"))

    data = serializers.serialize("json", all_objects)

    out_dir = _backup_dir_for_owner(owner)
    out_dir.mkdir(parents=True, exist_ok=True)

    filename = f"backup_{owner.username}_{timezone.now().strftime('%Y%m%d_%H%M%S_%f')}.json"
    out_path = out_dir / filename
    out_path.write_text(data, encoding="utf-8")

    return out_path


def _keep_last_n_files(folder: Path, n: int = 3):
    if not folder.exists():
        return
    files = sorted(
        [p for p in folder.iterdir() if p.is_file() and p.name.endswith(".json")],
        key=lambda p: p.name,
        reverse=True,
    )
    for old in files[n:]:
        old.unlink(missing_ok=True)


class Command(BaseCommand):
    help = "Create owner-scoped JSON backups and keep only the last N per owner."

    def add_arguments(self, parser):
        parser.add_argument("--keep", type=int, default=3, help="How many backups to keep per owner (default 3).")

    def handle(self, *args, **options):
        keep_n = max(int(options["keep"] or 3), 1)

        owners = User.objects.filter(is_active=True).order_by("id")
        count = 0
        for owner in owners:
            if not any(m.objects.filter(owner=owner).exists() for m in MODELS_TO_DUMP):
                continue

            out_path = _write_owner_backup(owner)
            _keep_last_n_files(_backup_dir_for_owner(owner), n=keep_n)

            count += 1
            self.stdout.write(self.style.SUCCESS(f"Backup created: {out_path}"))

        if not count:
            self.stdout.write(self.style.WARNING("No ledger data found. Nothing to back up."))
            return

        self.stdout.write(self.style.SUCCESS(f"Done. Backed up {count} owners."))
