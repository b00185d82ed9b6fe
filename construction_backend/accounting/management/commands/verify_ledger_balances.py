# accounting/management/commands/verify_ledger_balances.py

from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db.models import Sum

from accounting.models.ledger import GeneralLedgerEntry


class Command(BaseCommand):
    help = (
        "Replay each account's posted ledger rows (Active and Reversed) in "
        "(date, created_at, id) order and report "
        "rows whose stored running balance disagrees. Read-only."
    )

    def add_arguments(self, parser):
        parser.add_argument("--tenant", dest="tenant_id", help="Only verify this tenant (optional)")
        parser.add_argument(
            "--verbose-rows",
            action="store_true",
            help="Print every row, not only mismatches.",
        )

    def handle(self, *args, **options):
        verbose = bool(options.get("verbose_rows"))

        # Balances are chained at posting time; rows reversed later still carry them.
        qs = GeneralLedgerEntry.objects.exclude(status=GeneralLedgerEntry.CANCELLED)
        if options.get("tenant_id"):
            qs = qs.filter(tenant_id=options["tenant_id"])

        self.stdout.write(self.style.MIGRATE_HEADING("General ledger - running balances"))

        errors = 0
        keys = qs.values_list("tenant_id", "account_code").distinct().order_by("tenant_id", "account_code")

        for tenant_id, account_code in keys:
            running = Decimal("0.00")
            mismatches = 0
            rows = qs.filter(tenant_id=tenant_id, account_code=account_code).order_by(
                "date", "created_at", "id"
            )

            for row in rows:
                running += row.debit - row.credit
                if row.balance != running:
                    mismatches += 1
                    self.stderr.write(
                        self.style.ERROR(
                            f"[FAIL] {tenant_id} {account_code} {row.entry_number} {row.date}: "
                            f"stored={row.balance} expected={running}"
                        )
                    )
                elif verbose:
                    self.stdout.write(
                        f"  {row.date} {row.entry_number:<16} Dr {row.debit:>12} "
                        f"Cr {row.credit:>12} Bal {row.balance:>14}"
                    )

            errors += mismatches
            if mismatches == 0:
                self.stdout.write(
                    self.style.SUCCESS(f"[OK] {tenant_id} {account_code} final balance {running}")
                )

        # Every tenant's Active rows must balance as a whole.
        active = GeneralLedgerEntry.objects.filter(status=GeneralLedgerEntry.ACTIVE)
        if options.get("tenant_id"):
            active = active.filter(tenant_id=options["tenant_id"])
        totals = (
            active.values("tenant_id")
            .annotate(debits=Sum("debit"), credits=Sum("credit"))
            .order_by("tenant_id")
        )

        for t in totals:
            if t["debits"] != t["credits"]:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(
                        f"[FAIL] {t['tenant_id']} ledger not balanced: "
                        f"debits={t['debits']} credits={t['credits']}"
                    )
                )

        self.stdout.write("")
        if errors:
            self.stderr.write(self.style.ERROR(f"❌ VERIFICATION FOUND ISSUES: {errors} problem(s)"))
            raise SystemExit(2)

        self.stdout.write(self.style.SUCCESS("✅ All running balances verified"))
