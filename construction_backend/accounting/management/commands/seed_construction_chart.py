# accounting/management/commands/seed_construction_chart.py

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounting.models.account import Account
from accounting.services.account_registry import get_or_create_account, seed_system_accounts
from accounting.services.exceptions import AccountingServiceError

# System accounts (cash, bank, AR, inventory, AP, revenue) come from the registry.
CONSTRUCTION_ACCOUNTS = [
    # EQUITY
    ("3000", "Owner Capital", Account.EQUITY),
    ("3100", "Retained Earnings", Account.EQUITY),
    # EXPENSES
    ("5000", "Construction Materials", Account.EXPENSE),
    ("5100", "Labour Costs", Account.EXPENSE),
    ("5200", "Subcontractor Costs", Account.EXPENSE),
    ("5300", "Equipment Hire", Account.EXPENSE),
    ("6000", "Operating Expenses", Account.EXPENSE),
]


class Command(BaseCommand):
    help = "Seed the default construction Chart of Accounts for one tenant (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--tenant", required=True, help="Tenant id to seed")

    @transaction.atomic
    def handle(self, *args, **options):
        tenant_id = options["tenant"]
        self.stdout.write(f"Seeding construction Chart of Accounts for tenant {tenant_id}...")

        before = Account.objects.filter(tenant_id=tenant_id).count()

        try:
            seed_system_accounts(tenant_id=tenant_id)
            for code, name, account_type in CONSTRUCTION_ACCOUNTS:
                get_or_create_account(
                    tenant_id=tenant_id,
                    code=code,
                    name=name,
                    account_type=account_type,
                )
        except AccountingServiceError as exc:
            raise CommandError(str(exc)) from exc

        created_count = Account.objects.filter(tenant_id=tenant_id).count() - before

        self.stdout.write(
            self.style.SUCCESS(
                f"✔ Construction chart seeded ({created_count} new accounts) for tenant {tenant_id}."
            )
        )
