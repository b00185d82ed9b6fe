# accounting/tests/test_posting_adapters.py

from __future__ import annotations

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from django.test import TestCase

from accounting.models.account import Account, SubAccount
from accounting.models.journal import JournalEntry
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.account_registry import (
    find_account_by_code,
    get_or_create_account,
    seed_system_accounts,
)
from accounting.services.balance_service import get_account_balance
from accounting.services.exceptions import ValidationError
from accounting.services.posting import (
    post_bank_payment,
    post_cash_payment,
    post_payment_receipt,
    post_plot_booking,
    post_plot_sale,
    post_purchase,
    post_sale,
    post_supplier_payment,
)

TENANT = "tenant-a"


def _balance(code):
    return get_account_balance(tenant_id=TENANT, account_code=code, as_of=date(2025, 12, 31))["balance"]


def _line_map(entry):
    return {
        line.account_code: (line.debit, line.credit)
        for line in entry.lines.all()
    }


class SalesAndPurchaseAdapterTests(TestCase):
    """
    GUARANTEES
    - Every adapter produces a balanced Posted entry
    - Zero-amount sides are omitted
    - Source document identity is carried on the entry
    """

    def test_sale_splits_cash_and_receivable(self):
        entry = post_sale(
            {
                "id": 7,
                "serial_no": "SI-0007",
                "customer_name": "Ahmed Builders",
                "date": "2025-02-01",
                "net_total": "1000.00",
                "amount_received": "400.00",
                "balance": "600.00",
            },
            tenant_id=TENANT,
        )

        self.assertEqual(entry.transaction_type, JournalEntry.SALE)
        self.assertEqual(entry.source_model, JournalEntry.SOURCE_SALES_INVOICE)
        self.assertEqual(entry.source_id, "7")
        self.assertEqual(entry.source_reference, "SI-0007")
        self.assertEqual(entry.description, "Sales Invoice SI-0007 - Ahmed Builders")
        self.assertEqual(
            _line_map(entry),
            {
                "1000": (Decimal("400.00"), Decimal("0.00")),
                "1200": (Decimal("600.00"), Decimal("0.00")),
                "4000": (Decimal("0.00"), Decimal("1000.00")),
            },
        )

        self.assertEqual(_balance("1000"), Decimal("400.00"))
        self.assertEqual(_balance("1200"), Decimal("600.00"))
        self.assertEqual(_balance("4000"), Decimal("-1000.00"))

    def test_fully_paid_sale_has_no_receivable_line(self):
        entry = post_sale(
            {
                "serial_no": "SI-0008",
                "customer_name": "Walk-in",
                "date": date(2025, 2, 2),
                "net_total": "250.00",
                "amount_received": "250.00",
                "balance": "0",
            },
            tenant_id=TENANT,
        )

        self.assertEqual(set(_line_map(entry)), {"1000", "4000"})

    def test_sale_snapshot_can_be_an_object(self):
        sale = SimpleNamespace(
            id=9,
            serial_no="SI-0009",
            customer_name="Object Customer",
            date=date(2025, 2, 3),
            net_total=Decimal("100.00"),
            amount_received=Decimal("100.00"),
            balance=None,
            project="P-3",
        )

        entry = post_sale(sale, tenant_id=TENANT)

        self.assertEqual(entry.project, "P-3")
        self.assertEqual(entry.total_debit, Decimal("100.00"))

    def test_unbalanced_sale_is_rejected(self):
        with self.assertRaises(ValidationError):
            post_sale(
                {
                    "serial_no": "SI-0010",
                    "customer_name": "Bad Data",
                    "date": date(2025, 2, 4),
                    "net_total": "1000.00",
                    "amount_received": "400.00",
                    "balance": "500.00",
                },
                tenant_id=TENANT,
            )

        self.assertFalse(JournalEntry.objects.exists())

    def test_purchase_debits_inventory_and_credits_payable(self):
        entry = post_purchase(
            {
                "id": 3,
                "purchase_order_no": "PO-0003",
                "vendor_name": "Cement Co",
                "item_name": "Cement",
                "date": date(2025, 2, 5),
                "net_amount": "500.00",
            },
            tenant_id=TENANT,
        )

        self.assertEqual(entry.transaction_type, JournalEntry.PURCHASE)
        self.assertEqual(entry.lines.count(), 2)
        self.assertEqual(
            _line_map(entry),
            {
                "1300": (Decimal("500.00"), Decimal("0.00")),
                "2000": (Decimal("0.00"), Decimal("500.00")),
            },
        )


class PaymentAdapterTests(TestCase):
    def _payment_lines(self):
        return [
            {
                "account_code": "5100",
                "account_name": "Labour Costs",
                "account_type": Account.EXPENSE,
                "amount": "300.00",
                "description": "Site labour",
            },
            {
                "account_code": "5300",
                "account_name": "Equipment Hire",
                "amount": "200.00",
            },
        ]

    def test_bank_payment_credits_bank_and_debits_each_line(self):
        entry = post_bank_payment(
            {
                "serial_no": "BP-0001",
                "bank_account": "Meezan",
                "date": date(2025, 3, 1),
                "total_amount": "500.00",
                "payment_lines": self._payment_lines(),
            },
            tenant_id=TENANT,
        )

        self.assertEqual(entry.transaction_type, JournalEntry.PAYMENT)
        self.assertEqual(entry.source_model, JournalEntry.SOURCE_BANK_PAYMENT)
        self.assertEqual(
            _line_map(entry),
            {
                "1100": (Decimal("0.00"), Decimal("500.00")),
                "5100": (Decimal("300.00"), Decimal("0.00")),
                "5300": (Decimal("200.00"), Decimal("0.00")),
            },
        )
        self.assertEqual(Account.objects.get(tenant_id=TENANT, code="1100").name, "Bank - Meezan")
        self.assertEqual(
            Account.objects.get(tenant_id=TENANT, code="5300").account_type, Account.EXPENSE
        )

    def test_cash_payment_credits_cash(self):
        entry = post_cash_payment(
            {
                "serial_no": "CP-0001",
                "date": date(2025, 3, 2),
                "total_amount": "500.00",
                "payment_lines": self._payment_lines(),
            },
            tenant_id=TENANT,
        )

        self.assertEqual(_line_map(entry)["1000"], (Decimal("0.00"), Decimal("500.00")))
        self.assertEqual(entry.source_model, JournalEntry.SOURCE_CASH_PAYMENT)

    def test_payment_without_lines_is_rejected(self):
        with self.assertRaisesMessage(ValidationError, "no payment lines"):
            post_cash_payment(
                {"serial_no": "CP-0002", "total_amount": "10.00", "payment_lines": []},
                tenant_id=TENANT,
            )

    def test_payment_receipt_by_bank(self):
        entry = post_payment_receipt(
            {
                "customer_name": "Ahmed Builders",
                "amount": "600.00",
                "payment_method": "Bank Transfer",
                "bank_name": "HBL",
                "invoice_ref": "SI-0007",
                "reference": "RCPT-1",
                "date": date(2025, 3, 3),
            },
            tenant_id=TENANT,
        )

        self.assertEqual(entry.transaction_type, JournalEntry.RECEIPT)
        self.assertEqual(
            _line_map(entry),
            {
                "1100": (Decimal("600.00"), Decimal("0.00")),
                "1200": (Decimal("0.00"), Decimal("600.00")),
            },
        )

    def test_supplier_payment_in_cash(self):
        entry = post_supplier_payment(
            {
                "supplier_name": "Cement Co",
                "amount": "500.00",
                "payment_method": "Cash",
                "reference": "SP-1",
                "date": date(2025, 3, 4),
            },
            tenant_id=TENANT,
        )

        self.assertEqual(
            _line_map(entry),
            {
                "2000": (Decimal("500.00"), Decimal("0.00")),
                "1000": (Decimal("0.00"), Decimal("500.00")),
            },
        )


class PlotAdapterTests(TestCase):
    def test_plot_booking_with_partial_payment(self):
        entry = post_plot_booking(
            {
                "id": 5,
                "plot_number": "A-12",
                "final_price": "2000000.00",
                "booking_amount": "500000.00",
                "booking_date": date(2025, 4, 1),
                "customer": 17,
                "project": "Green Acres",
            },
            tenant_id=TENANT,
        )

        self.assertEqual(entry.transaction_type, JournalEntry.BOOKING)
        self.assertEqual(entry.source_model, JournalEntry.SOURCE_PLOT)
        self.assertEqual(entry.description, "Plot Booking A-12 - Customer linked")
        self.assertEqual(
            _line_map(entry),
            {
                "1000": (Decimal("500000.00"), Decimal("0.00")),
                "1200": (Decimal("1500000.00"), Decimal("0.00")),
                "4001": (Decimal("0.00"), Decimal("2000000.00")),
            },
        )

    def test_plot_booking_falls_back_to_base_price(self):
        entry = post_plot_booking(
            {
                "plot_number": "A-13",
                "base_price": "1000.00",
                "amount_received": "1000.00",
                "booking_date": date(2025, 4, 2),
            },
            tenant_id=TENANT,
        )

        self.assertEqual(set(_line_map(entry)), {"1000", "4001"})

    def test_plot_without_price_is_skipped(self):
        self.assertIsNone(
            post_plot_booking({"plot_number": "A-14", "final_price": "0"}, tenant_id=TENANT)
        )
        self.assertFalse(JournalEntry.objects.exists())

    def test_plot_sale_payment(self):
        entry = post_plot_sale(
            {"plot_number": "A-12", "amount_received": "250000.00", "sale_date": date(2025, 5, 1)},
            tenant_id=TENANT,
        )

        self.assertEqual(
            _line_map(entry),
            {
                "1000": (Decimal("250000.00"), Decimal("0.00")),
                "1200": (Decimal("0.00"), Decimal("250000.00")),
            },
        )

    def test_plot_sale_without_payment_is_skipped(self):
        self.assertIsNone(post_plot_sale({"plot_number": "A-12"}, tenant_id=TENANT))


class AccountResolutionTests(TestCase):
    """
    GUARANTEES
    - Resolving the same code twice yields the same account
    - Sub-account codes post to their parent account
    """

    def test_get_or_create_is_idempotent(self):
        first = get_or_create_account(
            tenant_id=TENANT, code="5200", name="Subcontractor Costs", account_type=Account.EXPENSE
        )
        second = get_or_create_account(
            tenant_id=TENANT, code="5200", name="Renamed", account_type=Account.EXPENSE
        )

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.name, "Subcontractor Costs")
        self.assertEqual(Account.objects.filter(tenant_id=TENANT, code="5200").count(), 1)

    def test_same_code_in_two_tenants_is_two_accounts(self):
        a = get_or_create_account(
            tenant_id=TENANT, code="1000", name="Cash", account_type=Account.ASSET
        )
        b = get_or_create_account(
            tenant_id="tenant-b", code="1000", name="Cash", account_type=Account.ASSET
        )

        self.assertNotEqual(a.pk, b.pk)

    def test_sub_account_code_resolves_to_parent(self):
        parent = get_or_create_account(
            tenant_id=TENANT, code="5000", name="Construction Materials", account_type=Account.EXPENSE
        )
        SubAccount.objects.create(account=parent, code="5000-01", name="Steel")

        self.assertEqual(find_account_by_code(tenant_id=TENANT, code="5000-01"), parent)

        entry = post_cash_payment(
            {
                "serial_no": "CP-0100",
                "date": date(2025, 6, 1),
                "total_amount": "75.00",
                "payment_lines": [{"account_code": "5000-01", "amount": "75.00"}],
            },
            tenant_id=TENANT,
        )

        self.assertTrue(entry.lines.filter(account=parent, debit=Decimal("75.00")).exists())
        self.assertEqual(
            GeneralLedgerEntry.objects.get(journal_entry=entry, account=parent).account_code, "5000"
        )

    def test_seed_system_accounts_is_idempotent(self):
        first = seed_system_accounts(tenant_id=TENANT)
        second = seed_system_accounts(tenant_id=TENANT)

        self.assertEqual([a.pk for a in first], [a.pk for a in second])
        self.assertEqual(Account.objects.filter(tenant_id=TENANT).count(), 7)
