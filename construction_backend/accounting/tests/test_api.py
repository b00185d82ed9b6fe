# accounting/tests/test_api.py

from __future__ import annotations

from datetime import date

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models.journal import JournalEntry
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.posting import post_purchase, post_sale

User = get_user_model()

TENANT = "tenant-a"
BASE = "/api/accounting"


def _entry_payload(**overrides):
    payload = {
        "date": "2025-03-01",
        "transaction_type": JournalEntry.JOURNAL,
        "description": "Site cash float",
        "lines": [
            {
                "account_code": "1000",
                "account_name": "Cash Account",
                "account_type": "Asset",
                "debit": "250.00",
            },
            {
                "account_code": "3000",
                "account_name": "Owner Capital",
                "account_type": "Equity",
                "credit": "250.00",
            },
        ],
    }
    payload.update(overrides)
    return payload


class AccountingAPITestBase(TestCase):
    def setUp(self):
        self.user = User.objects.create_superuser(
            username="accountant", email="accountant@example.com", password="pass1234"
        )
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.client.credentials(HTTP_X_TENANT_ID=TENANT)


class JournalEntryAPITests(AccountingAPITestBase):
    """
    GUARANTEES
    - Create / reverse / post / delete go through the journal service
    - Service errors map to 400 / 404 with readable details
    - Every request is scoped by the X-Tenant-ID header
    """

    def test_create_posted_entry(self):
        res = self.client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["entry_number"], "JE-2025-000001")
        self.assertEqual(res.data["status"], JournalEntry.POSTED)
        self.assertEqual(len(res.data["lines"]), 2)
        self.assertEqual(GeneralLedgerEntry.objects.filter(tenant_id=TENANT).count(), 2)

    def test_unbalanced_entry_returns_400_with_totals(self):
        payload = _entry_payload()
        payload["lines"][1]["credit"] = "249.00"

        res = self.client.post(f"{BASE}/journal-entries/", payload, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertIn("not balanced", res.data["detail"])
        self.assertEqual(res.data["total_debit"], "250.00")
        self.assertEqual(res.data["total_credit"], "249.00")

    def test_missing_tenant_header_returns_400(self):
        client = APIClient()
        client.force_authenticate(user=self.user)

        res = client.get(f"{BASE}/journal-entries/")

        self.assertEqual(res.status_code, 400)

    def test_user_without_permission_is_forbidden(self):
        clerk = User.objects.create_user(username="clerk", password="pass1234")
        client = APIClient()
        client.force_authenticate(user=clerk)
        client.credentials(HTTP_X_TENANT_ID=TENANT)

        res = client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")

        self.assertEqual(res.status_code, 403)
        self.assertFalse(JournalEntry.objects.exists())

    def test_list_is_tenant_scoped(self):
        self.client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")

        other_client = APIClient()
        other_client.force_authenticate(user=self.user)
        other_client.credentials(HTTP_X_TENANT_ID="tenant-b")

        own = self.client.get(f"{BASE}/journal-entries/")
        other = other_client.get(f"{BASE}/journal-entries/")

        self.assertEqual(own.data["count"], 1)
        self.assertEqual(other.data["count"], 0)

    def test_retrieve_is_tenant_scoped(self):
        created = self.client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")
        entry_id = created.data["id"]

        other_client = APIClient()
        other_client.force_authenticate(user=self.user)
        other_client.credentials(HTTP_X_TENANT_ID="tenant-b")

        own = self.client.get(f"{BASE}/journal-entries/{entry_id}/")
        other = other_client.get(f"{BASE}/journal-entries/{entry_id}/")

        self.assertEqual(own.status_code, 200)
        self.assertEqual(own.data["entry_number"], "JE-2025-000001")
        self.assertEqual(len(own.data["lines"]), 2)
        self.assertEqual(other.status_code, 404)

    def test_list_filters_by_status(self):
        self.client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")
        self.client.post(
            f"{BASE}/journal-entries/",
            _entry_payload(status=JournalEntry.DRAFT),
            format="json",
        )

        res = self.client.get(f"{BASE}/journal-entries/", {"status": JournalEntry.DRAFT})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["status"], JournalEntry.DRAFT)

    def test_reverse_endpoint(self):
        created = self.client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")
        entry_id = created.data["id"]

        res = self.client.post(
            f"{BASE}/journal-entries/{entry_id}/reverse/", {"reason": "Duplicate"}, format="json"
        )

        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["reversal_of"], entry_id)
        self.assertEqual(res.data["transaction_type"], JournalEntry.ADJUSTMENT)

        again = self.client.post(
            f"{BASE}/journal-entries/{entry_id}/reverse/", {"reason": "Again"}, format="json"
        )
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.data["current_state"], JournalEntry.REVERSED)

    def test_draft_post_and_delete_endpoints(self):
        draft = self.client.post(
            f"{BASE}/journal-entries/",
            _entry_payload(status=JournalEntry.DRAFT),
            format="json",
        )
        self.assertEqual(draft.data["status"], JournalEntry.DRAFT)

        patched = self.client.patch(
            f"{BASE}/journal-entries/{draft.data['id']}/",
            {"description": "Updated float"},
            format="json",
        )
        self.assertEqual(patched.status_code, 200, patched.data)
        self.assertEqual(patched.data["description"], "Updated float")

        posted = self.client.post(f"{BASE}/journal-entries/{draft.data['id']}/post/")
        self.assertEqual(posted.status_code, 200, posted.data)
        self.assertEqual(posted.data["status"], JournalEntry.POSTED)

        deleted = self.client.delete(f"{BASE}/journal-entries/{draft.data['id']}/")
        self.assertEqual(deleted.status_code, 400)

    def test_unknown_entry_returns_404(self):
        res = self.client.post(f"{BASE}/journal-entries/999999/post/")

        self.assertEqual(res.status_code, 404)

    def test_entries_by_account(self):
        self.client.post(f"{BASE}/journal-entries/", _entry_payload(), format="json")

        res = self.client.get(f"{BASE}/journal-entries/by-account/3000/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data), 1)


class LedgerAndReportAPITests(AccountingAPITestBase):
    def setUp(self):
        super().setUp()
        post_sale(
            {
                "id": 1,
                "serial_no": "SI-0001",
                "customer_name": "Ahmed Builders",
                "date": date(2025, 1, 15),
                "net_total": "1000.00",
                "amount_received": "400.00",
                "balance": "600.00",
                "project": "P-7",
            },
            tenant_id=TENANT,
        )
        post_purchase(
            {
                "id": 2,
                "purchase_order_no": "PO-0002",
                "vendor_name": "Cement Co",
                "item_name": "Cement",
                "date": date(2025, 1, 20),
                "net_amount": "500.00",
            },
            tenant_id=TENANT,
        )

    def test_general_ledger_filters_by_account(self):
        res = self.client.get(f"{BASE}/general-ledger/", {"account_code": "1000"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["account_code"], "1000")

    def test_account_balance_endpoint(self):
        res = self.client.get(f"{BASE}/general-ledger/balance/1200/", {"as_of": "2025-12-31"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["balance"], 600)

    def test_account_ledger_endpoint(self):
        res = self.client.get(
            f"{BASE}/general-ledger/account/1000/",
            {"start_date": "2025-01-01", "end_date": "2025-01-31"},
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["entries"]), 1)

    def test_trial_balance_endpoint(self):
        res = self.client.get(f"{BASE}/trial-balance/", {"as_of": "2025-12-31"})

        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.data["is_balanced"])
        self.assertEqual(res.data["total_debit"], 1500.0)

    def test_balance_sheet_endpoint(self):
        res = self.client.get(f"{BASE}/balance-sheet/", {"as_of": "2025-12-31"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["assets"]["total"], 1500.0)

    def test_profit_and_loss_endpoint(self):
        res = self.client.get(
            f"{BASE}/profit-and-loss/", {"start_date": "2025-01-01", "end_date": "2025-12-31"}
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["net_profit"], 1000.0)

    def test_project_ledger_endpoint(self):
        res = self.client.get(f"{BASE}/project-ledger/P-7/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.data["revenue"]), 1)

    def test_accounts_list_and_create(self):
        listed = self.client.get(f"{BASE}/accounts/")
        self.assertEqual(listed.status_code, 200)
        self.assertIn("1000", [a["code"] for a in listed.data])

        created = self.client.post(
            f"{BASE}/accounts/",
            {"code": "5100", "name": "Labour Costs", "account_type": "Expense"},
            format="json",
        )
        self.assertEqual(created.status_code, 201, created.data)

        duplicate = self.client.post(
            f"{BASE}/accounts/",
            {"code": "5100", "name": "Labour Again", "account_type": "Expense"},
            format="json",
        )
        self.assertEqual(duplicate.status_code, 400)
