# accounting/api/serializers/ledger_entries.py

from rest_framework import serializers

from accounting.models.ledger import GeneralLedgerEntry


class GeneralLedgerEntrySerializer(serializers.ModelSerializer):
    journal_entry_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = GeneralLedgerEntry
        fields = (
            "id",
            "date",
            "entry_number",
            "journal_entry_id",
            "account_code",
            "account_name",
            "account_type",
            "description",
            "transaction_type",
            "project",
            "debit",
            "credit",
            "balance",
            "source_model",
            "source_id",
            "source_reference",
            "fiscal_year",
            "fiscal_period",
            "status",
            "created_at",
        )
        read_only_fields = fields
