# accounting/api/serializers/journal_entries.py

from rest_framework import serializers

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine


class JournalEntryLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = JournalEntryLine
        fields = (
            "line_no",
            "account_code",
            "account_name",
            "account_type",
            "debit",
            "credit",
            "description",
        )
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth) - entry header plus its lines.
    """

    lines = JournalEntryLineSerializer(many=True, read_only=True)
    reversal_of_entry_number = serializers.CharField(
        source="reversal_of.entry_number", read_only=True, default=None
    )

    class Meta:
        model = JournalEntry
        fields = (
            "id",
            "entry_number",
            "date",
            "transaction_type",
            "source_model",
            "source_id",
            "source_reference",
            "project",
            "description",
            "notes",
            "total_debit",
            "total_credit",
            "status",
            "is_posted",
            "posted_at",
            "reversal_of",
            "reversal_of_entry_number",
            "approved_at",
            "created_at",
            "updated_at",
            "lines",
        )
        read_only_fields = fields


class JournalEntryLineInputSerializer(serializers.Serializer):
    account_code = serializers.CharField(max_length=20)
    account_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    account_type = serializers.ChoiceField(
        choices=Account.ACCOUNT_TYPES, required=False, allow_blank=True
    )
    debit = serializers.DecimalField(max_digits=16, decimal_places=2, required=False, default=0)
    credit = serializers.DecimalField(max_digits=16, decimal_places=2, required=False, default=0)
    description = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )


class JournalEntryCreateSerializer(serializers.Serializer):
    """
    Input serializer (Swagger-visible).

    Balance / line rules are enforced by the journal entry service, so
    error messages match for API and internal callers.
    """

    date = serializers.DateField(required=False)
    transaction_type = serializers.ChoiceField(
        choices=JournalEntry.TRANSACTION_TYPES, default=JournalEntry.JOURNAL
    )
    description = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    project = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(
        choices=[JournalEntry.DRAFT, JournalEntry.POSTED], default=JournalEntry.POSTED
    )
    source_reference = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    lines = JournalEntryLineInputSerializer(many=True)


class JournalEntryUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    transaction_type = serializers.ChoiceField(
        choices=JournalEntry.TRANSACTION_TYPES, required=False
    )
    description = serializers.CharField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    project = serializers.CharField(max_length=64, required=False, allow_blank=True)
    lines = JournalEntryLineInputSerializer(many=True, required=False)


class JournalEntryReverseSerializer(serializers.Serializer):
    reason = serializers.CharField()
