# accounting/api/serializers/accounts.py

from rest_framework import serializers
from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for listing a tenant's chart of accounts.
    UI needs: code, name, type (and id for keys).
    """

    parent_account_code = serializers.CharField(
        source="parent_account.code", read_only=True, default=None
    )

    class Meta:
        model = Account
        fields = (
            "id",
            "code",
            "name",
            "account_type",
            "financial_component",
            "description",
            "parent_account_code",
            "is_active",
        )
        read_only_fields = fields


class AccountCreateSerializer(serializers.Serializer):
    """
    Input serializer (Swagger-visible).
    """

    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=150)
    account_type = serializers.ChoiceField(choices=Account.ACCOUNT_TYPES)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    parent_account_code = serializers.CharField(
        max_length=20, required=False, allow_blank=True, allow_null=True
    )
