# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for the chart of accounts.
    UI needs: code, name, type, parent (and id for keys).
    """

    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)

    class Meta:
        model = Account
        fields = (
            "id",
            "code",
            "name",
            "account_type",
            "normal_balance",
            "parent",
            "parent_code",
            "is_active",
        )
        read_only_fields = fields
