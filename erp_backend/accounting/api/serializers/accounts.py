# accounting/api/serializers/accounts.py

from rest_framework import serializers

from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    normal_balance = serializers.CharField(read_only=True)

    class Meta:
        model = Account
        fields = ("id", "code", "name", "account_type", "normal_balance", "is_active")
        read_only_fields = fields
