# accounting/api/serializers/ledger_entries.py

from rest_framework import serializers

from accounting.models.ledger import LedgerEntry


class LedgerEntrySerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account.code", read_only=True)

    class Meta:
        model = LedgerEntry
        fields = ["id", "journal_entry", "account", "account_code", "entry_type", "amount", "created_at"]
        read_only_fields = fields
