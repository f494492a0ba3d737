# accounting/api/serializers/journal_entries.py

from rest_framework import serializers

from accounting.api.serializers.ledger_entries import LedgerEntrySerializer
from accounting.models.journal import JournalEntry


class JournalEntrySerializer(serializers.ModelSerializer):
    ledger_entries = LedgerEntrySerializer(many=True, read_only=True)

    class Meta:
        model = JournalEntry
        fields = ["id", "reference", "description", "posted_at", "created_at", "is_posted", "ledger_entries"]
        read_only_fields = fields
