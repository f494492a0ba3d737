# accounting/api/serializers/posting_failures.py

from rest_framework import serializers

from accounting.models.posting_failure import PostingFailure


class PostingFailureSerializer(serializers.ModelSerializer):
    class Meta:
        model = PostingFailure
        fields = [
            "id",
            "kind",
            "document_type",
            "document_id",
            "document_code",
            "status",
            "error",
            "attempts",
            "first_failed_at",
            "last_attempt_at",
            "resolved_at",
        ]
        read_only_fields = fields


class RetryResultSerializer(serializers.Serializer):
    failure_id = serializers.CharField()
    kind = serializers.CharField()
    document_type = serializers.CharField()
    document_id = serializers.CharField()
    success = serializers.BooleanField()
    skipped = serializers.BooleanField()
    error = serializers.CharField(allow_null=True)
