# audit/serializers.py

from rest_framework import serializers

from audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditEvent
        fields = ["id", "type", "payload", "description", "timestamp", "source"]
        read_only_fields = fields
