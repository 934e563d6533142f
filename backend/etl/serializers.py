from rest_framework import serializers
from .models import SyncLog, ProjectCredential

class SyncLogSerializer(serializers.ModelSerializer):
    duration_seconds = serializers.SerializerMethodField()

    class Meta:
        model = SyncLog
        fields = ["id", "run_id", "sync_type", "status", "started_at", "completed_at",
                  "items_synced", "error_message", "duration_seconds"]

    def get_duration_seconds(self, obj):
        return round(obj.duration_seconds(), 3)

class ProjectCredentialSerializer(serializers.ModelSerializer):
    # write-only token field; not returned on GET
    token_plain = serializers.CharField(write_only=True, required=False, allow_blank=True)

    has_token = serializers.SerializerMethodField()

    class Meta:
        model = ProjectCredential
        fields = ["id", "project", "api_base_url", "has_token", "token_plain", "created_at", "updated_at"]
        read_only_fields = ["id", "has_token", "created_at", "updated_at"]

    def get_has_token(self, obj):
        return bool(obj.token_encrypted)

    def validate_project(self, project):
        request = self.context.get("request")
        if request is not None and project.owner_id != request.user.id:
            raise serializers.ValidationError("Unknown project.")
        return project

    def create(self, validated_data):
        token = validated_data.pop("token_plain", "")
        cred = ProjectCredential(**validated_data)
        if token:
            cred.set_token(token)
        cred.save()
        return cred

    def update(self, instance, validated_data):
        token = validated_data.pop("token_plain", "")
        for k, v in validated_data.items():
            setattr(instance, k, v)
        if token:
            instance.set_token(token)
        instance.save()
        return instance
