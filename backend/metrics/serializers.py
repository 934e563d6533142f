from rest_framework import serializers
from .models import Project, TeamMember, WorkItem

class ProjectSerializer(serializers.ModelSerializer):
    owner = serializers.HiddenField(default=serializers.CurrentUserDefault())

    class Meta:
        model = Project
        fields = ["id", "owner", "name", "github_owner", "github_repo", "board_number",
                  "last_synced", "created_at", "updated_at"]
        read_only_fields = ["id", "last_synced", "created_at", "updated_at"]

    def validate_board_number(self, value):
        if value < 1:
            raise serializers.ValidationError("Board number must be positive.")
        return value

class TeamMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = TeamMember
        fields = ["login", "display_name", "avatar_url"]

class WorkItemSerializer(serializers.ModelSerializer):
    assignee = TeamMemberSerializer(read_only=True)

    class Meta:
        model = WorkItem
        fields = [
            "id", "external_id", "issue_number", "title", "status", "size_estimate",
            "priority", "item_type", "start_date", "end_date", "milestone",
            "created_at", "updated_at", "assignee",
        ]

class AnalyticsFilterParamsSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    assignee = serializers.CharField(required=False, allow_blank=True)
    status = serializers.CharField(required=False, allow_blank=True)
    milestone = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError("start_date must be on or before end_date.")
        return attrs
