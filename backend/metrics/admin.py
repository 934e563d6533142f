from django.contrib import admin
from .models import Project, TeamMember, WorkItem

@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "github_owner", "github_repo", "board_number", "last_synced")
    search_fields = ("name", "github_owner", "github_repo")
    list_filter = ("github_owner",)

@admin.register(TeamMember)
class TeamMemberAdmin(admin.ModelAdmin):
    list_display = ("login", "display_name", "project", "created_at")
    search_fields = ("login", "display_name")
    list_filter = ("project",)

@admin.register(WorkItem)
class WorkItemAdmin(admin.ModelAdmin):
    list_display = ("title", "project", "status", "size_estimate", "priority", "item_type", "milestone", "assignee", "updated_at")
    list_filter = ("project", "status", "item_type", "priority")
    search_fields = ("title", "external_id", "milestone")
    raw_id_fields = ("assignee",)
