from django.conf import settings
from django.db import models


# ----- Project ----------------------------------------------------------------

class Project(models.Model):
    """
    A project board on the external tracker, registered by one user.
    Coordinates are immutable after creation; only last_synced moves.
    """
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="projects")
    name = models.CharField(max_length=255)
    github_owner = models.CharField(max_length=255)               # org or user login
    github_repo = models.CharField(max_length=255)
    board_number = models.PositiveIntegerField()                  # ProjectV2 number
    last_synced = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("owner", "github_owner", "github_repo", "board_number")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} [{self.github_owner}/{self.github_repo}#{self.board_number}]"


# ----- Team members -------------------------------------------------------------

class TeamMember(models.Model):
    """
    One per distinct assignee login seen on a project. Created lazily during sync
    and never updated afterwards (display name is a first-seen snapshot).
    """
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="team_members")
    login = models.CharField(max_length=255)
    display_name = models.CharField(max_length=255, blank=True, default="")
    avatar_url = models.URLField(max_length=512, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("project", "login")

    def __str__(self) -> str:
        return self.display_name or self.login


# ----- Canonical Work Item ----------------------------------------------------

class WorkItem(models.Model):
    """
    Canonical row for one board item (issue, pull request or draft).
    (project, external_id) is the upsert key; rows are never pruned.
    """
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="work_items")
    external_id = models.CharField(max_length=255)                # ProjectV2Item node id
    issue_number = models.IntegerField(null=True, blank=True)     # null for drafts

    title = models.TextField()
    status = models.CharField(max_length=128, default="Unknown")  # free text, board-defined
    size_estimate = models.IntegerField(null=True, blank=True)
    priority = models.CharField(max_length=64, default="Medium")
    item_type = models.CharField(max_length=32, default="Issue")
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    milestone = models.CharField(max_length=255, null=True, blank=True)
    assignee = models.ForeignKey(TeamMember, null=True, blank=True, on_delete=models.SET_NULL, related_name="work_items")

    raw = models.JSONField(default=dict, blank=True)              # last fetched item as-is
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("project", "external_id")
        indexes = [
            models.Index(fields=["project", "status"], name="workitem_project_status_idx"),
            models.Index(fields=["project", "updated_at"], name="workitem_project_updated_idx"),
            models.Index(fields=["project", "milestone"], name="workitem_project_milestone_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.external_id})"
