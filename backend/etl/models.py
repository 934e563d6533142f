from django.db import models
import uuid
from django.utils import timezone
from .crypto import encrypt_value, decrypt_value, rotate_value

from metrics.models import Project


class SyncStatus(models.TextChoices):
    IN_PROGRESS = "in_progress", "In Progress"
    SUCCESS = "success", "Success"
    ERROR = "error", "Error"


class SyncLog(models.Model):
    """
    Append-only audit row per sync run: in_progress -> success | error.
    Written outside the data transaction so a failed run still leaves a trace.
    """
    run_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="sync_logs")
    sync_type = models.CharField(max_length=16, default="full")

    status = models.CharField(max_length=16, choices=SyncStatus.choices, default=SyncStatus.IN_PROGRESS)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)

    # Counters & diagnostics
    items_synced = models.IntegerField(default=0)
    items_failed = models.IntegerField(default=0)               # audit only; not reported by the API
    error_message = models.TextField(blank=True, default="")
    meta = models.JSONField(default=dict, blank=True)           # phase, page count, traceback ...

    class Meta:
        indexes = [
            models.Index(fields=["project", "status"], name="synclog_project_status_idx"),
            models.Index(fields=["started_at"], name="synclog_started_at_idx"),
        ]
        ordering = ["-started_at"]

    def mark_success(self):
        self.status = SyncStatus.SUCCESS
        self.completed_at = timezone.now()
        self.save(update_fields=["status", "completed_at", "items_synced", "items_failed", "meta"])

    def mark_failed(self, message: str = "", traceback_text: str = ""):
        self.status = SyncStatus.ERROR
        self.completed_at = timezone.now()
        self.error_message = message
        if traceback_text:
            self.meta = {**(self.meta or {}), "traceback": traceback_text}
        self.save(update_fields=["status", "completed_at", "error_message", "meta"])

    def duration_seconds(self) -> float:
        if not self.completed_at:
            return (timezone.now() - self.started_at).total_seconds()
        return (self.completed_at - self.started_at).total_seconds()

    def __str__(self) -> str:
        return f"sync {self.project_id} [{self.status}] {self.run_id}"


class ProjectCredential(models.Model):
    """
    Optional per-project board token (encrypted). Projects without one use
    settings.GITHUB_TOKEN.
    """
    project = models.OneToOneField(Project, on_delete=models.CASCADE, related_name="credential")
    api_base_url = models.CharField(max_length=512, blank=True, default="", help_text="Leave blank for https://api.github.com")
    token_encrypted = models.BinaryField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # convenience
    def set_token(self, token: str):
        self.token_encrypted = encrypt_value(token)

    def get_token(self) -> str:
        return decrypt_value(bytes(self.token_encrypted or b""))

    def rotate_token(self) -> bool:
        if not self.token_encrypted:
            return False
        self.token_encrypted = rotate_value(bytes(self.token_encrypted))
        self.save(update_fields=["token_encrypted", "updated_at"])
        return True

    def __str__(self):
        return f"Creds for {self.project}"
