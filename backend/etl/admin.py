from django import forms
from django.contrib import admin
from .models import SyncLog, ProjectCredential

class ProjectCredentialForm(forms.ModelForm):
    token_plain = forms.CharField(
        label="Token", required=False, strip=True,
        widget=forms.PasswordInput(render_value=False),
        help_text="Leave blank to keep the stored token.",
    )

    class Meta:
        model = ProjectCredential
        fields = ("project", "api_base_url")

@admin.register(SyncLog)
class SyncLogAdmin(admin.ModelAdmin):
    list_display = ("project", "sync_type", "status", "started_at", "completed_at", "items_synced", "items_failed")
    list_filter = ("status", "sync_type", "project")
    search_fields = ("run_id", "project__name", "error_message")
    readonly_fields = ("run_id", "started_at", "completed_at")

@admin.register(ProjectCredential)
class ProjectCredentialAdmin(admin.ModelAdmin):
    list_display = ("project", "api_base_url", "updated_at")
    search_fields = ("project__name", "project__github_repo", "api_base_url")
    readonly_fields = ("created_at", "updated_at")
    form = ProjectCredentialForm
    actions = ["rotate_tokens"]

    def save_model(self, request, obj, form, change):
        token_plain = form.cleaned_data.get("token_plain")
        if token_plain:
            obj.set_token(token_plain)
        super().save_model(request, obj, form, change)

    @admin.action(description="Re-encrypt tokens with the current key")
    def rotate_tokens(self, request, queryset):
        rotated = sum(1 for cred in queryset if cred.rotate_token())
        self.message_user(request, f"Rotated {rotated} token(s).")
