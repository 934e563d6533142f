import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("github_owner", models.CharField(max_length=255)),
                ("github_repo", models.CharField(max_length=255)),
                ("board_number", models.PositiveIntegerField()),
                ("last_synced", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="projects", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "unique_together": {("owner", "github_owner", "github_repo", "board_number")},
            },
        ),
        migrations.CreateModel(
            name="TeamMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("login", models.CharField(max_length=255)),
                ("display_name", models.CharField(blank=True, default="", max_length=255)),
                ("avatar_url", models.URLField(blank=True, max_length=512, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="team_members", to="metrics.project")),
            ],
            options={
                "unique_together": {("project", "login")},
            },
        ),
        migrations.CreateModel(
            name="WorkItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(max_length=255)),
                ("issue_number", models.IntegerField(blank=True, null=True)),
                ("title", models.TextField()),
                ("status", models.CharField(default="Unknown", max_length=128)),
                ("size_estimate", models.IntegerField(blank=True, null=True)),
                ("priority", models.CharField(default="Medium", max_length=64)),
                ("item_type", models.CharField(default="Issue", max_length=32)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("milestone", models.CharField(blank=True, max_length=255, null=True)),
                ("raw", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("assignee", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="work_items", to="metrics.teammember")),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="work_items", to="metrics.project")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["project", "status"], name="workitem_project_status_idx"),
                    models.Index(fields=["project", "updated_at"], name="workitem_project_updated_idx"),
                    models.Index(fields=["project", "milestone"], name="workitem_project_milestone_idx"),
                ],
                "unique_together": {("project", "external_id")},
            },
        ),
    ]
