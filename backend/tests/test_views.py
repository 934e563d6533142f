import pytest
from cryptography.fernet import Fernet
from rest_framework.test import APIClient

from etl import tasks
from etl.connectors.github import ProjectBoardError
from etl.models import ProjectCredential, SyncLog
from metrics import views as metric_views
from metrics.models import Project
from payloads import board_item, field

pytestmark = pytest.mark.django_db

ANALYTICS = [
    "progress", "status-distribution", "velocity", "burndown", "workload",
    "enhanced-workload", "milestones", "risk-analysis", "filtered", "overview",
]


class StubConnector:
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error

    def fetch_project_items(self):
        if self.error:
            raise self.error
        return self.items


def test_health_is_public():
    res = APIClient().get("/api/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert res.json()["database"] is True


def test_ping_requires_auth(api):
    assert APIClient().get("/api/ping/").status_code == 401
    assert api.get("/api/ping/").json() == {"ok": True, "user": "pm", "projects": 0}


def test_jwt_token_pair(user):
    res = APIClient().post("/api/auth/token/", {"username": "pm", "password": "pw-123456"}, format="json")
    assert res.status_code == 200
    access = res.json()["access"]

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    assert client.get("/api/projects/").status_code == 200


def test_project_list_is_owner_scoped(api, project, other_user):
    Project.objects.create(owner=other_user, name="Hidden", github_owner="x", github_repo="y", board_number=1)

    res = api.get("/api/projects/")

    assert res.status_code == 200
    assert [p["name"] for p in res.json()] == ["Roadmap"]


def test_create_project_checks_repository(api, user, monkeypatch):
    checked = []

    class OkConnector:
        def __init__(self, owner, repo, board_number):
            checked.append((owner, repo, board_number))

        def check_repository(self):
            return {"full_name": "acme/api"}

    monkeypatch.setattr(metric_views, "GitHubProjectConnector", OkConnector)
    res = api.post("/api/projects/", {
        "name": "API", "github_owner": "acme", "github_repo": "api", "board_number": 7,
    }, format="json")

    assert res.status_code == 201
    assert checked == [("acme", "api", 7)]
    assert Project.objects.get(pk=res.json()["id"]).owner == user


def test_create_project_rejects_unreachable_repository(api, settings):
    settings.GITHUB_TOKEN = ""
    res = api.post("/api/projects/", {
        "name": "API", "github_owner": "acme", "github_repo": "api", "board_number": 7,
    }, format="json")

    assert res.status_code == 400
    assert "token not configured" in str(res.json()["error"])
    assert not Project.objects.exists()


def test_create_project_rejects_zero_board_number(api):
    res = api.post("/api/projects/", {
        "name": "API", "github_owner": "acme", "github_repo": "api", "board_number": 0,
    }, format="json")
    assert res.status_code == 400


def test_project_items(api, project, make_item, member):
    make_item(status="Done", title="Ship it", assignee=member("alice", "Alice"))

    res = api.get(f"/api/projects/{project.id}/items")

    assert res.status_code == 200
    [item] = res.json()
    assert item["title"] == "Ship it"
    assert item["assignee"]["login"] == "alice"
    assert "raw" not in item


def test_foreign_project_is_not_found(project, other_user):
    client = APIClient()
    client.force_authenticate(user=other_user)
    assert client.get(f"/api/projects/{project.id}/items").status_code == 404
    assert client.get(f"/api/analytics/{project.id}/progress").status_code == 404
    assert client.post(f"/api/projects/{project.id}/sync").status_code == 404


@pytest.mark.parametrize("name", ANALYTICS)
def test_analytics_endpoints_respond(api, project, make_item, name):
    make_item(status="Done", size_estimate=2, milestone="v1")
    make_item(status="In Progress")
    res = api.get(f"/api/analytics/{project.id}/{name}")
    assert res.status_code == 200


def test_progress_endpoint_payload(api, project, make_item):
    make_item(status="Done")
    make_item(status="Todo")
    assert api.get(f"/api/analytics/{project.id}/progress").json() == {
        "total_items": 2, "completed_items": 1, "in_progress_items": 0,
        "todo_items": 1, "progress_percentage": 50,
    }


def test_metric_failure_returns_400(api, project, monkeypatch):
    from django.db import DatabaseError

    def broken(project_id):
        raise DatabaseError("boom")

    monkeypatch.setattr(metric_views.ProgressView, "metric", staticmethod(broken))
    res = api.get(f"/api/analytics/{project.id}/progress")
    assert res.status_code == 400
    assert res.json() == {"error": "boom"}


def test_filtered_endpoint_applies_params(api, project, make_item, member):
    alice = member("alice", "Alice")
    make_item(status="Done", size_estimate=3, assignee=alice)
    make_item(status="Todo", size_estimate=5)

    res = api.get(f"/api/analytics/{project.id}/filtered", {"assignee": "alice"})

    assert res.json() == {"total_items": 1, "completed_items": 1, "avg_size": 3.0}


def test_filtered_endpoint_rejects_bad_dates(api, project):
    res = api.get(f"/api/analytics/{project.id}/filtered", {"start_date": "not-a-date"})
    assert res.status_code == 400
    res = api.get(f"/api/analytics/{project.id}/filtered", {"start_date": "2025-03-10", "end_date": "2025-03-01"})
    assert res.status_code == 400


def test_sync_endpoint(api, project, monkeypatch):
    monkeypatch.setattr(tasks, "get_connector", lambda p: StubConnector([
        board_item("PVTI_1", fields=[field("Status", name="Done")]),
        board_item("PVTI_2"),
    ]))

    res = api.post(f"/api/projects/{project.id}/sync")

    assert res.status_code == 200
    assert res.json() == {"message": "Sync completed successfully", "items_synced": 2}
    logs = api.get(f"/api/projects/{project.id}/sync-logs").json()
    assert logs[0]["status"] == "success"
    assert logs[0]["items_synced"] == 2


def test_sync_endpoint_reports_fetch_failure(api, project, monkeypatch):
    monkeypatch.setattr(tasks, "get_connector", lambda p: StubConnector(error=ProjectBoardError("Project not found")))

    res = api.post(f"/api/projects/{project.id}/sync")

    assert res.status_code == 400
    assert res.json() == {"error": "Project not found"}
    log = SyncLog.objects.get(project=project)
    assert log.status == "error"


def test_credentials_store_token_encrypted(api, project):
    res = api.post("/api/credentials/", {"project": project.id, "token_plain": "ghp_secret"}, format="json")

    assert res.status_code == 201
    body = res.json()
    assert body["has_token"] is True
    assert "token_plain" not in body
    cred = ProjectCredential.objects.get(project=project)
    assert bytes(cred.token_encrypted) != b"ghp_secret"
    assert cred.get_token() == "ghp_secret"


def test_credentials_reject_foreign_project(project, other_user):
    client = APIClient()
    client.force_authenticate(user=other_user)
    res = client.post("/api/credentials/", {"project": project.id, "token_plain": "x"}, format="json")
    assert res.status_code == 400


def test_token_survives_key_rotation(project, settings):
    old, new = Fernet.generate_key().decode(), Fernet.generate_key().decode()
    settings.CREDENTIALS_FERNET_KEY = ""
    settings.CREDENTIALS_FERNET_KEYS = [old]
    cred = ProjectCredential(project=project)
    cred.set_token("ghp_secret")
    cred.save()

    settings.CREDENTIALS_FERNET_KEYS = [new, old]
    assert cred.rotate_token() is True

    settings.CREDENTIALS_FERNET_KEYS = [new]
    cred.refresh_from_db()
    assert cred.get_token() == "ghp_secret"


def test_create_duplicate_project_is_rejected(api, project, monkeypatch):
    class OkConnector:
        def __init__(self, owner, repo, board_number):
            pass

        def check_repository(self):
            return {}

    monkeypatch.setattr(metric_views, "GitHubProjectConnector", OkConnector)
    res = api.post("/api/projects/", {
        "name": "Roadmap again", "github_owner": "acme", "github_repo": "widgets", "board_number": 3,
    }, format="json")

    assert res.status_code == 400
    assert Project.objects.count() == 1


def test_same_board_for_another_user_is_allowed(project, other_user, monkeypatch):
    class OkConnector:
        def __init__(self, owner, repo, board_number):
            pass

        def check_repository(self):
            return {}

    monkeypatch.setattr(metric_views, "GitHubProjectConnector", OkConnector)
    client = APIClient()
    client.force_authenticate(user=other_user)
    res = client.post("/api/projects/", {
        "name": "Mine", "github_owner": "acme", "github_repo": "widgets", "board_number": 3,
    }, format="json")

    assert res.status_code == 201
