import pytest

from etl import tasks
from etl.connectors.github import ProjectBoardError
from etl.models import SyncLog, SyncStatus
from metrics.models import Project, TeamMember, WorkItem
from payloads import board_item, field

pytestmark = pytest.mark.django_db


class FakeConnector:
    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error

    def fetch_project_items(self):
        if self.error:
            raise self.error
        return list(self.items)


@pytest.fixture
def board(monkeypatch):
    """Swap the board connector used by sync_project."""
    def install(connector):
        monkeypatch.setattr(tasks, "get_connector", lambda project: connector)
        return connector
    return install


def test_sync_upserts_items_and_records_success(project, board):
    board(FakeConnector([
        board_item("PVTI_1", fields=[field("Status", name="Done"), field("Size", number=3)]),
        board_item("PVTI_2", assignees=[{"login": "alice", "name": "Alice"}]),
    ]))

    result = tasks.sync_project(project.id)

    assert result == {"project": project.id, "items_synced": 2}
    assert WorkItem.objects.filter(project=project).count() == 2
    assert TeamMember.objects.filter(project=project, login="alice").exists()

    project.refresh_from_db()
    assert project.last_synced is not None

    log = SyncLog.objects.get(project=project)
    assert log.status == SyncStatus.SUCCESS
    assert log.items_synced == 2
    assert log.items_failed == 0
    assert log.completed_at is not None
    assert log.meta["phase"] == "done"
    assert log.meta["fetched"] == 2


def test_failing_item_does_not_abort_the_run(project, board):
    no_id = board_item("PVTI_3")
    no_id["id"] = None
    board(FakeConnector([
        board_item("PVTI_1"),
        no_id,
        {"id": "PVTI_draft", "content": None},
        board_item("PVTI_2"),
    ]))

    result = tasks.sync_project(project.id)

    # skipped (content-less) items count as synced, failures do not
    assert result["items_synced"] == 3
    assert set(WorkItem.objects.values_list("external_id", flat=True)) == {"PVTI_1", "PVTI_2"}
    log = SyncLog.objects.get(project=project)
    assert log.status == SyncStatus.SUCCESS
    assert log.items_failed == 1


def test_fetch_failure_rolls_back_and_leaves_error_log(project, board, make_item):
    make_item(status="Todo", external_id="PVTI_existing")
    board(FakeConnector(error=ProjectBoardError("Project not found")))

    with pytest.raises(ProjectBoardError):
        tasks.sync_project(project.id)

    assert WorkItem.objects.filter(project=project).count() == 1
    project.refresh_from_db()
    assert project.last_synced is None

    log = SyncLog.objects.get(project=project)
    assert log.status == SyncStatus.ERROR
    assert log.error_message == "Project not found"
    assert "traceback" in log.meta
    assert log.completed_at is not None


def test_resync_is_idempotent(project, board):
    items = [
        board_item("PVTI_1", title="Old title", assignees=[{"login": "alice", "name": "Alice"}]),
        board_item("PVTI_2"),
    ]
    board(FakeConnector(items))
    tasks.sync_project(project.id)

    items[0]["content"]["title"] = "New title"
    tasks.sync_project(project.id)

    assert WorkItem.objects.filter(project=project).count() == 2
    assert WorkItem.objects.get(external_id="PVTI_1").title == "New title"
    assert TeamMember.objects.filter(project=project).count() == 1
    assert SyncLog.objects.filter(project=project, status=SyncStatus.SUCCESS).count() == 2


def test_item_repeated_across_pages_is_stored_once(project, board):
    board(FakeConnector([
        board_item("PVTI_1", title="Page one"),
        board_item("PVTI_1", title="Page two"),
    ]))

    tasks.sync_project(project.id)

    assert WorkItem.objects.filter(project=project, external_id="PVTI_1").count() == 1
    assert WorkItem.objects.get(external_id="PVTI_1").title == "Page two"


def test_items_missing_upstream_are_kept(project, board):
    board(FakeConnector([board_item("PVTI_1"), board_item("PVTI_2")]))
    tasks.sync_project(project.id)

    board(FakeConnector([board_item("PVTI_1")]))
    tasks.sync_project(project.id)

    assert WorkItem.objects.filter(project=project).count() == 2


def test_empty_board_syncs_zero_items(project, board):
    board(FakeConnector([]))
    assert tasks.sync_project(project.id)["items_synced"] == 0
    assert SyncLog.objects.get(project=project).status == SyncStatus.SUCCESS


def test_sync_all_projects_enqueues_each_project(project, user, monkeypatch):
    second = Project.objects.create(owner=user, name="Ops", github_owner="acme", github_repo="ops", board_number=1)
    queued = []
    monkeypatch.setattr(tasks.sync_project, "delay", lambda pid: queued.append(pid))

    assert tasks.sync_all_projects() == 2
    assert sorted(queued) == sorted([project.id, second.id])


def test_sync_locks_the_project_row_before_writing(project, board, monkeypatch):
    locked = []
    original = Project.objects.select_for_update

    def select_for_update(*args, **kwargs):
        locked.append(WorkItem.objects.count())
        return original(*args, **kwargs)

    monkeypatch.setattr(Project.objects, "select_for_update", select_for_update)
    board(FakeConnector([board_item("PVTI_1")]))

    tasks.sync_project(project.id)

    # taken once, before any item was written
    assert locked == [0]
