import datetime as dt

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from metrics.models import Project, TeamMember, WorkItem

# fixed clock for the analytics tests: Wednesday, ISO week starting 2025-03-10
NOW = dt.datetime(2025, 3, 12, 12, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username="pm", password="pw-123456")


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(username="intruder", password="pw-123456")


@pytest.fixture
def project(user):
    return Project.objects.create(
        owner=user, name="Roadmap", github_owner="acme", github_repo="widgets", board_number=3,
    )


@pytest.fixture
def api(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def member(project):
    def make(login, display_name=""):
        return TeamMember.objects.create(project=project, login=login, display_name=display_name)
    return make


@pytest.fixture
def make_item(project):
    """
    Create a WorkItem; updated_at/created_at are written after the insert
    because both columns are maintained automatically on save.
    """
    counter = {"n": 0}

    def make(status="Todo", updated_at=None, created_at=None, **fields):
        counter["n"] += 1
        fields.setdefault("external_id", f"PVTI_{counter['n']}")
        fields.setdefault("title", f"Item {counter['n']}")
        item = WorkItem.objects.create(project=project, status=status, **fields)
        stamps = {}
        if updated_at is not None:
            stamps["updated_at"] = updated_at
        if created_at is not None:
            stamps["created_at"] = created_at
        if stamps:
            WorkItem.objects.filter(pk=item.pk).update(**stamps)
            item.refresh_from_db()
        return item
    return make
