from __future__ import annotations
from typing import Any, Dict, List, Optional

from metrics.models import Project, TeamMember, WorkItem
from metrics.status import UNKNOWN_STATUS
from etl.fields import extract_field, field_nodes
from .base import to_date, to_int, to_text

SIZE_FIELDS = ("Size", "Story Points", "Estimate", "Points")
START_DATE_FIELDS = ("Start Date", "Started")
END_DATE_FIELDS = ("End Date", "Due Date", "Target Date")

DEFAULT_TITLE = "Untitled"
DEFAULT_PRIORITY = "Medium"
DEFAULT_ITEM_TYPE = "Issue"


def _nodes(conn: Any) -> List[Dict[str, Any]]:
    if isinstance(conn, dict):
        conn = conn.get("nodes")
    return [n for n in (conn or []) if isinstance(n, dict)]


class ProjectItemNormalizer:
    """
    Maps one fetched board item onto the canonical WorkItem row of a project.

    Items are upserted on (project, external_id). Assignees resolve to a
    TeamMember that is created on first sight and never updated afterwards.
    """

    def __init__(self, project: Project):
        self.project = project

    def build_fields(self, item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Column values for one item, without the assignee relation.
        Returns None for items without a content payload.
        """
        content = (item or {}).get("content")
        if not content:
            return None
        nodes = field_nodes(item)

        status = (to_text(extract_field(nodes, "Status"))
                  or to_text(content.get("state"))
                  or UNKNOWN_STATUS)

        return dict(
            issue_number=content.get("number"),
            title=content.get("title") or DEFAULT_TITLE,
            status=status,
            size_estimate=to_int(extract_field(nodes, *SIZE_FIELDS)),
            priority=to_text(extract_field(nodes, "Priority")) or DEFAULT_PRIORITY,
            item_type=item.get("type") or DEFAULT_ITEM_TYPE,
            start_date=to_date(extract_field(nodes, *START_DATE_FIELDS)),
            end_date=to_date(extract_field(nodes, *END_DATE_FIELDS)),
            milestone=((content.get("milestone") or {}).get("title")) or None,
            raw=item,
        )

    def first_assignee(self, item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        assignees = _nodes((item.get("content") or {}).get("assignees"))
        for a in assignees:
            if a.get("login"):
                return a
        return None

    def ensure_team_member(self, assignee: Dict[str, Any]) -> TeamMember:
        """Return the existing member for this login, or create it. Never updates."""
        login = assignee["login"]
        member, _ = TeamMember.objects.get_or_create(
            project=self.project,
            login=login,
            defaults=dict(
                display_name=assignee.get("name") or login,
                avatar_url=assignee.get("avatarUrl") or None,
            ),
        )
        return member

    def process(self, item: Dict[str, Any]) -> Optional[WorkItem]:
        """Normalize + upsert one item. Returns the row, or None if the item was skipped."""
        defaults = self.build_fields(item)
        if defaults is None:
            return None
        external_id = item.get("id")
        if not external_id:
            raise ValueError("Board item has no id")

        assignee = self.first_assignee(item)
        defaults["assignee"] = self.ensure_team_member(assignee) if assignee else None

        work_item, _ = WorkItem.objects.update_or_create(
            project=self.project,
            external_id=str(external_id),
            defaults=defaults,
        )
        return work_item
