# etl/connectors/github.py
from __future__ import annotations
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

from metrics.models import Project

logger = logging.getLogger(__name__)


class ProjectBoardError(Exception):
    """Fetch-side failure: transport, auth, GraphQL errors or a missing board."""


ITEMS_QUERY = """
query ProjectItems($owner: String!, $repo: String!, $number: Int!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    projectV2(number: $number) {
      id
      title
      items(first: $first, after: $after) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          type
          content {
            ... on Issue {
              id number title state createdAt updatedAt
              assignees(first: 10) { nodes { login name avatarUrl } }
              milestone { title dueOn }
            }
            ... on PullRequest {
              id number title state createdAt updatedAt
              assignees(first: 10) { nodes { login name avatarUrl } }
              milestone { title dueOn }
            }
            ... on DraftIssue {
              id title createdAt updatedAt
              assignees(first: 10) { nodes { login name avatarUrl } }
            }
          }
          fieldValues(first: 30) {
            nodes {
              ... on ProjectV2ItemFieldTextValue { text field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldNumberValue { number field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldSingleSelectValue { name field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldDateValue { date field { ... on ProjectV2FieldCommon { name } } }
              ... on ProjectV2ItemFieldIterationValue { title startDate field { ... on ProjectV2FieldCommon { name } } }
            }
          }
        }
      }
    }
  }
}
"""


def default_token() -> str:
    return getattr(settings, "GITHUB_TOKEN", "") or ""


class GitHubProjectConnector:
    """
    GitHub Projects (v2) connector.
    - Items via GraphQL, cursor-paginated until pageInfo.hasNextPage is false
    - Repository access check via REST /repos/{owner}/{repo}
    Emits raw item nodes:
      { "id": ..., "type": "ISSUE", "content": {...}, "fieldValues": {"nodes": [...]} }
    """

    REQUESTS_PER_MINUTE_BACKOFF = 60  # fallback sleep when rate-limited without a reset header
    MAX_RATE_LIMIT_SLEEP = 120

    def __init__(self, owner: str, repo: str, board_number: int, token: Optional[str] = None, api_base_url: Optional[str] = None):
        self.owner = owner
        self.repo = repo
        self.board_number = int(board_number)

        token = token or default_token()
        if not token:
            raise ProjectBoardError("GitHub token not configured")

        self.base = (api_base_url or getattr(settings, "GITHUB_API_URL", "https://api.github.com")).rstrip("/")
        self.page_size = int(getattr(settings, "GITHUB_PAGE_SIZE", 100))
        self.max_pages = int(getattr(settings, "GITHUB_MAX_PAGES", 50))
        self.timeout = tuple(getattr(settings, "GITHUB_TIMEOUT", (10, 60)))  # (connect, read)
        self.max_retries = int(getattr(settings, "GITHUB_MAX_RETRIES", 3))

        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    @classmethod
    def for_project(cls, project: Project) -> "GitHubProjectConnector":
        cred = getattr(project, "credential", None)
        token = cred.get_token() if cred else None
        base = cred.api_base_url if cred else None
        return cls(project.github_owner, project.github_repo, project.board_number, token=token or None, api_base_url=base or None)

    # ----------------------------- Public entry ------------------------------
    def fetch_project_items(self) -> List[Dict[str, Any]]:
        """
        All items of the board, every page. Raises ProjectBoardError on any
        fetch failure; nothing is returned for a partially fetched board.
        """
        items: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        pages = 0

        while True:
            data = self._graphql(ITEMS_QUERY, {
                "owner": self.owner,
                "repo": self.repo,
                "number": self.board_number,
                "first": self.page_size,
                "after": cursor,
            })
            board = ((data.get("repository") or {}).get("projectV2"))
            if not board:
                raise ProjectBoardError("Project not found")

            conn = board.get("items") or {}
            items.extend(n for n in (conn.get("nodes") or []) if n)
            pages += 1

            page_info = conn.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            if pages >= self.max_pages:
                logger.warning("Stopping at %s pages for %s/%s#%s (%s items fetched)",
                               pages, self.owner, self.repo, self.board_number, len(items))
                break
            cursor = page_info.get("endCursor")

        logger.info("Fetched %s items in %s page(s) from %s/%s#%s",
                    len(items), pages, self.owner, self.repo, self.board_number)
        return items

    def check_repository(self) -> Dict[str, Any]:
        """Verify the token can read the repository; returns the repo payload."""
        return self._request_json("GET", f"/repos/{self.owner}/{self.repo}")

    # ----------------------------- Helpers -----------------------------------
    def _graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._request_json("POST", "/graphql", json={"query": query, "variables": variables})
        errors = payload.get("errors") or []
        if errors:
            messages = "; ".join(str(e.get("message") or e) for e in errors)
            raise ProjectBoardError(f"GitHub GraphQL error: {messages}")
        return payload.get("data") or {}

    def _request_json(self, method: str, path: str, params: Optional[Dict[str, Any]] = None, json: Any = None):
        url = f"{self.base}{path}"
        retries = 0
        while True:
            try:
                resp = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
            except requests.RequestException as e:
                raise ProjectBoardError(f"GitHub API unreachable: {e}") from e

            # Basic rate-limit handling
            if resp.status_code in (403, 429) and resp.headers.get("X-RateLimit-Remaining") == "0":
                if retries >= self.max_retries:
                    raise ProjectBoardError(f"GitHub rate limit not reset after {retries} retries")
                retries += 1
                wait = self._rate_limit_sleep(resp)
                logger.warning("Rate limited on %s; retry %s/%s in %ss", path, retries, self.max_retries, wait)
                time.sleep(wait)
                continue

            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                raise ProjectBoardError(f"GitHub API error {resp.status_code} at {resp.url} | body={resp.text[:500]}") from e
            try:
                return resp.json()
            except ValueError as e:
                raise ProjectBoardError(f"GitHub API returned non-JSON body at {resp.url}") from e

    def _rate_limit_sleep(self, resp: requests.Response) -> int:
        reset = resp.headers.get("X-RateLimit-Reset")
        sleep_for = self.REQUESTS_PER_MINUTE_BACKOFF
        if reset and reset.isdigit():
            sleep_for = max(1, int(reset) - int(time.time()) + 1)
        return min(sleep_for, self.MAX_RATE_LIMIT_SLEEP)
