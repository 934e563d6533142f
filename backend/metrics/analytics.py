"""
Read-only aggregations over a project's work items.

Every routine recomputes from the current rows on each call (no caches, no
snapshots). Routines raise on database errors; callers that need a
success/failure envelope go through run_metric().
"""
from __future__ import annotations
import datetime as dt
import logging
import statistics
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from django.db import DatabaseError
from django.db.models import Avg, Count, Max, Min, Q, Sum, Value
from django.db.models.functions import Coalesce, TruncDate, TruncWeek
from django.utils import timezone

from .filters import AnalyticsFilter
from .models import WorkItem
from .risk import RiskFactors, assess, milestone_status, round_half_up, velocity_trend, workload_risk
from .status import (
    BLOCKED_MARKERS, COMPLETED_STATUSES, IN_PROGRESS_STATUSES, TODO_STATUSES,
    UNKNOWN_STATUS, lifecycle_bucket,
)

logger = logging.getLogger(__name__)

VELOCITY_LOOKBACK_WEEKS = 12
VELOCITY_MAX_WEEKS = 6
BURNDOWN_DAYS = 28
RISK_TREND_DAYS = 28
STALE_AFTER_DAYS = 7
LONG_BLOCKED_DAYS = 3
SEVERELY_OVERDUE_DAYS = 7

UNASSIGNED = "Unassigned"

# ------------ Helpers ------------

def _now(now: Optional[dt.datetime]) -> dt.datetime:
    return now or timezone.now()

def _items(project_id: int):
    return WorkItem.objects.filter(project_id=project_id)

def _completed(project_id: int):
    return _items(project_id).filter(status__in=COMPLETED_STATUSES)

def _points():
    # unestimated items weigh one point
    return Coalesce("size_estimate", Value(1))

def _percent(part: int, whole: int) -> int:
    return round_half_up(100 * part / whole) if whole else 0

def _assignee_label(display_name: Optional[str], login: Optional[str]) -> str:
    return display_name or login or UNASSIGNED


@dataclass
class MetricResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None


def run_metric(func: Callable[..., Any], *args, **kwargs) -> MetricResult:
    """Run one routine and fold query failures into a MetricResult."""
    try:
        return MetricResult(ok=True, value=func(*args, **kwargs))
    except (DatabaseError, ValueError) as exc:
        logger.exception("Metric %s failed", getattr(func, "__name__", func))
        return MetricResult(ok=False, error=str(exc))

# ------------ Progress & distribution ------------

def project_progress(project_id: int) -> Dict[str, Any]:
    agg = _items(project_id).aggregate(
        total_items=Count("id"),
        completed_items=Count("id", filter=Q(status__in=COMPLETED_STATUSES)),
        in_progress_items=Count("id", filter=Q(status__in=IN_PROGRESS_STATUSES)),
        todo_items=Count("id", filter=Q(status__in=TODO_STATUSES)),
    )
    agg["progress_percentage"] = _percent(agg["completed_items"], agg["total_items"])
    return agg

def status_distribution(project_id: int) -> List[Dict[str, Any]]:
    rows = (_items(project_id)
            .values("status")
            .annotate(count=Count("id"))
            .order_by("-count", "status"))
    return [{"name": r["status"] or UNKNOWN_STATUS, "value": r["count"]} for r in rows]

# ------------ Velocity & burndown ------------

def team_velocity(project_id: int, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """
    Completed points/items per ISO week over the trailing 12 weeks.
    Keeps the 6 most recent non-empty weeks, oldest first.
    """
    since = _now(now) - dt.timedelta(weeks=VELOCITY_LOOKBACK_WEEKS)
    rows = (_completed(project_id)
            .filter(updated_at__gte=since)
            .annotate(week=TruncWeek("updated_at"))
            .values("week")
            .annotate(completed_points=Sum(_points()), completed_items=Count("id"))
            .order_by("-week"))[:VELOCITY_MAX_WEEKS]

    weekly = [{
        "week": r["week"].date().isoformat(),
        "completed_points": int(r["completed_points"] or 0),
        "completed_items": r["completed_items"],
    } for r in reversed(list(rows))]

    total = sum(w["completed_points"] for w in weekly)
    average = round_half_up(total / len(weekly)) if weekly else 0
    return {"weekly_data": weekly, "average_velocity": average}

def burndown(project_id: int, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """
    Remaining points over the trailing 28 days, starting from the full point mass.
    Only days with completions get an entry; ideal_remaining burns linearly.
    """
    now = _now(now)
    totals = _items(project_id).aggregate(total_points=Sum(_points(), default=0), total_items=Count("id"))
    total_points = int(totals["total_points"] or 0)

    start = now - dt.timedelta(days=BURNDOWN_DAYS)
    rows = (_completed(project_id)
            .filter(updated_at__gte=start)
            .annotate(day=TruncDate("updated_at"))
            .values("day")
            .annotate(points_completed=Sum(_points()))
            .order_by("day"))

    series = [{
        "date": start.date().isoformat(),
        "remaining_points": total_points,
        "ideal_remaining": total_points,
    }]
    remaining = total_points
    for elapsed, r in enumerate(rows, start=1):
        remaining -= int(r["points_completed"] or 0)
        ideal = max(0.0, total_points - total_points * elapsed / BURNDOWN_DAYS)
        series.append({
            "date": r["day"].isoformat(),
            "remaining_points": max(0, remaining),
            "ideal_remaining": round_half_up(ideal),
        })

    return {
        "total_points": total_points,
        "total_items": totals["total_items"],
        "burndown_data": series,
    }

# ------------ Workload ------------

def team_workload(project_id: int) -> List[Dict[str, Any]]:
    rows = (_items(project_id)
            .values("assignee_id", "assignee__display_name", "assignee__login")
            .annotate(
                total_items=Count("id"),
                completed_items=Count("id", filter=Q(status__in=COMPLETED_STATUSES)),
                in_progress_items=Count("id", filter=Q(status__in=IN_PROGRESS_STATUSES)),
                todo_items=Count("id", filter=Q(status__in=TODO_STATUSES)),
                total_points=Sum(_points()),
            )
            .order_by("-total_items", "assignee__login"))
    return [{
        "assignee": _assignee_label(r["assignee__display_name"], r["assignee__login"]),
        "total_items": r["total_items"],
        "completed_items": r["completed_items"],
        "in_progress_items": r["in_progress_items"],
        "todo_items": r["todo_items"],
        "total_points": int(r["total_points"] or 0),
    } for r in rows]

def enhanced_team_workload(project_id: int, now: Optional[dt.datetime] = None) -> List[Dict[str, Any]]:
    """
    Workload plus completion rate, in-progress ageing and a low/medium/high tag.

    Age of an in-progress item counts from its start date (falling back to the
    first local insert) and only includes items touched in the last 7 days;
    in-progress items untouched for longer are counted as stale instead.
    """
    now = _now(now)
    today = now.date()
    stale_before = now - dt.timedelta(days=STALE_AFTER_DAYS)

    rows = (_items(project_id)
            .values("assignee_id", "assignee__display_name", "assignee__login",
                    "status", "size_estimate", "start_date", "created_at", "updated_at")
            .order_by("assignee_id", "id"))

    members: Dict[Optional[int], Dict[str, Any]] = OrderedDict()
    for r in rows:
        m = members.get(r["assignee_id"])
        if m is None:
            m = members[r["assignee_id"]] = {
                "id": r["assignee_id"],
                "assignee": _assignee_label(r["assignee__display_name"], r["assignee__login"]),
                "github_username": r["assignee__login"],
                "display_name": r["assignee__display_name"],
                "total_items": 0, "completed_items": 0, "in_progress_items": 0, "todo_items": 0,
                "total_points": 0, "completed_points": 0,
                "stale_items": 0, "_ages": [],
            }
        points = r["size_estimate"] if r["size_estimate"] is not None else 1
        bucket = lifecycle_bucket(r["status"])

        m["total_items"] += 1
        m["total_points"] += points
        if bucket == "completed":
            m["completed_items"] += 1
            m["completed_points"] += points
        elif bucket == "todo":
            m["todo_items"] += 1
        elif bucket == "in_progress":
            m["in_progress_items"] += 1
            if r["updated_at"] < stale_before:
                m["stale_items"] += 1
            else:
                began = r["start_date"] or r["created_at"].date()
                m["_ages"].append(max(0, (today - began).days))

    out = []
    for m in members.values():
        ages = m.pop("_ages")
        avg_days = statistics.mean(ages) if ages else 0
        m["avg_in_progress_days"] = round(avg_days, 1) if ages else 0
        m["completion_rate"] = _percent(m["completed_items"], m["total_items"])
        # thresholds see the unrounded mean
        m["workload_risk"] = workload_risk(m["stale_items"], avg_days, m["in_progress_items"])
        out.append(m)
    out.sort(key=lambda m: m["total_items"], reverse=True)
    return out

# ------------ Milestones ------------

def milestone_timeline(project_id: int, now: Optional[dt.datetime] = None) -> List[Dict[str, Any]]:
    today = _now(now).date()
    base = _items(project_id).exclude(milestone__isnull=True).exclude(milestone="")

    groups = (base.values("milestone")
              .annotate(
                  total_items=Count("id"),
                  completed_items=Count("id", filter=Q(status__in=COMPLETED_STATUSES)),
                  earliest_start=Min("start_date"),
                  latest_end=Max("end_date"),
              )
              .order_by("milestone"))

    # completion duration: start date -> last update of a completed item
    durations: Dict[str, List[int]] = {}
    done = (base.filter(status__in=COMPLETED_STATUSES, start_date__isnull=False)
            .values_list("milestone", "start_date", "updated_at"))
    for name, start, updated in done:
        durations.setdefault(name, []).append((updated.date() - start).days)

    out = []
    for g in groups:
        pct = _percent(g["completed_items"], g["total_items"])
        spans = durations.get(g["milestone"])
        out.append({
            "name": g["milestone"],
            "total_items": g["total_items"],
            "completed_items": g["completed_items"],
            "completion_percentage": pct,
            "earliest_start": g["earliest_start"].isoformat() if g["earliest_start"] else None,
            "latest_end": g["latest_end"].isoformat() if g["latest_end"] else None,
            "avg_completion_days": round(statistics.mean(spans), 1) if spans else None,
            "status": milestone_status(g["completed_items"], g["total_items"], g["latest_end"], today),
        })
    out.sort(key=lambda m: (m["latest_end"] is None, m["latest_end"] or "", m["name"]))
    return out

# ------------ Risk ------------

def risk_factors(project_id: int, now: Optional[dt.datetime] = None) -> RiskFactors:
    now = _now(now)
    today = now.date()
    items = _items(project_id)

    weekly = (_completed(project_id)
              .filter(updated_at__gte=now - dt.timedelta(days=RISK_TREND_DAYS))
              .annotate(week=TruncWeek("updated_at"))
              .values("week")
              .annotate(count=Count("id"))
              .order_by("-week"))
    trend, declining = velocity_trend([w["count"] for w in weekly])

    blocked_q = Q()
    for marker in BLOCKED_MARKERS:
        blocked_q |= Q(status__icontains=marker)
    blocked = items.filter(blocked_q).aggregate(
        blocked_items=Count("id"),
        long_blocked_items=Count("id", filter=Q(updated_at__lt=now - dt.timedelta(days=LONG_BLOCKED_DAYS))),
    )

    overdue = (items.filter(end_date__lt=today)
               .exclude(status__in=COMPLETED_STATUSES)
               .aggregate(
                   overdue_items=Count("id"),
                   severely_overdue=Count("id", filter=Q(end_date__lt=today - dt.timedelta(days=SEVERELY_OVERDUE_DAYS))),
               ))

    return RiskFactors(
        velocity_trend=trend,
        velocity_declining=declining,
        blocked_items=blocked["blocked_items"],
        long_blocked_items=blocked["long_blocked_items"],
        overdue_items=overdue["overdue_items"],
        severely_overdue=overdue["severely_overdue"],
    )

def risk_analysis(project_id: int, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    return assess(risk_factors(project_id, now=now))

# ------------ Filtered ------------

def filtered_analytics(project_id: int, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    filters: any of start_date, end_date (dates, on updated_at), assignee (login),
    status, milestone. None/blank values are ignored.
    """
    data = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
    fs = AnalyticsFilter(data=data, queryset=_items(project_id))
    if not fs.is_valid():
        raise ValueError(f"Invalid filters: {fs.errors.as_json()}")
    agg = fs.qs.aggregate(
        total_items=Count("id"),
        completed_items=Count("id", filter=Q(status__in=COMPLETED_STATUSES)),
        avg_size=Avg("size_estimate"),
    )
    agg["avg_size"] = round(agg["avg_size"], 1) if agg["avg_size"] is not None else 0
    return agg

# ------------ Overview ------------

def project_overview(project_id: int) -> Dict[str, Any]:
    """Composite view; a slice whose routine fails is returned as None."""
    slices = (
        ("progress", project_progress),
        ("status_distribution", status_distribution),
        ("velocity", team_velocity),
        ("team_workload", team_workload),
        ("burndown", burndown),
    )
    out: Dict[str, Any] = {}
    for key, func in slices:
        result = run_metric(func, project_id)
        out[key] = result.value if result.ok else None
    return out
