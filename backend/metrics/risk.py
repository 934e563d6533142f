"""
Risk scoring heuristics.

Pure functions over already-aggregated factors, so they can be exercised without
touching the database. The aggregation side lives in metrics.analytics.
"""
from __future__ import annotations
import datetime as dt
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

# velocity trend
DECLINE_RATIO = 0.8
IMPROVE_RATIO = 1.2

TREND_DECLINING = "declining"
TREND_IMPROVING = "improving"
TREND_STABLE = "stable"
TREND_INSUFFICIENT = "insufficient_data"

# score weights
W_VELOCITY_DECLINING = 30
W_TREND_DECLINING = 20
W_BLOCKED = 5
W_LONG_BLOCKED = 15
W_OVERDUE = 10
W_SEVERELY_OVERDUE = 25
MAX_SCORE = 100

# milestone at_risk below this completion percentage
AT_RISK_PERCENT = 80

# level thresholds, checked top-down
LEVELS = ((70, "critical"), (40, "high"), (20, "medium"))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class RiskFactors:
    velocity_trend: str = TREND_INSUFFICIENT
    velocity_declining: bool = False
    blocked_items: int = 0
    long_blocked_items: int = 0
    overdue_items: int = 0
    severely_overdue: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def velocity_trend(weekly_counts: Sequence[int]) -> Tuple[str, bool]:
    """
    weekly_counts: completed-item counts per week, most recent first.
    Returns (trend, declining).
    """
    if len(weekly_counts) < 2:
        return TREND_INSUFFICIENT, False
    recent, previous = weekly_counts[0], weekly_counts[1]
    if recent < previous * DECLINE_RATIO:
        return TREND_DECLINING, True
    if recent > previous * IMPROVE_RATIO:
        return TREND_IMPROVING, False
    return TREND_STABLE, False


def risk_score(f: RiskFactors) -> int:
    score = 0
    if f.velocity_declining:
        score += W_VELOCITY_DECLINING
    # counted on top of the flag above
    if f.velocity_trend == TREND_DECLINING:
        score += W_TREND_DECLINING
    score += f.blocked_items * W_BLOCKED
    score += f.long_blocked_items * W_LONG_BLOCKED
    score += f.overdue_items * W_OVERDUE
    score += f.severely_overdue * W_SEVERELY_OVERDUE
    return min(score, MAX_SCORE)


def risk_level(score: int) -> str:
    for threshold, level in LEVELS:
        if score >= threshold:
            return level
    return "low"


def recommendations(f: RiskFactors) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    if f.velocity_declining:
        out.append({
            "type": "velocity",
            "priority": "high",
            "message": "Team velocity is declining. Review sprint scope and clear impediments.",
        })
    if f.long_blocked_items > 0:
        out.append({
            "type": "blockers",
            "priority": "critical",
            "message": f"{f.long_blocked_items} item(s) blocked for more than 3 days need escalation.",
        })
    if f.severely_overdue > 0:
        out.append({
            "type": "deadlines",
            "priority": "critical",
            "message": f"{f.severely_overdue} item(s) are more than a week overdue. Re-plan or re-scope them.",
        })
    if f.blocked_items > 0 and f.long_blocked_items == 0:
        out.append({
            "type": "blockers",
            "priority": "medium",
            "message": f"{f.blocked_items} item(s) are blocked or waiting. Unblock them before they age.",
        })
    return out


def assess(f: RiskFactors) -> Dict[str, Any]:
    score = risk_score(f)
    return {
        "risk_score": score,
        "risk_level": risk_level(score),
        "risk_factors": f.as_dict(),
        "recommendations": recommendations(f),
    }


# ----- per-assignee / per-milestone tags ----------------------------------------

def workload_risk(stale_items: int, avg_in_progress_days: float, in_progress_items: int) -> str:
    if stale_items > 2 or avg_in_progress_days > 10 or in_progress_items > 5:
        return "high"
    if stale_items > 0 or avg_in_progress_days > 5 or in_progress_items > 3:
        return "medium"
    return "low"


def milestone_status(completed_items: int, total_items: int, latest_end: Optional[dt.date], today: dt.date) -> str:
    """Decided on raw item counts, not the rounded percentage."""
    if total_items and completed_items >= total_items:
        return "completed"
    if latest_end is not None:
        if latest_end < today:
            return "overdue"
        if (latest_end - today).days <= 7 and 100 * completed_items < AT_RISK_PERCENT * total_items:
            return "at_risk"
    return "on_track"
