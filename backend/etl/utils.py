import traceback as _tb
from contextlib import contextmanager
from typing import Optional, Dict, Any

from django.db import transaction
from metrics.models import Project
from .models import SyncLog, SyncStatus

@contextmanager
def sync_run(project: Project, sync_type: str = "full", meta: Optional[Dict[str, Any]] = None):
    """
    Usage:
      with sync_run(project) as log:
          with transaction.atomic():
              ... fetch + upsert
          log.items_synced = synced

    The log row is committed before the body runs, so marking it failed
    survives a rollback of the body's own transaction.
    """
    with transaction.atomic():
        log = SyncLog.objects.create(
            project=project,
            sync_type=sync_type,
            status=SyncStatus.IN_PROGRESS,
            meta=meta or {},
        )
    try:
        yield log
    except Exception as exc:
        log.mark_failed(message=str(exc), traceback_text=_tb.format_exc())
        raise
    else:
        log.mark_success()

def set_phase(log: SyncLog, phase: str):
    """Record the run phase in memory; persisted with the final status."""
    log.meta = {**(log.meta or {}), "phase": phase}
