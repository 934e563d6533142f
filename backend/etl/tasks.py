# etl/tasks.py
import logging

from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from metrics.models import Project
from etl.utils import sync_run, set_phase
from etl.registry import get_connector, get_normalizer

logger = logging.getLogger(__name__)

SYNC_SOFT_TIME_LIMIT = int(getattr(settings, "SYNC_SOFT_TIME_LIMIT", 600))

@shared_task(queue="default", soft_time_limit=SYNC_SOFT_TIME_LIMIT)
def sync_project(project_id: int) -> dict:
    """
    Full sync of one project: fetch every board item, then normalize + upsert
    them one by one inside a single transaction.

    pending -> fetching -> processing -> success | error

    A fetch failure rolls back the run and re-raises; the SyncLog keeps the
    error. A failing item is logged, counted and skipped. The returned count
    is the number of items that did not fail.
    """
    project = Project.objects.get(pk=project_id)
    logger.info("Sync started for project %s (%s/%s#%s)",
                project.pk, project.github_owner, project.github_repo, project.board_number)

    with sync_run(project, meta={"phase": "pending"}) as log:
        with transaction.atomic():
            # serializes concurrent syncs of the same project; the in_progress
            # log row above is already committed, so a waiting run is visible
            Project.objects.select_for_update().filter(pk=project.pk).first()

            set_phase(log, "fetching")
            try:
                items = get_connector(project).fetch_project_items()
            except Exception:
                logger.exception("Fetch failed for project %s; sync aborted", project.pk)
                raise

            set_phase(log, "processing")
            normalizer = get_normalizer(project)
            synced = failed = 0
            for item in items:
                try:
                    # savepoint: a DB error here must not poison the run's transaction
                    with transaction.atomic():
                        normalizer.process(item)
                    synced += 1
                except Exception:
                    failed += 1
                    logger.exception("Failed to process item %s of project %s", (item or {}).get("id"), project.pk)

            Project.objects.filter(pk=project.pk).update(last_synced=timezone.now())

        if failed:
            logger.warning("Sync for project %s completed with %s failed item(s) out of %s", project.pk, failed, len(items))
        log.items_synced = synced
        log.items_failed = failed
        log.meta = {**log.meta, "fetched": len(items)}
        set_phase(log, "done")

    logger.info("Sync finished for project %s: %s synced, %s failed", project.pk, synced, failed)
    return {"project": project_id, "items_synced": synced}

@shared_task(queue="default")
def sync_all_projects() -> int:
    """
    Fan-out over all projects; enqueue per-project syncs.
    """
    ids = list(Project.objects.values_list("id", flat=True))
    for pid in ids:
        sync_project.delay(pid)
    return len(ids)
