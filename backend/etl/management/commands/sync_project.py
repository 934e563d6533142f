from django.core.management.base import BaseCommand, CommandError
from etl.connectors.github import ProjectBoardError
from etl.tasks import sync_project, sync_all_projects
from metrics.models import Project

class Command(BaseCommand):
    help = "Sync one project board (or enqueue all of them with --all)"

    def add_arguments(self, parser):
        parser.add_argument("project_id", nargs="?", type=int)
        parser.add_argument("--all", action="store_true", help="Enqueue a sync for every project")

    def handle(self, *args, **options):
        if options["all"]:
            count = sync_all_projects()
            self.stdout.write(self.style.SUCCESS(f"Enqueued sync for {count} project(s)"))
            return
        pid = options["project_id"]
        if pid is None:
            raise CommandError("project_id is required unless --all is given")
        if not Project.objects.filter(pk=pid).exists():
            raise CommandError(f"Project {pid} does not exist")
        try:
            result = sync_project(pid)
        except ProjectBoardError as e:
            raise CommandError(f"Sync failed: {e}") from e
        self.stdout.write(self.style.SUCCESS(f"Synced {result['items_synced']} item(s) for project {pid}"))
