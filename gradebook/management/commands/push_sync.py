from django.core.management.base import BaseCommand, CommandError

from gradebook.services.cloud import CloudSyncError, is_configured
from gradebook.tasks import push_to_cloud


class Command(BaseCommand):
    help = "Push every local record to the cloud backend now, or queue the push on Celery."

    def add_arguments(self, parser):
        parser.add_argument("--async", action="store_true", dest="run_async", help="Queue on Celery instead of running inline")
        parser.add_argument("--queue", dest="queue", default="gradebook", help="Celery queue (default: gradebook)")

    def handle(self, *args, **options):
        if not is_configured():
            raise CommandError("Cloud sync is not configured (SUPABASE_URL / SUPABASE_ANON_KEY).")

        if options["run_async"]:
            result = push_to_cloud.apply_async(queue=options["queue"])
            self.stdout.write(self.style.SUCCESS(f"Push queued (task {result.id})."))
            return

        try:
            uploaded = push_to_cloud.apply().get()
        except CloudSyncError as exc:
            raise CommandError(f"Push failed: {exc}")
        summary = ", ".join(f"{table}={count}" for table, count in uploaded.items()) or "nothing to upload"
        self.stdout.write(self.style.SUCCESS(f"Push done ({summary})."))
