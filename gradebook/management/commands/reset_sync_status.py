from django.core.management.base import BaseCommand

from gradebook.services.sync_status import reset_status


class Command(BaseCommand):
    help = "Reset the cloud sync status kept in Redis (back to idle, debounce slot cleared)."

    def handle(self, *args, **options):
        reset_status()
        self.stdout.write(self.style.SUCCESS("Sync status reset."))
