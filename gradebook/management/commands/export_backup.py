from django.core.management.base import BaseCommand

from gradebook.services.backup import export_json
from gradebook.services.storage import backup_filename, store_backup


class Command(BaseCommand):
    help = "Export the whole gradebook as a JSON backup (local media dir or S3, see BACKUP_STORAGE)."

    def add_arguments(self, parser):
        parser.add_argument("--print", action="store_true", dest="print_only", help="Print the backup instead of storing it")

    def handle(self, *args, **options):
        payload = export_json()
        if options["print_only"]:
            self.stdout.write(payload)
            return
        url, location = store_backup(backup_filename(), payload.encode("utf-8"))
        self.stdout.write(self.style.SUCCESS(f"Backup written to {location} ({url})"))
