from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from gradebook.services.backup import BackupFormatError, import_data


class Command(BaseCommand):
    help = "Replace the whole gradebook with the content of a JSON backup. All or nothing."

    def add_arguments(self, parser):
        parser.add_argument("path", help="Backup file to import")
        parser.add_argument("--no-input", action="store_true", dest="no_input", help="Do not ask for confirmation")

    def handle(self, *args, **options):
        path = Path(options["path"])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")

        if not options["no_input"]:
            answer = input("This replaces ALL classes, students and results. Continue? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                self.stdout.write("Import cancelled.")
                return

        try:
            counts = import_data(path.read_bytes())
        except BackupFormatError as exc:
            raise CommandError(str(exc))

        summary = ", ".join(f"{key}={count}" for key, count in counts.items())
        self.stdout.write(self.style.SUCCESS(f"Backup imported ({summary})."))
