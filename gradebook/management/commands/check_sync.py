from django.core.management.base import BaseCommand

from gradebook.services.cloud import check_connection


class Command(BaseCommand):
    help = "Check the cloud backend and list the sync tables with their row counts."

    def handle(self, *args, **options):
        result = check_connection()
        if not result["configured"]:
            self.stdout.write(self.style.WARNING("Cloud sync is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)."))
            return
        if not result["connected"]:
            self.stdout.write(self.style.ERROR(f"Not connected: {result['error']}"))
            return

        self.stdout.write(self.style.SUCCESS("Connected."))
        for table in result["tables"]:
            if table["exists"]:
                self.stdout.write(f"  {table['name']}: {table['row_count']} rows")
            else:
                self.stdout.write(f"  {table['name']}: missing ({table['error']})")
