"""Management command to delete abandoned submission wizard uploads.

Files uploaded on the testimony step are parked until the visitor submits
or restarts the wizard.  Visitors who simply leave never trigger either,
so this command is meant to run periodically (e.g. from cron)::

    python manage.py purge_pending_uploads --hours 24
"""

from __future__ import annotations

from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError

from portal.services.pending_uploads import purge_stale_uploads


class Command(BaseCommand):
    help = "Delete parked wizard uploads older than the given number of hours."

    def add_arguments(self, parser):
        parser.add_argument(
            '--hours',
            type=int,
            default=24,
            help='Minimum age in hours of the uploads to delete (default: 24)',
        )

    def handle(self, *args, **options):
        hours = options['hours']
        if hours < 1:
            raise CommandError('--hours must be at least 1')
        self.stdout.write(self.style.NOTICE(f'Purging parked uploads older than {hours} hours...'))
        removed = purge_stale_uploads(timedelta(hours=hours))
        self.stdout.write(self.style.SUCCESS(f'Removed {removed} parked upload(s).'))
