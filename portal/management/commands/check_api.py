"""Management command to verify that the testimonies API is reachable.

The command requests every public reference list the submission wizard
depends on and prints how many records each returned.  It exits with a
non-zero status as soon as one request fails, which makes it suitable for
deployment health checks.

Usage::

    python manage.py check_api
    python manage.py check_api --base-url https://api.example.org
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from portal.services.api_client import ApiClient, ApiFailure
from portal.services.resources import flatten_zones


class Command(BaseCommand):
    help = "Check that the testimonies API answers the public reference endpoints."

    def add_arguments(self, parser):
        parser.add_argument(
            '--base-url',
            default=None,
            help='API base URL (defaults to the TESTIMONY_API_BASE_URL setting)',
        )

    def handle(self, *args, **options):
        client = ApiClient(options['base_url'])
        self.stdout.write(self.style.NOTICE(f'Checking {client.base_url}...'))
        checks = [
            ('networks', client.get_networks),
            ('external categories', client.get_external_categories),
            ('testimony categories', client.get_testimony_categories),
            ('zones', lambda: flatten_zones(client.get_zones())),
            ('countries', client.get_countries),
        ]
        for label, fetch in checks:
            try:
                items = fetch()
            except ApiFailure as exc:
                raise CommandError(f'Failed to load {label}: {exc.message}') from exc
            self.stdout.write(f'{label}: {len(items)}')
        self.stdout.write(self.style.SUCCESS('Testimonies API is reachable.'))
