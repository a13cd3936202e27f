# apps/sync/management/commands/import_local_state.py
import json

from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import User
from apps.sync.importers import import_local_state


class Command(BaseCommand):
    help = 'Import a browser local-storage export (JSON object of key -> stored value)'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Path to the exported JSON file')
        parser.add_argument('--user', help='Email of the staff account to record as importer')

    def handle(self, *args, **options):
        try:
            with open(options['path'], encoding='utf-8') as fh:
                state = json.load(fh)
        except OSError as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")
        except ValueError as e:
            raise CommandError(f"{options['path']} is not valid JSON: {e}")

        if not isinstance(state, dict):
            raise CommandError('Expected a JSON object mapping local-storage keys to values')

        user = None
        if options['user']:
            user = User.objects.filter(email__iexact=options['user']).first()
            if user is None:
                raise CommandError(f"No user with email {options['user']}")

        report = import_local_state(state, user=user).as_dict()

        for message in report['messages']:
            self.stdout.write(self.style.WARNING(message))
        for key, count in report['imported'].items():
            self.stdout.write(self.style.SUCCESS(f'{key}: {count} imported'))
        skipped = sum(report['skipped'].values())
        self.stdout.write(f'{skipped} record(s) skipped')
