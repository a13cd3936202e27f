# apps/queues/management/commands/expire_called_tokens.py
from django.core.management.base import BaseCommand

from apps.queues.services import expire_called_tokens, call_timeout_seconds


class Command(BaseCommand):
    help = 'Complete queue tokens that have been Calling longer than the call timeout'

    def add_arguments(self, parser):
        parser.add_argument(
            '--timeout',
            type=int,
            default=None,
            help='Override QUEUE_CALL_TIMEOUT_SECONDS'
        )

    def handle(self, *args, **options):
        timeout = options['timeout'] if options['timeout'] is not None else call_timeout_seconds()
        if timeout <= 0:
            self.stdout.write(self.style.WARNING('Call timeout is disabled; nothing to do'))
            return

        completed = expire_called_tokens(timeout_seconds=timeout)
        self.stdout.write(self.style.SUCCESS(f'Completed {completed} timed-out token(s)'))
