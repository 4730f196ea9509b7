"""
Management command to flag wholesale orders whose balance is past due
"""
from datetime import datetime

from django.core.management.base import BaseCommand
from django.utils import timezone
from storefront.wholesale.services import mark_overdue_balances


class Command(BaseCommand):
    help = 'Move wholesale orders whose balance due date has passed to balance_overdue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            type=str,
            help='Treat this date (YYYY-MM-DD) as today',
        )

    def handle(self, *args, **options):
        today = timezone.localdate()
        if options.get('date'):
            today = datetime.strptime(options['date'], '%Y-%m-%d').date()

        count = mark_overdue_balances(today)
        self.stdout.write(self.style.SUCCESS(f'Marked {count} wholesale order(s) as balance overdue'))
