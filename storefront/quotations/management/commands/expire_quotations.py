"""
Management command to expire quotations past their validity date
"""
from django.core.management.base import BaseCommand
from storefront.quotations.services import expire_quotations


class Command(BaseCommand):
    help = 'Mark open trade quotations whose valid_until date has passed as expired'

    def handle(self, *args, **options):
        count = expire_quotations()
        self.stdout.write(self.style.SUCCESS(f'Expired {count} quotation(s)'))
