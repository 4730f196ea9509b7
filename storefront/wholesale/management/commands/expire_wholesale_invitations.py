"""
Management command to expire stale wholesale invitations
"""
from django.core.management.base import BaseCommand
from django.utils import timezone
from storefront.wholesale.services import expire_invitations


class Command(BaseCommand):
    help = 'Mark pending wholesale invitations past their expiry date as expired'

    def handle(self, *args, **options):
        count = expire_invitations(timezone.now())
        self.stdout.write(self.style.SUCCESS(f'Expired {count} wholesale invitation(s)'))
