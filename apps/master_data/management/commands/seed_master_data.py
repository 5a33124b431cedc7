"""
Management command to seed lookup tables.

Creates the well-known invoice statuses. Safe to run repeatedly.
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.master_data.models import InvoiceStatus


class Command(BaseCommand):
    help = 'Seed well-known invoice statuses (Draft, Submitted, Paid)'

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = 0

        for name in InvoiceStatus.WELL_KNOWN:
            if InvoiceStatus.objects.filter(name=name).exists():
                self.stdout.write(f'  Exists: {name}')
                continue
            InvoiceStatus.objects.create(name=name)
            created_count += 1
            self.stdout.write(self.style.SUCCESS(f'  Created: {name}'))

        self.stdout.write(
            self.style.SUCCESS(f'\n✓ Seeded invoice statuses ({created_count} created)')
        )
