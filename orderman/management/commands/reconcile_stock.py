"""
Management command to rebuild cached stock quantities from the ledger.

Usage:
    python manage.py reconcile_stock --tenant acme
    python manage.py reconcile_stock --tenant acme --dry-run
"""

from django.core.management.base import BaseCommand, CommandError

from orderman import orders
from orderman.models import CatalogItem


class Command(BaseCommand):
    """Reconcile stock command."""

    help = 'Compare cached stock quantities with the movement ledger and fix drift'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tenant',
            action='append',
            dest='tenants',
            help='Tenant to reconcile (repeatable). Default: every tenant with tracked items',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be corrected without writing',
        )

    def handle(self, *args, **options):
        tenants = options['tenants'] or list(
            CatalogItem.objects.tracked().order_by().values_list('tenant_id', flat=True).distinct()
        )
        if not tenants:
            raise CommandError('No tenant to reconcile')

        dry_run = options['dry_run']
        for tenant_id in tenants:
            result = orders.reconcile(tenant_id, dry_run=dry_run)

            for correction in result.corrections:
                self.stdout.write(
                    f'  item {correction.item_id}: {correction.cached} → {correction.computed} '
                    f'(diff: {correction.diff})'
                )

            verb = 'would be corrected' if dry_run else 'corrected'
            message = f'{tenant_id}: {result.checked} item(s) checked, {result.corrected} {verb}'
            if result.corrected and not dry_run:
                self.stdout.write(self.style.WARNING(message))
            else:
                self.stdout.write(self.style.SUCCESS(message))
