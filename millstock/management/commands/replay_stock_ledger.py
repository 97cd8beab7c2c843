"""
Management command to rebuild balances from the stock ledger.

Usage:
    python manage.py replay_stock_ledger
    python manage.py replay_stock_ledger --item 42
    python manage.py replay_stock_ledger --fix
"""

from django.core.management.base import BaseCommand, CommandError

from millstock.models import Item
from millstock.services.balances import StockLedger


class Command(BaseCommand):
    """Replay stock ledger command."""

    help = 'Compares every cached balance with the sum of its ledger entries'

    def add_arguments(self, parser):
        parser.add_argument(
            '--item',
            type=int,
            help='Only check this item id'
        )
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Overwrite cached quantities with the ledger sums'
        )
        parser.add_argument(
            '--database',
            default='default',
            help='Database alias'
        )

    def handle(self, *args, **options):
        using = options['database']
        item = None
        if options['item'] is not None:
            item = Item.objects.using(using).filter(pk=options['item']).first()
            if item is None:
                raise CommandError(f"Item {options['item']} does not exist")

        found = StockLedger(using).replay(item=item, fix=options['fix'])

        for d in found:
            location = f"item={d.item_id} warehouse={d.warehouse_id} bin={d.bin_id or '-'}"
            self.stdout.write(f'{location}: cached {d.cached}, ledger {d.ledger}')

        if not found:
            self.stdout.write(self.style.SUCCESS('All balances match the ledger'))
        elif options['fix']:
            self.stdout.write(self.style.SUCCESS(f'{len(found)} balance(s) corrected'))
        else:
            self.stdout.write(self.style.WARNING(f'{len(found)} discrepancy(ies) found; rerun with --fix'))
