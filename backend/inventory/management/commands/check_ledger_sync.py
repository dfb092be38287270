"""
Django management command to check that item quantities reconcile with their
transaction history and that stock alerts match the reorder policy
"""
from django.core.management.base import BaseCommand, CommandError

from backend.inventory.ledger import ledger_totals
from backend.inventory.models import InventoryItem, Alert


class Command(BaseCommand):
    help = 'Check item quantities against the stock ledger and alert state'

    def add_arguments(self, parser):
        parser.add_argument(
            '--item-id',
            type=int,
            help='Check specific item ID only',
        )
        parser.add_argument(
            '--show-all',
            action='store_true',
            help='Show all items, not just discrepancies',
        )
        parser.add_argument(
            '--fail-on-discrepancy',
            action='store_true',
            help='Exit with an error when any discrepancy is found',
        )

    def handle(self, *args, **options):
        item_id = options.get('item_id')
        show_all = options.get('show_all', False)

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("STOCK LEDGER SYNCHRONIZATION ANALYSIS"))
        self.stdout.write("=" * 80)

        items = InventoryItem.objects.all().order_by('id')
        if item_id:
            items = items.filter(id=item_id)

        self.stdout.write(f"Total Items: {items.count()}")
        self.stdout.write("")

        quantity_issues = []
        alert_issues = []

        for item in items:
            stock_in, stock_out = ledger_totals(item)
            expected = stock_in - stock_out
            difference = item.quantity - expected

            alert_types = set(Alert.objects.filter(item=item).values_list('alert_type', flat=True))
            problems = []
            if item.quantity <= item.reorder_point and Alert.LOW_STOCK not in alert_types:
                problems.append('missing low_stock alert')
            if item.quantity > item.reorder_point and Alert.LOW_STOCK in alert_types:
                problems.append('stale low_stock alert')
            if item.quantity == 0 and Alert.OUT_OF_STOCK not in alert_types:
                problems.append('missing out_of_stock alert')
            if item.quantity > 0 and Alert.OUT_OF_STOCK in alert_types:
                problems.append('stale out_of_stock alert')

            if difference:
                quantity_issues.append((item, expected, difference))
            if problems:
                alert_issues.append((item, problems))

            if show_all or difference or problems:
                self.stdout.write(f"Item: {item.name} (ID: {item.id})")
                self.stdout.write(f"  Quantity: {item.quantity}  Reorder Point: {item.reorder_point}")
                self.stdout.write(f"  Ledger: +{stock_in} / -{stock_out} = {expected}")
                if difference:
                    self.stdout.write(self.style.WARNING(f"  Quantity differs from ledger by {difference:+d}"))
                for problem in problems:
                    self.stdout.write(self.style.WARNING(f"  Alert state: {problem}"))
                if not difference and not problems:
                    self.stdout.write(self.style.SUCCESS("  In sync"))
                self.stdout.write("")

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("DISCREPANCIES SUMMARY"))
        self.stdout.write("=" * 80)
        self.stdout.write(f"Items with quantity mismatch: {len(quantity_issues)}")
        self.stdout.write(f"Items with alert mismatch: {len(alert_issues)}")

        if not quantity_issues and not alert_issues:
            self.stdout.write(self.style.SUCCESS("No discrepancies found!"))
        elif options.get('fail_on_discrepancy'):
            raise CommandError(
                f"{len(quantity_issues)} quantity and {len(alert_issues)} alert discrepancies found"
            )
