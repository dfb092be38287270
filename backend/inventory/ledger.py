"""
Stock ledger

The ledger is the only code path that changes ``InventoryItem.quantity``.
Every mutation runs in one database transaction that:

1. locks the item row (``select_for_update``) scoped to the acting user,
2. applies a guarded ``F()`` update to the quantity,
3. appends a ``StockTransaction``,
4. reconciles the item's stock alerts.

Any exception raised inside the block rolls all of it back, so the item,
its transaction history and its alerts are never observed half-written.
The invariant kept by these operations is::

    item.quantity == sum(stock-in quantities) - sum(stock-out quantities)
"""
import logging
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F, Q, RestrictedError, Sum
from django.utils import timezone

from backend.core.cache_utils import invalidate_dashboard_cache
from backend.core.exceptions import Conflict, InsufficientStock, InvalidInput, ItemNotFound
from .models import Alert, InventoryItem, StockTransaction

logger = logging.getLogger(__name__)

# Fields a general-purpose update may touch; quantity is never one of them
EDITABLE_FIELDS = ('name', 'description', 'category', 'unit_price', 'reorder_point')
CREATE_FIELDS = ('name', 'description', 'category', 'sku', 'location', 'unit_price', 'reorder_point')

LedgerDiscrepancy = namedtuple('LedgerDiscrepancy', ['item_id', 'quantity', 'expected', 'stock_in', 'stock_out'])


def compute_total_value(quantity, unit_price):
    """Value of a stock movement, rounded to cents"""
    value = Decimal(quantity) * Decimal(str(unit_price or 0))
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def validate_quantity(quantity):
    """Movement quantities must be positive integers"""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInput('Invalid quantity: must be a positive whole number')
    return quantity


def reconcile_alerts(item, user, using=DEFAULT_DB_ALIAS):
    """
    Bring the item's stock alerts in line with its quantity.

    - quantity <= reorder point: exactly one low_stock alert
    - quantity > reorder point: no low_stock alert
    - quantity == 0: exactly one out_of_stock alert, removed once stock returns

    Must run inside the transaction that changed the quantity.
    """
    alerts = Alert.objects.using(using)

    if item.quantity <= item.reorder_point:
        _, created = alerts.get_or_create(
            item=item,
            alert_type=Alert.LOW_STOCK,
            defaults={
                'message': f"Low stock alert: {item.name} is at or below reorder point ({item.quantity} remaining)",
                'priority': 'medium',
                'created_by': user,
            }
        )
        if created:
            logger.info(f"Low stock alert raised for item {item.pk} ({item.quantity} <= {item.reorder_point})")
    else:
        removed, _ = alerts.filter(item=item, alert_type=Alert.LOW_STOCK).delete()
        if removed:
            logger.info(f"Low stock alert cleared for item {item.pk}")

    if item.quantity == 0:
        alerts.get_or_create(
            item=item,
            alert_type=Alert.OUT_OF_STOCK,
            defaults={
                'message': f"Warning: {item.name} is out of stock. Consider restocking soon.",
                'priority': 'high',
                'created_by': user,
            }
        )
    else:
        alerts.filter(item=item, alert_type=Alert.OUT_OF_STOCK).delete()


def ledger_totals(item, using=DEFAULT_DB_ALIAS):
    """Return (stock_in, stock_out) summed over the item's transactions"""
    totals = StockTransaction.objects.using(using).filter(item=item).aggregate(
        stock_in=Sum('quantity', filter=Q(transaction_type=StockTransaction.STOCK_IN)),
        stock_out=Sum('quantity', filter=Q(transaction_type=StockTransaction.STOCK_OUT)),
    )
    return totals['stock_in'] or 0, totals['stock_out'] or 0


def verify_item(item, using=DEFAULT_DB_ALIAS):
    """Compare stored quantity with transaction history; None when they agree"""
    stock_in, stock_out = ledger_totals(item, using=using)
    expected = stock_in - stock_out
    if item.quantity == expected:
        return None
    return LedgerDiscrepancy(item.pk, item.quantity, expected, stock_in, stock_out)


class StockLedger:
    """
    Ledger operations for one acting user.

    Args:
        user: the authenticated owner; items of other users behave as missing
        using: database alias the ledger reads and writes through
    """

    def __init__(self, user, using=DEFAULT_DB_ALIAS):
        self.user = user
        self.using = using

    def _items(self):
        return InventoryItem.objects.using(self.using).filter(created_by=self.user)

    def _atomic(self):
        return transaction.atomic(using=self.using)

    def _after_commit(self):
        user_id = self.user.pk
        transaction.on_commit(lambda: invalidate_dashboard_cache(user_id), using=self.using)

    def _lock_item(self, item_id):
        try:
            return self._items().select_for_update().get(pk=item_id)
        except (InventoryItem.DoesNotExist, ValueError, TypeError):
            raise ItemNotFound()

    def _record(self, item, transaction_type, quantity, notes):
        return StockTransaction.objects.using(self.using).create(
            item=item,
            quantity=quantity,
            transaction_type=transaction_type,
            notes=notes or '',
            total_value=compute_total_value(quantity, item.unit_price),
            created_by=self.user,
        )

    def get_item(self, item_id):
        try:
            return self._items().get(pk=item_id)
        except (InventoryItem.DoesNotExist, ValueError, TypeError):
            raise ItemNotFound()

    def create_item(self, data):
        """Create an item; a positive opening quantity is booked as an initial stock-in"""
        quantity = data.get('quantity') or 0
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidInput('Invalid quantity: must be zero or a positive whole number')
        fields = {key: data[key] for key in CREATE_FIELDS if key in data}
        if not fields.get('name') or not fields.get('category'):
            raise InvalidInput('Name and category are required')

        with self._atomic():
            item = InventoryItem(created_by=self.user, quantity=quantity, **fields)
            item.save(using=self.using)
            opening = None
            if quantity > 0:
                opening = self._record(item, StockTransaction.STOCK_IN, quantity, 'Initial stock')
            reconcile_alerts(item, self.user, self.using)
            self._after_commit()

        logger.info(f"Item {item.pk} created by user {self.user.pk} with opening stock {quantity}")
        return item, opening

    def stock_in(self, item_id, quantity, notes=''):
        validate_quantity(quantity)

        with self._atomic():
            item = self._lock_item(item_id)
            self._items().filter(pk=item.pk).update(
                quantity=F('quantity') + quantity,
                updated_at=timezone.now()
            )
            item.refresh_from_db(using=self.using)
            record = self._record(item, StockTransaction.STOCK_IN, quantity, notes)
            reconcile_alerts(item, self.user, self.using)
            self._after_commit()

        logger.info(f"Stock in: item {item.pk} +{quantity} -> {item.quantity}")
        return item, record

    def stock_out(self, item_id, quantity, notes=''):
        """Remove stock; requests larger than the current quantity are rejected"""
        validate_quantity(quantity)

        with self._atomic():
            item = self._lock_item(item_id)
            if quantity > item.quantity:
                logger.warning(f"Stock out rejected: item {item.pk} requested {quantity}, available {item.quantity}")
                raise InsufficientStock(
                    f"Insufficient stock for {item.name}: requested {quantity}, available {item.quantity}"
                )

            # Guarded decrement: matches no row if another writer got there first
            updated = self._items().filter(pk=item.pk, quantity__gte=quantity).update(
                quantity=F('quantity') - quantity,
                updated_at=timezone.now()
            )
            item.refresh_from_db(using=self.using)
            if not updated:
                logger.warning(f"Stock out rejected: item {item.pk} changed concurrently ({item.quantity} available)")
                raise InsufficientStock(
                    f"Insufficient stock for {item.name}: requested {quantity}, available {item.quantity}"
                )

            record = self._record(item, StockTransaction.STOCK_OUT, quantity, notes)
            reconcile_alerts(item, self.user, self.using)
            self._after_commit()

        logger.info(f"Stock out: item {item.pk} -{quantity} -> {item.quantity}")
        return item, record

    def update_item(self, item_id, data):
        """Update descriptive fields; returns (item, changes)"""
        invalid = sorted(set(data) - set(EDITABLE_FIELDS))
        if invalid:
            raise InvalidInput(f"Invalid updates: {', '.join(invalid)}")

        with self._atomic():
            item = self._lock_item(item_id)
            changes = {}
            for field, value in data.items():
                old_value = getattr(item, field)
                if old_value != value:
                    changes[field] = {'old': str(old_value), 'new': str(value)}
                    setattr(item, field, value)
            item.save(using=self.using, update_fields=list(data) + ['updated_at'])
            reconcile_alerts(item, self.user, self.using)
            self._after_commit()

        return item, changes

    def delete_item(self, item_id):
        """Delete an item that has no transaction history, together with its alerts"""
        with self._atomic():
            item = self._lock_item(item_id)
            if StockTransaction.objects.using(self.using).filter(item=item).exists():
                logger.warning(f"Delete rejected: item {item.pk} has recorded transactions")
                raise Conflict('Inventory item has recorded transactions and cannot be deleted')
            try:
                item.delete(using=self.using)
            except RestrictedError:
                raise Conflict('Inventory item has recorded transactions and cannot be deleted')
            self._after_commit()

        logger.info(f"Item {item_id} deleted by user {self.user.pk}")
