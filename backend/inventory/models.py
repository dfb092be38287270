from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class InventoryItem(models.Model):
    """Stock-keeping item owned by a single user"""
    STATUS_IN_STOCK = 'in_stock'
    STATUS_LOW_STOCK = 'low_stock'
    STATUS_OUT_OF_STOCK = 'out_of_stock'

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100)
    sku = models.CharField(max_length=100, blank=True)
    location = models.CharField(max_length=255, blank=True)
    # Mutated only through StockLedger
    quantity = models.PositiveIntegerField(default=0)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                     validators=[MinValueValidator(Decimal('0.00'))])
    reorder_point = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='inventory_items')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def status(self):
        if self.quantity == 0:
            return self.STATUS_OUT_OF_STOCK
        if self.quantity <= self.reorder_point:
            return self.STATUS_LOW_STOCK
        return self.STATUS_IN_STOCK

    @property
    def is_low_stock(self):
        return self.quantity <= self.reorder_point

    class Meta:
        db_table = 'inventory_items'
        ordering = ['-updated_at']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=0), name='chk_item_quantity_non_negative'),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name='chk_item_unit_price_non_negative'),
        ]
        indexes = [
            models.Index(fields=['created_by', 'category'], name='idx_item_owner_category'),
            models.Index(fields=['created_by', '-updated_at'], name='idx_item_owner_updated'),
        ]


class StockTransaction(models.Model):
    """Append-only stock movement recorded against an item"""
    STOCK_IN = 'stock-in'
    STOCK_OUT = 'stock-out'
    TYPE_CHOICES = [
        (STOCK_IN, 'Stock In'),
        (STOCK_OUT, 'Stock Out'),
    ]

    item = models.ForeignKey(InventoryItem, on_delete=models.RESTRICT, related_name='transactions')
    quantity = models.PositiveIntegerField()
    transaction_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    date = models.DateTimeField(auto_now_add=True)
    notes = models.TextField(blank=True)
    total_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='stock_transactions')

    def __str__(self):
        return f"{self.transaction_type} {self.quantity} x {self.item_id}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValueError('Stock transactions are append-only and cannot be modified')
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'transactions'
        ordering = ['-date', '-id']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='chk_transaction_quantity_positive'),
        ]
        indexes = [
            models.Index(fields=['item', 'transaction_type'], name='idx_txn_item_type'),
            models.Index(fields=['created_by', '-date'], name='idx_txn_owner_date'),
        ]


class Alert(models.Model):
    """
    Stock alerts and notifications for an item.

    low_stock and out_of_stock alerts are owned by the stock ledger, which
    creates and clears them. notification alerts are free-form messages added
    by staff through the admin site; they are the only kind users may dismiss.
    """
    LOW_STOCK = 'low_stock'
    OUT_OF_STOCK = 'out_of_stock'
    NOTIFICATION = 'notification'
    TYPE_CHOICES = [
        (LOW_STOCK, 'Low Stock'),
        (OUT_OF_STOCK, 'Out of Stock'),
        (NOTIFICATION, 'Notification'),
    ]
    # Kept in sync with item quantity by the ledger
    RECONCILED_TYPES = (LOW_STOCK, OUT_OF_STOCK)

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='alerts')
    alert_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    message = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    is_read = models.BooleanField(default=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='alerts')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.alert_type}: {self.message}"

    class Meta:
        db_table = 'alerts'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['item', 'alert_type'],
                condition=Q(alert_type__in=['low_stock', 'out_of_stock']),
                name='uniq_item_stock_alert',
            ),
        ]
