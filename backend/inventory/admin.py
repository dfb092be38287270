from django.contrib import admin
from .models import InventoryItem, StockTransaction, Alert


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'quantity', 'unit_price', 'reorder_point', 'created_by', 'updated_at']
    list_filter = ['category', 'updated_at']
    search_fields = ['name', 'sku', 'description']
    ordering = ['-updated_at']
    # Quantity is owned by the stock ledger
    readonly_fields = ['quantity', 'created_at', 'updated_at']


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = ['item', 'transaction_type', 'quantity', 'total_value', 'created_by', 'date']
    list_filter = ['transaction_type', 'date']
    search_fields = ['item__name', 'notes']
    ordering = ['-date']
    readonly_fields = ['item', 'transaction_type', 'quantity', 'total_value', 'notes', 'created_by', 'date']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ['item', 'alert_type', 'priority', 'is_read', 'created_by', 'created_at']
    list_filter = ['alert_type', 'priority', 'is_read', 'created_at']
    search_fields = ['item__name', 'message']
    ordering = ['-created_at']
    readonly_fields = ['created_at']

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return self.readonly_fields + ['item', 'alert_type']
        return self.readonly_fields

    def formfield_for_choice_field(self, db_field, request, **kwargs):
        # Stock alerts come from the ledger; staff may only add notifications
        if db_field.name == 'alert_type':
            kwargs['choices'] = [c for c in Alert.TYPE_CHOICES if c[0] == Alert.NOTIFICATION]
        return super().formfield_for_choice_field(db_field, request, **kwargs)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.alert_type in Alert.RECONCILED_TYPES:
            return False
        return super().has_delete_permission(request, obj)

    def delete_queryset(self, request, queryset):
        queryset.exclude(alert_type__in=Alert.RECONCILED_TYPES).delete()
