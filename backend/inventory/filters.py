import django_filters
from django.db.models import F, Q

from backend.core.exceptions import InvalidInput
from .models import InventoryItem, StockTransaction, Alert


def filtered_queryset(filterset):
    """Return the filtered queryset, rejecting malformed query parameters"""
    if not filterset.is_valid():
        field, messages = next(iter(filterset.errors.items()))
        raise InvalidInput(f"{field}: {messages[0]}")
    return filterset.qs


class InventoryItemFilter(django_filters.FilterSet):
    """Filter for the item list"""
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(
        method='filter_status',
        choices=[
            (InventoryItem.STATUS_IN_STOCK, 'In Stock'),
            (InventoryItem.STATUS_LOW_STOCK, 'Low Stock'),
            (InventoryItem.STATUS_OUT_OF_STOCK, 'Out of Stock'),
        ]
    )

    class Meta:
        model = InventoryItem
        fields = ['category', 'search', 'status']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name, description, category and SKU"""
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(description__icontains=value) |
            Q(category__icontains=value) |
            Q(sku__icontains=value)
        )

    def filter_status(self, queryset, name, value):
        if value == InventoryItem.STATUS_OUT_OF_STOCK:
            return queryset.filter(quantity=0)
        if value == InventoryItem.STATUS_LOW_STOCK:
            return queryset.filter(quantity__gt=0, quantity__lte=F('reorder_point'))
        if value == InventoryItem.STATUS_IN_STOCK:
            return queryset.filter(quantity__gt=F('reorder_point'))
        return queryset


class StockTransactionFilter(django_filters.FilterSet):
    """Filter for transaction history; date bounds are inclusive whole days"""
    item = django_filters.NumberFilter(field_name='item_id')
    type = django_filters.ChoiceFilter(field_name='transaction_type', choices=StockTransaction.TYPE_CHOICES)
    transactionType = django_filters.ChoiceFilter(field_name='transaction_type', choices=StockTransaction.TYPE_CHOICES)
    startDate = django_filters.DateFilter(field_name='date', lookup_expr='date__gte')
    endDate = django_filters.DateFilter(field_name='date', lookup_expr='date__lte')
    category = django_filters.CharFilter(field_name='item__category', lookup_expr='iexact')

    class Meta:
        model = StockTransaction
        fields = ['item', 'type', 'transactionType', 'startDate', 'endDate', 'category']


class AlertFilter(django_filters.FilterSet):
    type = django_filters.ChoiceFilter(field_name='alert_type', choices=Alert.TYPE_CHOICES)
    item = django_filters.NumberFilter(field_name='item_id')
    unread = django_filters.BooleanFilter(method='filter_unread')

    class Meta:
        model = Alert
        fields = ['type', 'item', 'unread']

    def filter_unread(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(is_read=not value)
