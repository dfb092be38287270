from decimal import Decimal

from rest_framework import serializers

from .models import InventoryItem, StockTransaction, Alert


class InventoryItemSerializer(serializers.ModelSerializer):
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=12, decimal_places=2, read_only=True)
    reorderPoint = serializers.IntegerField(source='reorder_point', read_only=True)
    status = serializers.CharField(read_only=True)
    createdBy = serializers.IntegerField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = InventoryItem
        fields = ['id', 'name', 'description', 'category', 'sku', 'location', 'quantity',
                  'unitPrice', 'reorderPoint', 'status', 'createdBy', 'createdAt', 'updatedAt']
        read_only_fields = fields


class InventoryItemCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    category = serializers.CharField(max_length=100)
    sku = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    quantity = serializers.IntegerField(min_value=0, required=False, default=0)
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=12, decimal_places=2,
                                         min_value=Decimal('0.00'), required=False, default=Decimal('0.00'))
    reorderPoint = serializers.IntegerField(source='reorder_point', min_value=0, required=False, default=0)


class InventoryItemUpdateSerializer(serializers.Serializer):
    """Restricted update: quantity changes only through stock-in/stock-out"""
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(max_length=100, required=False)
    unitPrice = serializers.DecimalField(source='unit_price', max_digits=12, decimal_places=2,
                                         min_value=Decimal('0.00'), required=False)
    reorderPoint = serializers.IntegerField(source='reorder_point', min_value=0, required=False)

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(f"Invalid updates: {', '.join(unknown)}")
        return attrs


class StockMovementSerializer(serializers.Serializer):
    """Body of stock-in / stock-out requests"""
    itemId = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, error_messages={'min_value': 'Invalid quantity'})
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')


class StockTransactionSerializer(serializers.ModelSerializer):
    itemId = serializers.IntegerField(source='item_id', read_only=True)
    itemName = serializers.CharField(source='item.name', read_only=True)
    itemCategory = serializers.CharField(source='item.category', read_only=True)
    type = serializers.CharField(source='transaction_type', read_only=True)
    totalValue = serializers.DecimalField(source='total_value', max_digits=14, decimal_places=2, read_only=True)
    createdBy = serializers.IntegerField(source='created_by_id', read_only=True)

    class Meta:
        model = StockTransaction
        fields = ['id', 'itemId', 'itemName', 'itemCategory', 'quantity', 'type', 'date', 'notes', 'totalValue', 'createdBy']
        read_only_fields = fields


class AlertSerializer(serializers.ModelSerializer):
    itemId = serializers.IntegerField(source='item_id', read_only=True)
    itemName = serializers.CharField(source='item.name', read_only=True)
    type = serializers.CharField(source='alert_type', read_only=True)
    isRead = serializers.BooleanField(source='is_read')
    createdBy = serializers.IntegerField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Alert
        fields = ['id', 'itemId', 'itemName', 'type', 'message', 'priority', 'isRead', 'createdBy', 'createdAt']
        read_only_fields = ['id', 'itemId', 'itemName', 'type', 'message', 'priority', 'createdBy', 'createdAt']
