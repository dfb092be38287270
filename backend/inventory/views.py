import logging

from django.core.paginator import Paginator
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.core.exceptions import Conflict, InvalidInput
from backend.core.utils import create_audit_log
from .filters import InventoryItemFilter, StockTransactionFilter, AlertFilter, filtered_queryset
from .ledger import StockLedger
from .models import InventoryItem, StockTransaction, Alert
from .serializers import (
    InventoryItemSerializer, InventoryItemCreateSerializer, InventoryItemUpdateSerializer,
    StockMovementSerializer, StockTransactionSerializer, AlertSerializer
)

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
MAX_PAGE_SIZE = 100


def int_param(request, name, default, minimum=1, maximum=None):
    """Parse an integer query parameter"""
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a whole number")
    if value < minimum:
        raise InvalidInput(f"{name} must be at least {minimum}")
    if maximum is not None:
        value = min(value, maximum)
    return value


# Inventory item views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_create(request):
    """List the caller's items (paginated) or create a new item with its opening stock"""
    if request.method == 'GET':
        page = int_param(request, 'page', 1)
        page_size = int_param(request, 'pageSize', 10, maximum=MAX_PAGE_SIZE)

        queryset = InventoryItem.objects.filter(created_by=request.user)
        queryset = filtered_queryset(InventoryItemFilter(request.query_params, queryset=queryset))
        queryset = queryset.order_by('-updated_at', '-id')

        paginator = Paginator(queryset, page_size)
        page_obj = paginator.get_page(page)
        serializer = InventoryItemSerializer(page_obj.object_list, many=True)
        return Response({
            'items': serializer.data,
            'total': paginator.count,
            'page': page_obj.number,
            'pageSize': page_size,
        })

    serializer = InventoryItemCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    item, opening = StockLedger(request.user).create_item(serializer.validated_data)

    create_audit_log(
        request=request,
        action='item_create',
        model_name='InventoryItem',
        object_id=item.id,
        object_name=item.name,
        changes={
            'category': item.category,
            'quantity': item.quantity,
            'unit_price': str(item.unit_price),
            'reorder_point': item.reorder_point,
            'opening_transaction': opening.id if opening else None,
        }
    )
    return Response(InventoryItemSerializer(item).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_search(request):
    """Quick search across name, description, category and SKU"""
    query = request.query_params.get('q', '').strip()
    if not query:
        return Response([])

    queryset = InventoryItem.objects.filter(created_by=request.user)
    items = InventoryItemFilter({'search': query}, queryset=queryset).qs[:SEARCH_LIMIT]
    return Response(InventoryItemSerializer(items, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def inventory_detail(request, pk):
    """Retrieve, update (descriptive fields only) or delete an item"""
    ledger = StockLedger(request.user)

    if request.method == 'GET':
        item = ledger.get_item(pk)
        return Response(InventoryItemSerializer(item).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = InventoryItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item, changes = ledger.update_item(pk, dict(serializer.validated_data))
        if changes:
            create_audit_log(
                request=request,
                action='item_update',
                model_name='InventoryItem',
                object_id=item.id,
                object_name=item.name,
                changes=changes
            )
        return Response(InventoryItemSerializer(item).data)

    # DELETE
    item = ledger.get_item(pk)
    item_name = item.name
    ledger.delete_item(pk)
    create_audit_log(
        request=request,
        action='item_delete',
        model_name='InventoryItem',
        object_id=pk,
        object_name=item_name,
    )
    return Response({'success': True, 'message': 'Inventory item deleted successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_transactions(request, pk):
    """Ledger history of one item"""
    item = StockLedger(request.user).get_item(pk)
    transactions = item.transactions.select_related('item').order_by('-date', '-id')
    return Response(StockTransactionSerializer(transactions, many=True).data)


# Stock movements
def _stock_movement(request, direction):
    serializer = StockMovementSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    ledger = StockLedger(request.user)
    operation = ledger.stock_in if direction == 'stock_in' else ledger.stock_out
    item, record = operation(data['itemId'], data['quantity'], data.get('notes') or '')

    create_audit_log(
        request=request,
        action=direction,
        model_name='StockTransaction',
        object_id=record.id,
        object_name=item.name,
        changes={
            'item_id': item.id,
            'quantity': record.quantity,
            'notes': record.notes,
            'total_value': str(record.total_value),
            'new_stock_quantity': item.quantity,
        }
    )
    return Response({
        'success': True,
        'item': InventoryItemSerializer(item).data,
        'transaction': StockTransactionSerializer(record).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_in(request):
    """Add stock to an item"""
    return _stock_movement(request, 'stock_in')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_out(request):
    """Remove stock from an item; rejected when stock is insufficient"""
    return _stock_movement(request, 'stock_out')


# Transaction views (read-only, append-only log)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transaction_list(request):
    """List the caller's transactions, newest first"""
    queryset = StockTransaction.objects.filter(created_by=request.user).select_related('item')
    queryset = filtered_queryset(StockTransactionFilter(request.query_params, queryset=queryset))
    serializer = StockTransactionSerializer(queryset.order_by('-date', '-id'), many=True)
    return Response(serializer.data)


# Alert views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def alert_list(request):
    """List the caller's alerts"""
    queryset = Alert.objects.filter(created_by=request.user).select_related('item')
    queryset = filtered_queryset(AlertFilter(request.query_params, queryset=queryset))
    return Response(AlertSerializer(queryset, many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def alert_detail(request, pk):
    """Retrieve, mark read or dismiss an alert"""
    alert = get_object_or_404(Alert.objects.select_related('item'), pk=pk, created_by=request.user)

    if request.method == 'GET':
        return Response(AlertSerializer(alert).data)

    if request.method == 'PATCH':
        serializer = AlertSerializer(alert, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    # DELETE
    if alert.alert_type in Alert.RECONCILED_TYPES:
        raise Conflict('Stock alerts clear automatically when the item is restocked')
    alert.delete()
    return Response({'success': True, 'message': 'Alert dismissed'})
