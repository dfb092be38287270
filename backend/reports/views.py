import logging
from datetime import timedelta
from decimal import Decimal

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum, Q, F, Count, DecimalField, ExpressionWrapper
from django.db.models.functions import TruncDate
from django.utils import timezone

from backend.core.cache_utils import (
    cached_query, DASHBOARD_STATS_CACHE_TTL, DASHBOARD_CATEGORIES_CACHE_TTL
)
from backend.core.exceptions import InvalidInput
from backend.core.utils import parse_date_param
from backend.inventory.filters import StockTransactionFilter, filtered_queryset
from backend.inventory.models import InventoryItem, StockTransaction
from backend.inventory.serializers import StockTransactionSerializer

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 5
MAX_HISTORY_DAYS = 365


def _inventory_value(items):
    """Sum of quantity x unit price over a queryset of items"""
    value = items.aggregate(
        total=Sum(
            ExpressionWrapper(F('quantity') * F('unit_price'), output_field=DecimalField(max_digits=18, decimal_places=2))
        )
    )['total']
    return (value or Decimal('0.00')).quantize(Decimal('0.01'))


@cached_query(cache_ttl=DASHBOARD_STATS_CACHE_TTL, key_prefix='dashboard_stats')
def get_dashboard_stats(user_id):
    items = InventoryItem.objects.filter(created_by_id=user_id)
    transactions = StockTransaction.objects.filter(created_by_id=user_id).select_related('item')
    recent = transactions.order_by('-date', '-id')[:RECENT_TRANSACTIONS_LIMIT]

    return {
        'totalProducts': items.count(),
        'lowStockProducts': items.filter(quantity__lte=F('reorder_point')).count(),
        'outOfStockProducts': items.filter(quantity=0).count(),
        'totalValue': str(_inventory_value(items)),
        'totalTransactions': transactions.count(),
        'recentTransactions': StockTransactionSerializer(recent, many=True).data,
    }


@cached_query(cache_ttl=DASHBOARD_CATEGORIES_CACHE_TTL, key_prefix='dashboard_categories')
def get_category_distribution(user_id):
    categories = (
        InventoryItem.objects.filter(created_by_id=user_id)
        .values('category')
        .annotate(total_quantity=Sum('quantity'), item_count=Count('id'))
        .order_by('-total_quantity', 'category')
    )
    return {
        'labels': [c['category'] for c in categories],
        'data': [c['total_quantity'] or 0 for c in categories],
    }


# Dashboard
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    """Headline figures for the dashboard"""
    return Response(get_dashboard_stats(request.user.id))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_transactions(request):
    """Daily stock-in/stock-out volumes for the last N days plus the matching transactions"""
    raw_days = request.query_params.get('days') or '7'
    try:
        days = int(raw_days)
    except ValueError:
        raise InvalidInput('days must be a whole number')
    if days < 1:
        raise InvalidInput('days must be at least 1')
    days = min(days, MAX_HISTORY_DAYS)

    today = timezone.localdate()
    start_date = today - timedelta(days=days - 1)

    transactions = StockTransaction.objects.filter(
        created_by=request.user,
        date__date__gte=start_date,
    ).select_related('item').order_by('-date', '-id')

    volumes = (
        transactions.order_by()
        .annotate(day=TruncDate('date'))
        .values('day')
        .annotate(
            stock_in=Sum('quantity', filter=Q(transaction_type=StockTransaction.STOCK_IN)),
            stock_out=Sum('quantity', filter=Q(transaction_type=StockTransaction.STOCK_OUT)),
        )
    )
    by_day = {row['day']: row for row in volumes}

    labels, stock_in, stock_out = [], [], []
    for offset in range(days):
        day = start_date + timedelta(days=offset)
        row = by_day.get(day, {})
        labels.append(day.isoformat())
        stock_in.append(row.get('stock_in') or 0)
        stock_out.append(row.get('stock_out') or 0)

    return Response({
        'labels': labels,
        'stockIn': stock_in,
        'stockOut': stock_out,
        'transactions': StockTransactionSerializer(transactions, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_categories(request):
    """Total quantity per category, largest first"""
    return Response(get_category_distribution(request.user.id))


# Reports
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transaction_report(request):
    """Transactions in a date range, optionally limited to one type"""
    queryset = StockTransaction.objects.filter(created_by=request.user).select_related('item', 'created_by')
    queryset = filtered_queryset(StockTransactionFilter(request.query_params, queryset=queryset))

    rows = []
    for txn in queryset.order_by('-date', '-id'):
        rows.append({
            'id': txn.id,
            'date': txn.date,
            'itemName': txn.item.name,
            'itemCategory': txn.item.category,
            'type': txn.transaction_type,
            'quantity': txn.quantity,
            'totalValue': str(txn.total_value),
            'notes': txn.notes,
            'createdBy': txn.created_by.username,
        })

    logger.info(f"Transaction report for user {request.user.id}: {len(rows)} rows")
    return Response(rows)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_report(request):
    """Per-item stock movement totals and turnover for a date range"""
    start_date = parse_date_param(request, 'startDate')
    end_date = parse_date_param(request, 'endDate')
    if start_date and end_date and start_date > end_date:
        raise InvalidInput('startDate must not be after endDate')

    movement_filter = Q()
    if start_date:
        movement_filter &= Q(transactions__date__date__gte=start_date)
    if end_date:
        movement_filter &= Q(transactions__date__date__lte=end_date)

    items = InventoryItem.objects.filter(created_by=request.user)
    category = request.query_params.get('category')
    if category:
        items = items.filter(category__iexact=category)

    items = items.annotate(
        stock_in_total=Sum(
            'transactions__quantity',
            filter=movement_filter & Q(transactions__transaction_type=StockTransaction.STOCK_IN)
        ),
        stock_out_total=Sum(
            'transactions__quantity',
            filter=movement_filter & Q(transactions__transaction_type=StockTransaction.STOCK_OUT)
        ),
    ).order_by('name', 'id')

    rows = []
    for item in items:
        stock_in = item.stock_in_total or 0
        stock_out = item.stock_out_total or 0
        rows.append({
            'id': item.id,
            'name': item.name,
            'category': item.category,
            'quantity': item.quantity,
            'reorderPoint': item.reorder_point,
            'stockIn': stock_in,
            'stockOut': stock_out,
            'turnover': round(stock_out / (item.quantity or 1), 4),
            'value': str((item.quantity * item.unit_price).quantize(Decimal('0.01'))),
            'updatedAt': item.updated_at,
        })

    logger.info(f"Inventory report for user {request.user.id}: {len(rows)} items")
    return Response(rows)
