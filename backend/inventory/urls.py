from django.urls import path
from .views import (
    inventory_list_create, inventory_search, inventory_detail, inventory_transactions,
    stock_in, stock_out,
    transaction_list,
    alert_list, alert_detail
)

urlpatterns = [
    # Inventory endpoints
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/search/', inventory_search, name='inventory-search'),
    path('inventory/stock-in/', stock_in, name='inventory-stock-in'),
    path('inventory/stock-out/', stock_out, name='inventory-stock-out'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),
    path('inventory/<int:pk>/transactions/', inventory_transactions, name='inventory-transactions'),

    # Transaction endpoints (read-only)
    path('transactions/', transaction_list, name='transaction-list'),

    # Alert endpoints
    path('alerts/', alert_list, name='alert-list'),
    path('alerts/<int:pk>/', alert_detail, name='alert-detail'),
]
