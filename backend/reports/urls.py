from django.urls import path
from .views import (
    dashboard_stats, dashboard_transactions, dashboard_categories,
    transaction_report, inventory_report
)

urlpatterns = [
    # Dashboard endpoints
    path('dashboard/stats/', dashboard_stats, name='dashboard-stats'),
    path('dashboard/transactions/', dashboard_transactions, name='dashboard-transactions'),
    path('dashboard/categories/', dashboard_categories, name='dashboard-categories'),

    # Report endpoints
    path('reports/transactions/', transaction_report, name='report-transactions'),
    path('reports/inventory/', inventory_report, name='report-inventory'),
]
