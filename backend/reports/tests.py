"""
Test suite for the reports module
Tests: dashboard stats, transaction history, category distribution, transaction and inventory reports
"""
from decimal import Decimal

from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedTestCase
from backend.inventory.ledger import StockLedger


class DashboardTests(AuthenticatedTestCase):
    """Test dashboard endpoints"""

    def setUp(self):
        super().setUp()
        self.ledger = StockLedger(self.user)
        self.bolts = TestDataFactory.create_item(
            self.user, name='Bolts', category='Hardware', quantity=10, reorder_point=5, unit_price=Decimal('10.00')
        )
        self.ledger.stock_out(self.bolts.pk, 4)
        self.glue = TestDataFactory.create_item(
            self.user, name='Glue', category='Adhesives', quantity=0, reorder_point=2, unit_price=Decimal('5.00')
        )
        TestDataFactory.create_item(TestDataFactory.create_user(), name='Foreign', quantity=50)

    def test_stats(self):
        response = self.client.get('/api/v1/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalProducts'], 2)
        self.assertEqual(response.data['lowStockProducts'], 1)
        self.assertEqual(response.data['outOfStockProducts'], 1)
        self.assertEqual(response.data['totalValue'], '60.00')
        self.assertEqual(response.data['totalTransactions'], 2)
        self.assertEqual(len(response.data['recentTransactions']), 2)
        self.assertEqual(response.data['recentTransactions'][0]['type'], 'stock-out')

    def test_stats_are_cached_until_ledger_commit(self):
        self.client.get('/api/v1/dashboard/stats/')

        # Without running commit hooks the cached figures are served
        self.ledger.stock_in(self.glue.pk, 3)
        response = self.client.get('/api/v1/dashboard/stats/')
        self.assertEqual(response.data['outOfStockProducts'], 1)

        with self.captureOnCommitCallbacks(execute=True):
            self.ledger.stock_in(self.glue.pk, 1)
        response = self.client.get('/api/v1/dashboard/stats/')
        self.assertEqual(response.data['outOfStockProducts'], 0)
        self.assertEqual(response.data['totalTransactions'], 4)
        self.assertEqual(response.data['totalValue'], '80.00')

    def test_transaction_history(self):
        response = self.client.get('/api/v1/dashboard/transactions/?days=7')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['labels']), 7)
        self.assertEqual(response.data['labels'][-1], timezone.localdate().isoformat())
        self.assertEqual(response.data['stockIn'][-1], 10)
        self.assertEqual(response.data['stockOut'][-1], 4)
        self.assertEqual(sum(response.data['stockIn'][:-1]), 0)
        self.assertEqual(len(response.data['transactions']), 2)

    def test_transaction_history_rejects_bad_days(self):
        response = self.client.get('/api/v1/dashboard/transactions/?days=zero')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_categories(self):
        response = self.client.get('/api/v1/dashboard/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['labels'], ['Hardware', 'Adhesives'])
        self.assertEqual(response.data['data'], [6, 0])


class ReportTests(AuthenticatedTestCase):
    """Test report endpoints"""

    def setUp(self):
        super().setUp()
        self.item = TestDataFactory.create_item(
            self.user, name='Cable', category='Electrical', quantity=10, unit_price=Decimal('2.50')
        )
        StockLedger(self.user).stock_out(self.item.pk, 4, 'Job 17')
        TestDataFactory.create_item(self.user, name='Switch', category='Electrical', quantity=0)
        TestDataFactory.create_item(self.user, name='Hammer', category='Tools', quantity=3)

    def test_transaction_report(self):
        response = self.client.get('/api/v1/reports/transactions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)

        response = self.client.get('/api/v1/reports/transactions/?type=stock-out')
        self.assertEqual(len(response.data), 1)
        row = response.data[0]
        self.assertEqual(row['itemName'], 'Cable')
        self.assertEqual(row['quantity'], 4)
        self.assertEqual(row['totalValue'], '10.00')
        self.assertEqual(row['notes'], 'Job 17')
        self.assertEqual(row['createdBy'], self.user.username)

    def test_transaction_report_date_range(self):
        today = timezone.localdate().isoformat()
        response = self.client.get(f'/api/v1/reports/transactions/?startDate={today}&endDate={today}')
        self.assertEqual(len(response.data), 3)

        response = self.client.get('/api/v1/reports/transactions/?startDate=2000-01-01&endDate=2000-01-31')
        self.assertEqual(response.data, [])

    def test_transaction_report_invalid_date(self):
        response = self.client.get('/api/v1/reports/transactions/?startDate=31-01-2000')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_inventory_report(self):
        response = self.client.get('/api/v1/reports/inventory/?category=electrical')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data], ['Cable', 'Switch'])

        cable = response.data[0]
        self.assertEqual(cable['quantity'], 6)
        self.assertEqual(cable['stockIn'], 10)
        self.assertEqual(cable['stockOut'], 4)
        self.assertEqual(cable['turnover'], 0.6667)
        self.assertEqual(cable['value'], '15.00')

        switch = response.data[1]
        self.assertEqual(switch['stockIn'], 0)
        self.assertEqual(switch['turnover'], 0)

    def test_inventory_report_outside_range_has_no_movement(self):
        response = self.client.get('/api/v1/reports/inventory/?startDate=2000-01-01&endDate=2000-01-31')
        cable = next(row for row in response.data if row['name'] == 'Cable')
        self.assertEqual(cable['stockIn'], 0)
        self.assertEqual(cable['stockOut'], 0)
        self.assertEqual(cable['quantity'], 6)

    def test_inventory_report_rejects_inverted_range(self):
        response = self.client.get('/api/v1/reports/inventory/?startDate=2024-02-01&endDate=2024-01-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('startDate', response.data['message'])

    def test_reports_log_under_module_logger(self):
        with self.assertLogs('backend.reports.views', level='INFO') as logs:
            self.client.get('/api/v1/reports/inventory/')
        self.assertIn('Inventory report for user', logs.output[0])
