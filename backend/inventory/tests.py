"""
Test suite for the inventory module
Tests: stock ledger operations, alert reconciliation, deletion policy, API endpoints
"""
import random
import threading
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib import admin
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import connections
from django.db.models import RestrictedError
from django.test import RequestFactory, TestCase, TransactionTestCase
from rest_framework import status

from backend.core.exceptions import Conflict, InsufficientStock, InvalidInput, ItemNotFound
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient, AuthenticatedTestCase
from backend.inventory.admin import AlertAdmin
from backend.inventory.ledger import StockLedger, compute_total_value, verify_item
from backend.inventory.models import InventoryItem, StockTransaction, Alert


def low_stock_alerts(item):
    return Alert.objects.filter(item_id=item.pk, alert_type=Alert.LOW_STOCK)


class TotalValueTests(TestCase):
    """Test the movement valuation helper"""

    def test_total_value_is_quantity_times_unit_price(self):
        self.assertEqual(compute_total_value(6, Decimal('10.00')), Decimal('60.00'))

    def test_total_value_rounds_half_up_to_cents(self):
        self.assertEqual(compute_total_value(3, Decimal('1.335')), Decimal('4.01'))

    def test_total_value_with_missing_price(self):
        self.assertEqual(compute_total_value(4, None), Decimal('0.00'))


class StockLedgerTests(TestCase):
    """Test ledger operations directly"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.ledger = StockLedger(self.user)

    def test_create_item_records_opening_stock(self):
        item, opening = self.ledger.create_item({
            'name': 'Widget', 'category': 'Parts', 'quantity': 10,
            'unit_price': Decimal('2.50'), 'reorder_point': 3,
        })
        self.assertEqual(item.quantity, 10)
        self.assertEqual(opening.transaction_type, StockTransaction.STOCK_IN)
        self.assertEqual(opening.quantity, 10)
        self.assertEqual(opening.notes, 'Initial stock')
        self.assertEqual(opening.total_value, Decimal('25.00'))
        self.assertEqual(TestDataFactory.ledger_quantity(item), item.quantity)

    def test_create_item_without_stock_records_no_transaction(self):
        item, opening = self.ledger.create_item({'name': 'Empty', 'category': 'Parts'})
        self.assertIsNone(opening)
        self.assertEqual(item.quantity, 0)
        self.assertFalse(StockTransaction.objects.filter(item=item).exists())

    def test_create_item_at_reorder_point_raises_low_stock_alert(self):
        item = TestDataFactory.create_item(self.user, quantity=3, reorder_point=5)
        self.assertEqual(low_stock_alerts(item).count(), 1)

    def test_create_item_rejects_negative_quantity(self):
        with self.assertRaises(InvalidInput):
            self.ledger.create_item({'name': 'Bad', 'category': 'Parts', 'quantity': -1})
        self.assertFalse(InventoryItem.objects.filter(name='Bad').exists())

    def test_create_item_requires_name_and_category(self):
        with self.assertRaises(InvalidInput):
            self.ledger.create_item({'name': '', 'category': 'Parts'})

    def test_stock_out_then_stock_in_scenario(self):
        """quantity=10, reorder=5: out 6 -> 4 with alert, in 3 -> 7 without alert"""
        item = TestDataFactory.create_item(self.user, quantity=10, reorder_point=5, unit_price=Decimal('10.00'))
        self.assertEqual(low_stock_alerts(item).count(), 0)

        item, txn = self.ledger.stock_out(item.pk, 6, 'Sold')
        self.assertEqual(item.quantity, 4)
        self.assertEqual(txn.transaction_type, StockTransaction.STOCK_OUT)
        self.assertEqual(txn.quantity, 6)
        self.assertEqual(txn.notes, 'Sold')
        self.assertEqual(txn.total_value, Decimal('60.00'))
        self.assertEqual(low_stock_alerts(item).count(), 1)

        item, txn = self.ledger.stock_in(item.pk, 3)
        self.assertEqual(item.quantity, 7)
        self.assertEqual(txn.transaction_type, StockTransaction.STOCK_IN)
        self.assertEqual(low_stock_alerts(item).count(), 0)

    def test_repeated_stock_out_while_low_does_not_duplicate_alert(self):
        item = TestDataFactory.create_item(self.user, quantity=10, reorder_point=5)
        self.ledger.stock_out(item.pk, 6)
        self.ledger.stock_out(item.pk, 1)
        self.ledger.stock_out(item.pk, 1)
        self.assertEqual(low_stock_alerts(item).count(), 1)

    def test_stock_in_that_stays_low_keeps_alert(self):
        item = TestDataFactory.create_item(self.user, quantity=2, reorder_point=5)
        self.ledger.stock_in(item.pk, 3)
        self.assertEqual(TestDataFactory.reload(item).quantity, 5)
        self.assertEqual(low_stock_alerts(item).count(), 1)

    def test_stock_out_to_zero_raises_out_of_stock_alert(self):
        item = TestDataFactory.create_item(self.user, quantity=4, reorder_point=2)
        self.ledger.stock_out(item.pk, 4)
        out_alert = Alert.objects.get(item=item, alert_type=Alert.OUT_OF_STOCK)
        self.assertEqual(out_alert.priority, 'high')

        self.ledger.stock_in(item.pk, 1)
        self.assertFalse(Alert.objects.filter(item=item, alert_type=Alert.OUT_OF_STOCK).exists())
        self.assertEqual(low_stock_alerts(item).count(), 1)

    def test_stock_out_more_than_available_is_rejected(self):
        item = TestDataFactory.create_item(self.user, quantity=8, reorder_point=0)
        self.ledger.stock_out(item.pk, 5)

        with self.assertRaises(InsufficientStock):
            self.ledger.stock_out(item.pk, 5)

        item = TestDataFactory.reload(item)
        self.assertEqual(item.quantity, 3)
        self.assertEqual(
            StockTransaction.objects.filter(item=item, transaction_type=StockTransaction.STOCK_OUT).count(),
            1
        )

    def test_non_positive_quantities_are_rejected(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        for bad in (0, -3, 2.5, True, '4', None):
            with self.subTest(quantity=bad):
                with self.assertRaises(InvalidInput):
                    self.ledger.stock_out(item.pk, bad)
                with self.assertRaises(InvalidInput):
                    self.ledger.stock_in(item.pk, bad)
        self.assertEqual(TestDataFactory.reload(item).quantity, 5)
        self.assertEqual(StockTransaction.objects.filter(item=item).count(), 1)

    def test_items_of_other_users_behave_as_missing(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        intruder = StockLedger(TestDataFactory.create_user())

        with self.assertRaises(ItemNotFound):
            intruder.stock_in(item.pk, 1)
        with self.assertRaises(ItemNotFound):
            intruder.stock_out(item.pk, 1)
        with self.assertRaises(ItemNotFound):
            intruder.delete_item(item.pk)
        with self.assertRaises(ItemNotFound):
            intruder.get_item(item.pk)
        self.assertEqual(TestDataFactory.reload(item).quantity, 5)

    def test_unknown_item_ids(self):
        for item_id in (999999, 'abc', None):
            with self.subTest(item_id=item_id):
                with self.assertRaises(ItemNotFound):
                    self.ledger.stock_in(item_id, 1)

    def test_failure_mid_operation_rolls_back_everything(self):
        item = TestDataFactory.create_item(self.user, quantity=10, reorder_point=5)
        with mock.patch('backend.inventory.ledger.reconcile_alerts', side_effect=RuntimeError('boom')):
            with self.assertRaises(RuntimeError):
                self.ledger.stock_out(item.pk, 7)

        item = TestDataFactory.reload(item)
        self.assertEqual(item.quantity, 10)
        self.assertEqual(StockTransaction.objects.filter(item=item).count(), 1)
        self.assertEqual(low_stock_alerts(item).count(), 0)

    def test_quantity_reconciles_with_history_for_random_sequences(self):
        rng = random.Random(20240517)
        item = TestDataFactory.create_item(self.user, quantity=20, reorder_point=6)
        expected = 20

        for _ in range(60):
            amount = rng.randint(1, 9)
            if rng.random() < 0.5:
                self.ledger.stock_in(item.pk, amount)
                expected += amount
            else:
                try:
                    self.ledger.stock_out(item.pk, amount)
                    expected -= amount
                except InsufficientStock:
                    self.assertGreater(amount, expected)

            item = TestDataFactory.reload(item)
            self.assertEqual(item.quantity, expected)
            self.assertGreaterEqual(item.quantity, 0)
            self.assertEqual(TestDataFactory.ledger_quantity(item), item.quantity)
            self.assertEqual(low_stock_alerts(item).count(), 1 if item.quantity <= item.reorder_point else 0)
            self.assertIsNone(verify_item(item))

    def test_update_rejects_quantity(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        with self.assertRaises(InvalidInput):
            self.ledger.update_item(item.pk, {'quantity': 50})
        self.assertEqual(TestDataFactory.reload(item).quantity, 5)

    def test_update_reorder_point_reconciles_alerts(self):
        item = TestDataFactory.create_item(self.user, quantity=5, reorder_point=2)
        self.assertEqual(low_stock_alerts(item).count(), 0)

        item, changes = self.ledger.update_item(item.pk, {'reorder_point': 8})
        self.assertIn('reorder_point', changes)
        self.assertEqual(low_stock_alerts(item).count(), 1)

        self.ledger.update_item(item.pk, {'reorder_point': 1})
        self.assertEqual(low_stock_alerts(item).count(), 0)
        self.assertEqual(TestDataFactory.reload(item).quantity, 5)

    def test_delete_item_with_transactions_is_rejected(self):
        item = TestDataFactory.create_item(self.user, quantity=3, reorder_point=5)
        alerts_before = Alert.objects.filter(item=item).count()

        with self.assertRaises(Conflict):
            self.ledger.delete_item(item.pk)

        self.assertTrue(InventoryItem.objects.filter(pk=item.pk).exists())
        self.assertEqual(StockTransaction.objects.filter(item=item).count(), 1)
        self.assertEqual(Alert.objects.filter(item=item).count(), alerts_before)

    def test_delete_item_without_history_removes_alerts(self):
        item = TestDataFactory.create_item(self.user, quantity=0, reorder_point=5)
        TestDataFactory.create_notification(item, self.user)
        self.assertTrue(Alert.objects.filter(item=item).exists())

        self.ledger.delete_item(item.pk)

        self.assertFalse(InventoryItem.objects.filter(pk=item.pk).exists())
        self.assertFalse(Alert.objects.filter(item_id=item.pk).exists())

    def test_item_with_history_is_restricted_at_database_level(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        with self.assertRaises(RestrictedError):
            InventoryItem.objects.get(pk=item.pk).delete()
        self.assertEqual(StockTransaction.objects.filter(item=item).count(), 1)

    def test_transactions_are_append_only(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        txn = StockTransaction.objects.get(item=item)
        txn.quantity = 50
        with self.assertRaises(ValueError):
            txn.save()

    def test_verify_item_reports_tampered_quantity(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        self.ledger.stock_out(item.pk, 2)
        InventoryItem.objects.filter(pk=item.pk).update(quantity=9)

        discrepancy = verify_item(TestDataFactory.reload(item))
        self.assertIsNotNone(discrepancy)
        self.assertEqual(discrepancy.quantity, 9)
        self.assertEqual(discrepancy.expected, 3)
        self.assertEqual(discrepancy.stock_in, 5)
        self.assertEqual(discrepancy.stock_out, 2)

    def test_stock_out_guard_rejects_quantity_lowered_after_lock(self):
        """A competing decrement between lock and update leaves nothing written"""
        item = TestDataFactory.create_item(self.user, quantity=8, reorder_point=0)
        lock_item = StockLedger._lock_item

        def lock_then_lower(ledger, item_id):
            locked = lock_item(ledger, item_id)
            InventoryItem.objects.filter(pk=locked.pk).update(quantity=3)
            return locked

        with mock.patch.object(StockLedger, '_lock_item', autospec=True, side_effect=lock_then_lower):
            with self.assertRaises(InsufficientStock):
                self.ledger.stock_out(item.pk, 5)

        self.assertEqual(TestDataFactory.reload(item).quantity, 8)
        self.assertFalse(
            StockTransaction.objects.filter(item=item, transaction_type=StockTransaction.STOCK_OUT).exists()
        )

    def test_ledger_writes_invalidate_dashboard_cache_on_commit(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        with mock.patch('backend.inventory.ledger.invalidate_dashboard_cache') as invalidate:
            with self.captureOnCommitCallbacks(execute=True):
                self.ledger.stock_in(item.pk, 1)
        invalidate.assert_called_once_with(self.user.pk)


class ConcurrentStockOutTests(TransactionTestCase):
    """Two stock-outs racing for the same stock"""

    def test_only_one_competing_stock_out_succeeds(self):
        user = TestDataFactory.create_user()
        item = TestDataFactory.create_item(user, quantity=8, reorder_point=0)
        barrier = threading.Barrier(2)
        results = []

        def worker():
            try:
                barrier.wait()
                StockLedger(user).stock_out(item.pk, 5)
                results.append('ok')
            except InsufficientStock:
                results.append('insufficient')
            except Exception as exc:
                results.append(f'{type(exc).__name__}: {exc}')
            finally:
                connections.close_all()

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(results), ['insufficient', 'ok'])
        item = TestDataFactory.reload(item)
        self.assertEqual(item.quantity, 3)
        self.assertEqual(
            StockTransaction.objects.filter(item=item, transaction_type=StockTransaction.STOCK_OUT).count(),
            1
        )


class InventoryAPITests(AuthenticatedTestCase):
    """Test inventory endpoints"""

    def test_requires_authentication(self):
        client = AuthenticatedAPIClient()
        response = client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertIn('message', response.data)

    def test_create_item(self):
        data = {
            'name': 'Blue Paint',
            'category': 'Paint',
            'quantity': 12,
            'unitPrice': '4.25',
            'reorderPoint': 4,
        }
        response = self.client.post('/api/v1/inventory/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity'], 12)
        self.assertEqual(response.data['unitPrice'], '4.25')
        self.assertEqual(response.data['reorderPoint'], 4)
        self.assertEqual(response.data['status'], 'in_stock')

        txn = StockTransaction.objects.get(item_id=response.data['id'])
        self.assertEqual(txn.transaction_type, StockTransaction.STOCK_IN)
        self.assertEqual(txn.total_value, Decimal('51.00'))
        self.assertTrue(AuditLog.objects.filter(action='item_create', object_id=str(response.data['id'])).exists())

    def test_create_item_validation_error(self):
        response = self.client.post('/api/v1/inventory/', {'category': 'Paint', 'quantity': -2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('name', response.data['errors'])
        self.assertIn('quantity', response.data['errors'])

    def test_list_items_paginated(self):
        for index in range(3):
            TestDataFactory.create_item(self.user, name=f'Bolt {index}', category='Hardware')
        TestDataFactory.create_item(self.user, name='Glue', category='Adhesives')
        TestDataFactory.create_item(TestDataFactory.create_user(), name='Foreign')

        response = self.client.get('/api/v1/inventory/?pageSize=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 4)
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['page'], 1)
        self.assertEqual(response.data['pageSize'], 2)

        response = self.client.get('/api/v1/inventory/?category=Hardware')
        self.assertEqual(response.data['total'], 3)

    def test_list_items_rejects_bad_page(self):
        response = self.client.get('/api/v1/inventory/?page=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_search(self):
        TestDataFactory.create_item(self.user, name='Copper Wire', category='Electrical')
        TestDataFactory.create_item(self.user, name='Steel Nail', category='Hardware')

        response = self.client.get('/api/v1/inventory/search/?q=copper')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([i['name'] for i in response.data], ['Copper Wire'])

        response = self.client.get('/api/v1/inventory/search/?q=')
        self.assertEqual(response.data, [])

    def test_other_users_item_is_not_found(self):
        foreign = TestDataFactory.create_item(TestDataFactory.create_user(), quantity=5)
        response = self.client.get(f'/api/v1/inventory/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])

        response = self.client.post('/api/v1/inventory/stock-out/', {'itemId': foreign.id, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(TestDataFactory.reload(foreign).quantity, 5)

    def test_update_cannot_touch_quantity(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        response = self.client.put(f'/api/v1/inventory/{item.id}/', {'name': 'Renamed', 'quantity': 99}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Invalid updates', response.data['message'])
        item = TestDataFactory.reload(item)
        self.assertEqual(item.quantity, 5)
        self.assertNotEqual(item.name, 'Renamed')

    def test_update_descriptive_fields(self):
        item = TestDataFactory.create_item(self.user, quantity=5, reorder_point=1)
        response = self.client.put(
            f'/api/v1/inventory/{item.id}/',
            {'name': 'Renamed', 'unitPrice': '7.10', 'reorderPoint': 6},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Renamed')
        self.assertEqual(response.data['unitPrice'], '7.10')
        self.assertEqual(response.data['status'], 'low_stock')
        self.assertEqual(low_stock_alerts(item).count(), 1)

    def test_stock_in_and_out_endpoints(self):
        item = TestDataFactory.create_item(self.user, quantity=10, reorder_point=5, unit_price=Decimal('10.00'))

        response = self.client.post(
            '/api/v1/inventory/stock-out/',
            {'itemId': item.id, 'quantity': 6, 'notes': 'Order 42'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['item']['quantity'], 4)
        self.assertEqual(response.data['transaction']['type'], 'stock-out')
        self.assertEqual(response.data['transaction']['quantity'], 6)
        self.assertEqual(response.data['transaction']['totalValue'], '60.00')
        self.assertEqual(low_stock_alerts(item).count(), 1)

        response = self.client.post('/api/v1/inventory/stock-in/', {'itemId': item.id, 'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['quantity'], 7)
        self.assertEqual(response.data['transaction']['type'], 'stock-in')
        self.assertEqual(low_stock_alerts(item).count(), 0)

        self.assertEqual(AuditLog.objects.filter(action__in=['stock_in', 'stock_out']).count(), 2)

    def test_stock_out_insufficient(self):
        item = TestDataFactory.create_item(self.user, quantity=2)
        response = self.client.post('/api/v1/inventory/stock-out/', {'itemId': item.id, 'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('Insufficient stock', response.data['message'])
        self.assertEqual(TestDataFactory.reload(item).quantity, 2)

    def test_stock_out_rejects_zero_quantity(self):
        item = TestDataFactory.create_item(self.user, quantity=2)
        response = self.client.post('/api/v1/inventory/stock-out/', {'itemId': item.id, 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(StockTransaction.objects.filter(item=item).count(), 1)
        self.assertEqual(TestDataFactory.reload(item).quantity, 2)

    def test_delete_item_with_history_conflicts(self):
        item = TestDataFactory.create_item(self.user, quantity=2)
        response = self.client.delete(f'/api/v1/inventory/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertTrue(InventoryItem.objects.filter(pk=item.pk).exists())

    def test_delete_item_without_history(self):
        item = TestDataFactory.create_item(self.user, quantity=0)
        response = self.client.delete(f'/api/v1/inventory/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(InventoryItem.objects.filter(pk=item.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action='item_delete', object_id=str(item.pk)).exists())

    def test_item_transaction_history(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        StockLedger(self.user).stock_out(item.pk, 2)
        response = self.client.get(f'/api/v1/inventory/{item.id}/transactions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['type'] for t in response.data], ['stock-out', 'stock-in'])

    def test_transaction_list_filters(self):
        item = TestDataFactory.create_item(self.user, quantity=5)
        StockLedger(self.user).stock_out(item.pk, 2)
        TestDataFactory.create_item(TestDataFactory.create_user(), quantity=5)

        response = self.client.get('/api/v1/transactions/')
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/transactions/?type=stock-out')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['itemName'], item.name)

        response = self.client.get('/api/v1/transactions/?startDate=not-a-date')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AlertAPITests(AuthenticatedTestCase):
    """Test alert endpoints"""

    def setUp(self):
        super().setUp()
        self.item = TestDataFactory.create_item(self.user, quantity=2, reorder_point=5)

    def test_list_alerts(self):
        TestDataFactory.create_notification(self.item, self.user)
        response = self.client.get('/api/v1/alerts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(a['type'] for a in response.data), ['low_stock', 'notification'])

        response = self.client.get('/api/v1/alerts/?type=low_stock')
        self.assertEqual(len(response.data), 1)

    def test_mark_alert_read(self):
        alert = low_stock_alerts(self.item).get()
        response = self.client.patch(f'/api/v1/alerts/{alert.id}/', {'isRead': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['isRead'])

        response = self.client.get('/api/v1/alerts/?unread=true')
        self.assertEqual(response.data, [])

    def test_reconciled_alert_cannot_be_deleted(self):
        alert = low_stock_alerts(self.item).get()
        response = self.client.delete(f'/api/v1/alerts/{alert.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Alert.objects.filter(pk=alert.pk).exists())

    def test_notification_can_be_dismissed(self):
        notification = TestDataFactory.create_notification(self.item, self.user)
        response = self.client.delete(f'/api/v1/alerts/{notification.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Alert.objects.filter(pk=notification.pk).exists())

    def test_other_users_alert_is_not_found(self):
        other = TestDataFactory.create_user()
        foreign_item = TestDataFactory.create_item(other, quantity=0)
        alert = Alert.objects.filter(item=foreign_item).first()
        response = self.client.get(f'/api/v1/alerts/{alert.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CheckLedgerSyncCommandTests(TestCase):
    """Test the check_ledger_sync management command"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_reports_no_discrepancies(self):
        item = TestDataFactory.create_item(self.user, quantity=9, reorder_point=2)
        StockLedger(self.user).stock_out(item.pk, 4)
        out = StringIO()
        call_command('check_ledger_sync', stdout=out)
        self.assertIn('No discrepancies found', out.getvalue())

    def test_reports_tampered_quantity(self):
        item = TestDataFactory.create_item(self.user, quantity=9, reorder_point=2)
        InventoryItem.objects.filter(pk=item.pk).update(quantity=1)
        out = StringIO()
        call_command('check_ledger_sync', stdout=out)
        output = out.getvalue()
        self.assertIn('Quantity differs from ledger by -8', output)
        self.assertIn('missing low_stock alert', output)

        with self.assertRaises(CommandError):
            call_command('check_ledger_sync', '--fail-on-discrepancy', stdout=StringIO())


class AlertAdminTests(TestCase):
    """Stock alerts stay under ledger control in the admin site"""

    def setUp(self):
        self.user = TestDataFactory.create_user(is_staff=True, is_superuser=True)
        self.request = RequestFactory().get('/admin/inventory/alert/')
        self.request.user = self.user
        self.model_admin = AlertAdmin(Alert, admin.site)
        self.item = TestDataFactory.create_item(self.user, quantity=2, reorder_point=5)
        self.low_alert = low_stock_alerts(self.item).get()
        self.notification = TestDataFactory.create_notification(self.item, self.user)

    def test_item_and_type_are_read_only_once_saved(self):
        readonly = self.model_admin.get_readonly_fields(self.request, self.low_alert)
        self.assertIn('item', readonly)
        self.assertIn('alert_type', readonly)
        self.assertNotIn('alert_type', self.model_admin.get_readonly_fields(self.request))

    def test_only_notifications_can_be_added(self):
        form = self.model_admin.get_form(self.request)()
        choices = [value for value, _ in form.fields['alert_type'].choices if value]
        self.assertEqual(choices, [Alert.NOTIFICATION])

    def test_reconciled_alerts_cannot_be_deleted(self):
        self.assertFalse(self.model_admin.has_delete_permission(self.request, self.low_alert))
        self.assertTrue(self.model_admin.has_delete_permission(self.request, self.notification))

    def test_bulk_delete_skips_reconciled_alerts(self):
        self.model_admin.delete_queryset(self.request, Alert.objects.filter(item=self.item))
        self.assertTrue(Alert.objects.filter(pk=self.low_alert.pk).exists())
        self.assertFalse(Alert.objects.filter(pk=self.notification.pk).exists())
