"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.inventory.ledger import StockLedger
from backend.inventory.models import InventoryItem, StockTransaction, Alert
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_item(user, name=None, category='General', quantity=0, unit_price=None, reorder_point=5, **extra):
        """Create an item through the ledger so opening stock is recorded"""
        if not name:
            name = f'Item_{TestDataFactory.random_string(6)}'
        if unit_price is None:
            unit_price = Decimal('10.00')
        item, _ = StockLedger(user).create_item({
            'name': name,
            'category': category,
            'quantity': quantity,
            'unit_price': unit_price,
            'reorder_point': reorder_point,
            **extra
        })
        return item

    @staticmethod
    def create_notification(item, user, message='Check this item', priority='low'):
        """Create a free-form notification alert"""
        return Alert.objects.create(
            item=item,
            alert_type=Alert.NOTIFICATION,
            message=message,
            priority=priority,
            created_by=user
        )

    @staticmethod
    def ledger_quantity(item):
        """Quantity implied by the item's transaction history"""
        total = 0
        for txn in StockTransaction.objects.filter(item=item):
            total += txn.quantity if txn.transaction_type == StockTransaction.STOCK_IN else -txn.quantity
        return total

    @staticmethod
    def reload(item):
        return InventoryItem.objects.get(pk=item.pk)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


class AuthenticatedTestCase(TestCase):
    """TestCase with an authenticated client and a clean cache (throttles, dashboard)"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
