"""
Test suite for the core module
Tests: registration, authentication, user administration, audit logs, error envelope
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError

from backend.core.exceptions import InsufficientStock, api_exception_handler
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient, AuthenticatedTestCase
from backend.core.utils import create_audit_log


class AuthenticationTests(TestCase):
    """Test registration, login and token refresh"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_returns_tokens(self):
        data = {
            'username': 'newclerk',
            'email': 'clerk@test.com',
            'password': 'Warehouse!2024',
            'password_confirm': 'Warehouse!2024',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['username'], 'newclerk')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'newclerk')

    def test_register_password_mismatch(self):
        data = {
            'username': 'mismatch',
            'password': 'Warehouse!2024',
            'password_confirm': 'Different!2024',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertIn('password', response.data['errors'])

    def test_login_and_refresh(self):
        TestDataFactory.create_user(username='keeper', password='testpass123')
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'keeper', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['username'], 'keeper')

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': response.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_login_with_wrong_password(self):
        TestDataFactory.create_user(username='keeper', password='testpass123')
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'keeper', 'password': 'wrong'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_invalid_token_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])


class UserAdministrationTests(AuthenticatedTestCase):
    """User management is restricted to staff"""

    def test_regular_user_cannot_list_users(self):
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.data['success'])

    def test_staff_can_manage_users(self):
        admin = TestDataFactory.create_user(is_staff=True)
        self.client.authenticate_user(admin)

        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'phone': '555-0100'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phone'], '555-0100')


class AuditLogTests(AuthenticatedTestCase):
    """Audit entries are visible to their owner and to staff"""

    def setUp(self):
        super().setUp()
        self.other = TestDataFactory.create_user()
        self.own_log = create_audit_log(
            action='stock_in', model_name='StockTransaction', object_id=1, user=self.user, object_name='Widget'
        )
        self.other_log = create_audit_log(
            action='stock_out', model_name='StockTransaction', object_id=2, user=self.other
        )

    def test_user_sees_only_own_logs(self):
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([log['id'] for log in response.data], [self.own_log.id])

    def test_filter_by_action(self):
        create_audit_log(action='item_create', model_name='InventoryItem', object_id=3, user=self.user)
        response = self.client.get('/api/v1/audit-logs/?action=item_create')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['model_name'], 'InventoryItem')

    def test_invalid_date_filter(self):
        response = self.client.get('/api/v1/audit-logs/?date_from=yesterday')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date_from', response.data['message'])

    def test_foreign_log_is_forbidden(self):
        response = self.client.get(f'/api/v1/audit-logs/{self.other_log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_sees_all_logs(self):
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 2)

    def test_incomplete_entries_are_skipped(self):
        self.assertIsNone(create_audit_log(action='stock_in', user=self.user))
        self.assertEqual(AuditLog.objects.count(), 2)


class ExceptionHandlerTests(TestCase):
    """Every error is rendered as {success: false, message}"""

    def test_domain_error(self):
        response = api_exception_handler(InsufficientStock('Insufficient stock for Widget'), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'success': False, 'message': 'Insufficient stock for Widget'})

    def test_validation_error_keeps_field_errors(self):
        response = api_exception_handler(ValidationError({'quantity': ['Invalid quantity']}), {})
        self.assertEqual(response.data['message'], 'quantity: Invalid quantity')
        self.assertEqual(response.data['errors'], {'quantity': ['Invalid quantity']})

    def test_not_found(self):
        response = api_exception_handler(NotFound(), {})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])
        self.assertNotIn('errors', response.data)

    def test_unexpected_error_becomes_500(self):
        with self.assertLogs('backend.core.exceptions', level='ERROR'):
            response = api_exception_handler(RuntimeError('database exploded'), {'view': None})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'success': False, 'message': 'Internal server error'})
