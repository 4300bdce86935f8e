"""
Tests for member registration, profile and borrower onboarding.
"""

from decimal import Decimal

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.accounts.models import Member, Role
from tests.factories import make_member


@override_settings(API_KEYS=['test-key'])
class RegisterMemberTests(TestCase):
    """Test POST /api/register endpoint."""

    def setUp(self):
        self.client = APIClient()
        self.url = '/api/register'
        self.header = {'HTTP_X_API_KEY': 'test-key'}
        self.valid_data = {
            'full_name': 'Asha Verma',
            'email': 'Asha@Example.com',
            'phone': '9876543210',
            'role': 'lender',
        }

    def test_register_success(self):
        """Valid registration returns 201 with member details."""
        response = self.client.post(self.url, self.valid_data, format='json', **self.header)
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertIn('member_id', data)
        self.assertEqual(data['full_name'], 'Asha Verma')
        self.assertEqual(data['email'], 'asha@example.com')
        self.assertEqual(data['role'], 'lender')
        self.assertTrue(data['active'])

    def test_register_borrower_with_income(self):
        data = dict(self.valid_data, role='borrower', monthly_income='25000.00')
        response = self.client.post(self.url, data, format='json', **self.header)
        self.assertEqual(response.status_code, 201)
        member = Member.objects.get(pk=response.json()['member_id'])
        self.assertEqual(member.monthly_income, Decimal('25000.00'))
        self.assertIsNone(member.lender_id)

    def test_cannot_self_register_as_admin(self):
        data = dict(self.valid_data, role='super_admin')
        response = self.client.post(self.url, data, format='json', **self.header)
        self.assertEqual(response.status_code, 400)
        self.assertIn('role', response.json()['detail'])

    def test_duplicate_email(self):
        self.client.post(self.url, self.valid_data, format='json', **self.header)
        data = dict(self.valid_data, email='asha@example.com')
        response = self.client.post(self.url, data, format='json', **self.header)
        self.assertEqual(response.status_code, 400)
        self.assertIn('email', response.json()['detail'])

    def test_invalid_phone(self):
        """Phone must be exactly 10 digits."""
        for phone in ['12345', '98765432101', '98765abcde']:
            data = dict(self.valid_data, phone=phone)
            response = self.client.post(self.url, data, format='json', **self.header)
            self.assertEqual(response.status_code, 400, phone)

    def test_missing_fields(self):
        response = self.client.post(
            self.url, {'full_name': 'Test'}, format='json', **self.header,
        )
        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertTrue(data['error'])

    def test_negative_income(self):
        data = dict(self.valid_data, monthly_income='-1')
        response = self.client.post(self.url, data, format='json', **self.header)
        self.assertEqual(response.status_code, 400)


@override_settings(API_KEYS=['test-key'])
class MeTests(TestCase):
    """Test GET /api/me."""

    def setUp(self):
        self.client = APIClient()

    def test_dashboard_path_per_role(self):
        for role, path in [
            (Role.SUPER_ADMIN, '/dashboard/admin'),
            (Role.LENDER, '/dashboard/lender'),
            (Role.BORROWER, '/dashboard/borrower'),
        ]:
            member = make_member(role)
            response = self.client.get(
                '/api/me', HTTP_X_API_KEY='test-key', HTTP_X_ACTOR_ID=str(member.pk),
            )
            self.assertEqual(response.status_code, 200)
            data = response.json()
            self.assertEqual(data['member_id'], member.pk)
            self.assertEqual(data['dashboard_path'], path)

    def test_requires_actor(self):
        response = self.client.get('/api/me', HTTP_X_API_KEY='test-key')
        self.assertEqual(response.status_code, 401)

    def test_non_numeric_actor(self):
        response = self.client.get(
            '/api/me', HTTP_X_API_KEY='test-key', HTTP_X_ACTOR_ID='abc',
        )
        self.assertEqual(response.status_code, 401)


@override_settings(API_KEYS=['test-key'])
class BorrowerOnboardingTests(TestCase):
    """Test GET/POST /api/borrowers."""

    def setUp(self):
        self.client = APIClient()
        self.url = '/api/borrowers'
        self.lender = make_member(Role.LENDER)
        self.other_lender = make_member(Role.LENDER)
        self.header = {
            'HTTP_X_API_KEY': 'test-key',
            'HTTP_X_ACTOR_ID': str(self.lender.pk),
        }
        self.valid_data = {
            'full_name': 'Ravi Kumar',
            'email': 'ravi@example.com',
            'phone': '9123456780',
            'monthly_income': '18000',
        }

    def test_onboard_borrower(self):
        response = self.client.post(self.url, self.valid_data, format='json', **self.header)
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['role'], 'borrower')
        self.assertEqual(data['lender_id'], self.lender.pk)

    def test_lender_lists_only_own_borrowers(self):
        make_member(Role.BORROWER, lender=self.lender, full_name='A Borrower')
        make_member(Role.BORROWER, lender=self.other_lender)
        response = self.client.get(self.url, **self.header)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['full_name'], 'A Borrower')

    def test_admin_lists_all_borrowers(self):
        admin = make_member(Role.SUPER_ADMIN)
        make_member(Role.BORROWER, lender=self.lender)
        make_member(Role.BORROWER, lender=self.other_lender)
        response = self.client.get(
            self.url, HTTP_X_API_KEY='test-key', HTTP_X_ACTOR_ID=str(admin.pk),
        )
        self.assertEqual(len(response.json()), 2)

    def test_borrower_cannot_onboard(self):
        borrower = make_member(Role.BORROWER, lender=self.lender)
        response = self.client.post(
            self.url, self.valid_data, format='json',
            HTTP_X_API_KEY='test-key', HTTP_X_ACTOR_ID=str(borrower.pk),
        )
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Member.objects.filter(email='ravi@example.com').exists())
