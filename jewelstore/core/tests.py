"""
Comprehensive test suite for Core module
Tests: Registration, JWT login, current user, customer administration, settings,
audit logs, notifications and shared helpers
"""
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, RequestFactory
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken
from decimal import Decimal
from jewelstore.core.models import Setting, AuditLog
from jewelstore.core.notifications import send_notification
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.core.utils import (
    create_audit_log, get_client_ip, parse_bool, parse_id_list, make_code,
    format_status_label, to_decimal, to_int
)

User = get_user_model()


class AuthAPITests(TestCase):
    """Test registration, login and current user endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_customer(self):
        """Test registration returns tokens and a pending customer"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'shopowner',
            'email': 'owner@shop.com',
            'name': 'Shop Owner',
            'password': 'Str0ng-Passw0rd!',
            'password_confirm': 'Str0ng-Passw0rd!',
            'type': 'wholesaler',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['kyc_status'], 'pending')
        self.assertEqual(response.data['user']['type'], 'wholesaler')

    def test_register_password_mismatch(self):
        """Test mismatched passwords are rejected"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'shopowner',
            'email': 'owner@shop.com',
            'password': 'Str0ng-Passw0rd!',
            'password_confirm': 'Other-Passw0rd!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_duplicate_email(self):
        """Test an email can only register once"""
        TestDataFactory.create_customer(email='taken@shop.com')
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'another',
            'email': 'TAKEN@shop.com',
            'password': 'Str0ng-Passw0rd!',
            'password_confirm': 'Str0ng-Passw0rd!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_cannot_pick_admin_type(self):
        """Test the admin type is not open to registration"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'sneaky',
            'email': 'sneaky@shop.com',
            'password': 'Str0ng-Passw0rd!',
            'password_confirm': 'Str0ng-Passw0rd!',
            'type': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_token_claims(self):
        """Test the access token carries type and KYC claims"""
        TestDataFactory.create_customer(username='buyer', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'buyer', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['type'], 'retailer')
        self.assertEqual(token['kyc_status'], 'approved')
        self.assertFalse(token['is_admin'])

    def test_login_wrong_password(self):
        """Test bad credentials return 401"""
        TestDataFactory.create_customer(username='buyer', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'buyer', 'password': 'wrong'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_inactive_user(self):
        """Test a disabled account cannot log in"""
        user = TestDataFactory.create_customer(username='blocked', password='testpass123')
        user.is_active = False
        user.save()
        response = self.client.post('/api/v1/auth/login/', {'username': 'blocked', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        """Test the current user payload"""
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_admin'])
        self.assertFalse(response.data['is_customer'])
        self.assertEqual(response.data['features'], [])

    def test_me_features_from_admin_group(self):
        """Test admin group features are exposed"""
        admin = TestDataFactory.create_admin()
        admin.admin_group = TestDataFactory.create_admin_group(features=['orders', 'invoices'])
        admin.save()
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.data['features'], ['orders', 'invoices'])

    def test_me_update(self):
        """Test PATCH only touches editable fields"""
        customer = TestDataFactory.create_customer(kyc_status='pending')
        self.client.authenticate_user(customer)
        response = self.client.patch('/api/v1/auth/me/', {'name': 'New Name', 'kyc_status': 'approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertEqual(customer.name, 'New Name')
        self.assertEqual(customer.kyc_status, 'pending')

    def test_me_requires_auth(self):
        """Test anonymous requests are refused"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CustomerAdminAPITests(TestCase):
    """Test customer administration endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_customer_list_with_stats(self):
        """Test the list excludes staff and reports KYC counts"""
        TestDataFactory.create_customer(kyc_status='pending')
        TestDataFactory.create_customer(kyc_status='approved')
        TestDataFactory.create_customer(kyc_status='approved')
        response = self.client.get('/api/v1/admin/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(response.data['stats']['approved'], 2)
        self.assertEqual(response.data['stats']['pending'], 1)

    def test_customer_list_filter_status(self):
        """Test filtering customers by KYC status"""
        TestDataFactory.create_customer(kyc_status='pending')
        TestDataFactory.create_customer(kyc_status='rejected')
        response = self.client.get('/api/v1/admin/customers/', {'status': 'rejected'})
        self.assertEqual(response.data['count'], 1)

    def test_customer_list_pagination(self):
        """Test per_page limits the page"""
        for _ in range(3):
            TestDataFactory.create_customer()
        response = self.client.get('/api/v1/admin/customers/', {'per_page': 2})
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)

    def test_customer_detail(self):
        """Test the detail includes KYC sections"""
        customer = TestDataFactory.create_customer()
        response = self.client.get(f'/api/v1/admin/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['kyc_profile'])
        self.assertEqual(response.data['kyc_document_count'], 0)

    def test_delete_customer(self):
        """Test deleting a customer is audited"""
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/admin/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=customer.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', model_name='User').exists())

    def test_toggle_status(self):
        """Test toggling a customer's active flag"""
        customer = TestDataFactory.create_customer()
        response = self.client.post(f'/api/v1/admin/customers/{customer.id}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

    def test_bulk_delete_without_ids(self):
        """Test bulk delete with no ids returns 400"""
        response = self.client.post('/api/v1/admin/customers/bulk-delete/', {'ids': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'No users to delete')

    def test_bulk_delete_skips_staff(self):
        """Test bulk delete never removes staff accounts"""
        customer = TestDataFactory.create_customer()
        response = self.client.post(
            '/api/v1/admin/customers/bulk-delete/', {'ids': [customer.id, self.admin.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())
        self.assertFalse(User.objects.filter(pk=customer.pk).exists())

    def test_bulk_group_update(self):
        """Test assigning a user group to several customers"""
        group = TestDataFactory.create_user_group()
        first = TestDataFactory.create_customer()
        second = TestDataFactory.create_customer()
        response = self.client.post('/api/v1/admin/customers/bulk-group/', {
            'ids': [first.id, second.id], 'user_group_id': group.id,
        }, format='json')
        self.assertEqual(response.data['updated'], 2)
        self.assertEqual(User.objects.filter(user_group=group).count(), 2)

    def test_customer_cannot_list_customers(self):
        """Test non-staff users are refused"""
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/admin/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TeamUserAPITests(TestCase):
    """Test staff account administration endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(name='Zara Admin')
        self.group = TestDataFactory.create_admin_group(features=['orders'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_staff_only(self):
        """Test the list holds staff accounts sorted by name"""
        TestDataFactory.create_admin(name='Anil Sales')
        TestDataFactory.create_customer()
        response = self.client.get('/api/v1/admin/team-users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([row['name'] for row in response.data['results']], ['Anil Sales', 'Zara Admin'])
        self.assertNotIn('password', response.data['results'][0])

    def test_create_team_user(self):
        """Test a created account is staff, approved and can log in"""
        response = self.client.post('/api/v1/admin/team-users/', {
            'name': 'Priya', 'email': 'Priya@Store.com', 'password': 'Str0ng-Passw0rd!',
            'admin_group_id': self.group.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['admin_group'], {'id': self.group.id, 'name': self.group.name})
        user = User.objects.get(pk=response.data['id'])
        self.assertTrue(user.is_staff)
        self.assertEqual(user.type, 'admin')
        self.assertEqual(user.kyc_status, 'approved')
        self.assertEqual(user.username, 'priya@store.com')
        self.assertTrue(user.check_password('Str0ng-Passw0rd!'))
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='User').exists())

    def test_create_requires_password(self):
        """Test creating without a password returns 400"""
        response = self.client.post('/api/v1/admin/team-users/', {
            'name': 'Priya', 'email': 'priya@store.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_create_duplicate_email(self):
        """Test an email already in use returns 409"""
        TestDataFactory.create_customer(email='taken@store.com')
        response = self.client.post('/api/v1/admin/team-users/', {
            'name': 'Dup', 'email': 'TAKEN@store.com', 'password': 'Str0ng-Passw0rd!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['detail'], 'Email already registered')

    def test_update_team_user(self):
        """Test updating name, group and password"""
        member = TestDataFactory.create_admin()
        response = self.client.patch(f'/api/v1/admin/team-users/{member.id}/', {
            'name': 'Renamed', 'admin_group_id': self.group.id, 'password': 'An0ther-Passw0rd!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        member.refresh_from_db()
        self.assertEqual(member.name, 'Renamed')
        self.assertEqual(member.admin_group, self.group)
        self.assertTrue(member.check_password('An0ther-Passw0rd!'))

    def test_update_email_conflict(self):
        """Test moving to another account's email returns 409"""
        member = TestDataFactory.create_admin()
        response = self.client.patch(
            f'/api/v1/admin/team-users/{member.id}/', {'email': self.admin.email}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_update_own_email_unchanged(self):
        """Test resubmitting the current email is accepted"""
        member = TestDataFactory.create_admin()
        response = self.client.put(
            f'/api/v1/admin/team-users/{member.id}/', {'name': 'Same', 'email': member.email}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_customer_is_not_a_team_user(self):
        """Test customer accounts are not reachable here"""
        customer = TestDataFactory.create_customer()
        response = self.client.get(f'/api/v1/admin/team-users/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['detail'], 'Team user not found')

    def test_delete_team_user(self):
        """Test deleting a staff account is audited"""
        member = TestDataFactory.create_admin()
        response = self.client.delete(f'/api/v1/admin/team-users/{member.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=member.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', object_id=str(member.id)).exists())

    def test_delete_superuser_forbidden(self):
        """Test superusers cannot be deleted"""
        owner = TestDataFactory.create_admin(is_superuser=True)
        response = self.client.delete(f'/api/v1/admin/team-users/{owner.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(User.objects.filter(pk=owner.pk).exists())

    def test_group_update(self):
        """Test moving a staff account to another admin group"""
        member = TestDataFactory.create_admin()
        response = self.client.patch(
            f'/api/v1/admin/team-users/{member.id}/group/', {'admin_group_id': self.group.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        member.refresh_from_db()
        self.assertEqual(member.admin_group, self.group)

    def test_group_update_requires_group(self):
        """Test the group route needs an admin group id"""
        member = TestDataFactory.create_admin()
        response = self.client.patch(f'/api/v1/admin/team-users/{member.id}/group/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bulk_delete_skips_superusers_and_customers(self):
        """Test bulk delete only removes regular staff accounts"""
        member = TestDataFactory.create_admin()
        owner = TestDataFactory.create_admin(is_superuser=True)
        customer = TestDataFactory.create_customer()
        response = self.client.post('/api/v1/admin/team-users/bulk-delete/', {
            'ids': [member.id, owner.id, customer.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertFalse(User.objects.filter(pk=member.pk).exists())
        self.assertTrue(User.objects.filter(pk__in=[owner.pk, customer.pk]).count() == 2)

    def test_customer_forbidden(self):
        """Test customers cannot manage team users"""
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/v1/admin/team-users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SettingAndAuditAPITests(TestCase):
    """Test settings and audit log endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_setting_crud(self):
        """Test creating, updating and deleting a setting"""
        response = self.client.post('/api/v1/settings/', {'key': 'invoice_default_terms', 'value': 'Net 30'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        setting_id = response.data['id']

        response = self.client.patch(f'/api/v1/settings/{setting_id}/', {'value': 'Net 15'}, format='json')
        self.assertEqual(response.data['value'], 'Net 15')
        self.assertEqual(Setting.get_value('invoice_default_terms'), 'Net 15')

        response = self.client.delete(f'/api/v1/settings/{setting_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertIsNone(Setting.get_value('invoice_default_terms'))

    def test_audit_log_filters(self):
        """Test filtering audit logs by action"""
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id='1')
        create_audit_log(user=self.admin, action='delete', model_name='Product', object_id='2')
        response = self.client.get('/api/v1/audit-logs/', {'action': 'delete'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['object_id'], '2')


class CoreUtilsTests(TestCase):
    """Test shared helpers"""

    def test_create_audit_log_requires_fields(self):
        """Test an incomplete audit entry is skipped"""
        self.assertIsNone(create_audit_log(action='create', model_name='Product'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_create_audit_log_records_ip(self):
        """Test the client IP comes from X-Forwarded-For"""
        request = RequestFactory().post('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2')
        request.user = TestDataFactory.create_admin()
        entry = create_audit_log(request=request, action='update', model_name='Order', object_id=5)
        self.assertEqual(entry.ip_address, '10.0.0.1')
        self.assertEqual(entry.object_id, '5')
        self.assertEqual(get_client_ip(None), None)

    def test_parse_helpers(self):
        """Test request parsing helpers"""
        self.assertTrue(parse_bool('on'))
        self.assertFalse(parse_bool('no'))
        self.assertIsNone(parse_bool(''))
        self.assertEqual(parse_id_list('1, 2,x'), [1, 2])
        self.assertEqual(parse_id_list(['3', 4]), [3, 4])
        self.assertEqual(to_decimal('12.50'), Decimal('12.50'))
        self.assertIsNone(to_decimal('abc'))
        self.assertEqual(to_int('7'), 7)
        self.assertEqual(to_int('', 0), 0)

    def test_labels_and_codes(self):
        """Test status labels and codes"""
        self.assertEqual(format_status_label('in_production'), 'In Production')
        self.assertEqual(format_status_label(None), '')
        self.assertEqual(make_code('Rose Gold'), 'rose_gold')

    def test_send_notification(self):
        """Test notifications go out and skip missing recipients"""
        self.assertTrue(send_notification('customer@test.com', 'Hello', 'Body'))
        self.assertFalse(send_notification('', 'Hello', 'Body'))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Hello')

    def test_send_notification_with_attachment(self):
        """Test attachments are added to the message"""
        send_notification('customer@test.com', 'Invoice', 'Body', attachments=[('a.pdf', b'%PDF', 'application/pdf')])
        self.assertEqual(len(mail.outbox[0].attachments), 1)
