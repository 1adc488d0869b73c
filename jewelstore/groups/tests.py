"""
Comprehensive test suite for Groups module
Tests: Admin, user and customer group CRUD, uniqueness and admin assignment
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.groups.models import AdminGroup, UserGroup, CustomerGroup

User = get_user_model()


class GroupAPITests(TestCase):
    """Test group API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_user_group_generates_code(self):
        """Test the code is derived from the name when omitted"""
        response = self.client.post('/api/v1/admin/user-groups/', {'name': 'Wholesale Partners'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'wholesale_partners')
        self.assertEqual(response.data['users_count'], 0)

    def test_duplicate_group_name(self):
        """Test a duplicate name returns 409"""
        TestDataFactory.create_customer_group(name='VIP')
        response = self.client.post('/api/v1/admin/customer-groups/', {'name': 'vip', 'code': 'vip2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_duplicate_group_code(self):
        """Test a duplicate code returns 409"""
        TestDataFactory.create_user_group(name='North', code='region')
        response = self.client.post('/api/v1/admin/user-groups/', {'name': 'South', 'code': 'region'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_update_group(self):
        """Test renaming a group keeps its code"""
        group = TestDataFactory.create_user_group(name='Old', code='old')
        response = self.client.patch(f'/api/v1/admin/user-groups/{group.id}/', {'name': 'New'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'New')
        self.assertEqual(response.data['code'], 'old')

    def test_update_group_to_taken_name(self):
        """Test renaming onto another group's name returns 409"""
        TestDataFactory.create_user_group(name='Taken')
        group = TestDataFactory.create_user_group(name='Mine')
        response = self.client.patch(f'/api/v1/admin/user-groups/{group.id}/', {'name': 'Taken'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_group_detaches_users(self):
        """Test deleting a group clears it from its customers"""
        group = TestDataFactory.create_user_group()
        customer = TestDataFactory.create_customer()
        customer.user_group = group
        customer.save()
        response = self.client.delete(f'/api/v1/admin/user-groups/{group.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        customer.refresh_from_db()
        self.assertIsNone(customer.user_group_id)

    def test_bulk_delete(self):
        """Test bulk deleting customer groups"""
        first = TestDataFactory.create_customer_group()
        second = TestDataFactory.create_customer_group()
        response = self.client.post('/api/v1/admin/customer-groups/bulk-delete/', {'ids': [first.id, second.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CustomerGroup.objects.count(), 0)

    def test_admin_group_features_validation(self):
        """Test features must be a list of strings"""
        response = self.client.post('/api/v1/admin/admin-groups/', {'name': 'Ops', 'features': 'orders'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_admin_group(self):
        """Test creating an admin group with features"""
        response = self.client.post(
            '/api/v1/admin/admin-groups/', {'name': 'Ops', 'features': ['orders', 'quotations']}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(AdminGroup.objects.get().features, ['orders', 'quotations'])


class AdminGroupMembershipTests(TestCase):
    """Test assigning admins to admin groups"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.group = TestDataFactory.create_admin_group()

    def test_list_admins_with_selection(self):
        """Test staff users are listed with a selected flag"""
        member = TestDataFactory.create_admin()
        member.admin_group = self.group
        member.save()
        TestDataFactory.create_customer()
        response = self.client.get(f'/api/v1/admin/admin-groups/{self.group.id}/admins/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['admins']), 2)
        selected = [a['id'] for a in response.data['admins'] if a['selected']]
        self.assertEqual(selected, [member.id])

    def test_assign_admins_replaces_membership(self):
        """Test the posted ids become the exact membership"""
        previous = TestDataFactory.create_admin()
        previous.admin_group = self.group
        previous.save()
        newcomer = TestDataFactory.create_admin()
        customer = TestDataFactory.create_customer()

        response = self.client.post(
            f'/api/v1/admin/admin-groups/{self.group.id}/admins/',
            {'admin_ids': [newcomer.id, customer.id]}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assigned'], 1)
        self.assertEqual(list(User.objects.filter(admin_group=self.group).values_list('id', flat=True)), [newcomer.id])


class GroupModelTests(TestCase):
    """Test group model basics"""

    def test_str(self):
        """Test group string representation"""
        group = UserGroup.objects.create(name='Retail', code='retail')
        self.assertEqual(str(group), 'Retail')
