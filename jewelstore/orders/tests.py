"""
Comprehensive test suite for Orders module
Tests: Order listing and detail, status updates with history, statistics,
configurable order statuses and customer order access
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from jewelstore.core.models import AuditLog
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.orders.models import Order, OrderStatus, OrderStatusHistory
from jewelstore.orders.statistics import order_statistics, DEFAULT_STATUS_COLOR
from jewelstore.orders.utils import generate_order_reference, record_status_change, item_price_breakdown


class OrderUtilsTests(TestCase):
    """Test order helper functions"""

    def test_generate_reference(self):
        """Test references are 10 uppercase alphanumerics"""
        reference = generate_order_reference()
        self.assertRegex(reference, r'^[A-Z0-9]{10}$')

    def test_record_status_change(self):
        """Test status change returns the previous status and writes history"""
        admin = TestDataFactory.create_admin()
        order = TestDataFactory.create_order(status='pending')
        previous = record_status_change(order, 'approved', meta={'note': 'ok'}, user=admin)
        self.assertEqual(previous, 'pending')
        order.refresh_from_db()
        self.assertEqual(order.status, 'approved')
        history = OrderStatusHistory.objects.get(order=order)
        self.assertEqual(history.meta, {'note': 'ok'})
        self.assertEqual(history.created_by, admin)

    def test_item_breakdown_from_metadata(self):
        """Test the item's own breakdown wins"""
        item = TestDataFactory.create_order_item()
        item.metadata = {'price_breakdown': {'metal': 100, 'making': 20, 'total': 120}}
        item.save()
        breakdown = item_price_breakdown(item)
        self.assertEqual(breakdown['making'], 20.0)
        self.assertEqual(breakdown['total'], 120.0)

    def test_item_breakdown_from_order(self):
        """Test falling back to the order's breakdown lines"""
        item = TestDataFactory.create_order_item()
        item.order.price_breakdown = {'items': [
            {'product_id': item.product_id, 'variant_id': None, 'unit': {'metal': 50, 'making': 5, 'total': 55}},
        ]}
        item.order.save()
        self.assertEqual(item_price_breakdown(item)['metal'], 50.0)

    def test_item_breakdown_missing(self):
        """Test no breakdown gives None"""
        item = TestDataFactory.create_order_item()
        self.assertIsNone(item_price_breakdown(item))


class OrderStatisticsTests(TestCase):
    """Test order statistics"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        TestDataFactory.create_order(user=self.customer, status='pending', subtotal=Decimal('1000.00'), tax=Decimal('30.00'))
        TestDataFactory.create_order(user=self.customer, status='delivered', subtotal=Decimal('2000.00'), tax=Decimal('60.00'))
        TestDataFactory.create_order(status='delivered', subtotal=Decimal('500.00'), tax=Decimal('0.00'))

    def test_summary(self):
        """Test totals across all orders"""
        stats = order_statistics()
        self.assertEqual(stats['summary']['total_orders'], 3)
        self.assertEqual(stats['summary']['total_revenue'], '3590.00')
        self.assertEqual(stats['summary']['total_tax'], '90.00')
        self.assertEqual(stats['summary']['average_order_value'], '1196.67')

    def test_by_status(self):
        """Test per-status counts sorted by status with colors"""
        TestDataFactory.create_order_status(name='Delivered', code='delivered')
        OrderStatus.objects.filter(code='delivered').update(color='#16a34a')
        stats = order_statistics()
        self.assertEqual([s['status'] for s in stats['by_status']], ['delivered', 'pending'])
        self.assertEqual(stats['by_status'][0]['count'], 2)
        self.assertEqual(stats['by_status'][0]['color'], '#16a34a')
        self.assertEqual(stats['by_status'][1]['color'], DEFAULT_STATUS_COLOR)

    def test_filter_by_user(self):
        """Test statistics for one customer"""
        stats = order_statistics(user_id=self.customer.id)
        self.assertEqual(stats['summary']['total_orders'], 2)

    def test_by_date(self):
        """Test per-day aggregation"""
        stats = order_statistics()
        self.assertEqual(len(stats['by_date']), 1)
        self.assertEqual(stats['by_date'][0]['count'], 3)

    def test_date_range_excludes(self):
        """Test an old date range returns nothing"""
        stats = order_statistics(start_date='2000-01-01', end_date='2000-01-31')
        self.assertEqual(stats['summary']['total_orders'], 0)
        self.assertEqual(stats['summary']['average_order_value'], '0.00')

    def test_invalid_dates_ignored(self):
        """Test unparseable dates are ignored"""
        stats = order_statistics(start_date='not-a-date')
        self.assertEqual(stats['summary']['total_orders'], 3)


class AdminOrderAPITests(TestCase):
    """Test admin order API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.order = TestDataFactory.create_order(reference='ORDREF0001')
        TestDataFactory.create_order_item(order=self.order)

    def test_list_orders(self):
        """Test the list carries status options"""
        TestDataFactory.create_order()
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertIn({'value': 'in_production', 'label': 'In Production'}, response.data['statuses'])

    def test_list_orders_search(self):
        """Test searching by reference"""
        TestDataFactory.create_order()
        response = self.client.get('/api/v1/admin/orders/', {'search': 'ORDREF'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['items_count'], 1)

    def test_list_orders_status_filter(self):
        """Test filtering by status"""
        TestDataFactory.create_order(status='delivered')
        response = self.client.get('/api/v1/admin/orders/', {'status': 'delivered'})
        self.assertEqual(response.data['count'], 1)

    def test_order_detail(self):
        """Test the detail payload"""
        response = self.client.get(f'/api/v1/admin/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)
        self.assertIsNone(response.data['invoice'])
        self.assertEqual(response.data['status_label'], 'Pending')

    def test_order_detail_with_invoice(self):
        """Test the detail links the invoice"""
        invoice = TestDataFactory.create_invoice(order=self.order)
        response = self.client.get(f'/api/v1/admin/orders/{self.order.id}/')
        self.assertEqual(response.data['invoice']['invoice_number'], invoice.invoice_number)

    def test_update_status(self):
        """Test updating the status records history and an audit entry"""
        response = self.client.post(
            f'/api/v1/admin/orders/{self.order.id}/status/', {'status': 'in_production'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Order status updated to In Production.')
        self.assertEqual(response.data['order']['status'], 'in_production')
        self.assertEqual(len(response.data['order']['status_history']), 1)
        audit = AuditLog.objects.get(action='order_status')
        self.assertEqual(audit.changes['status'], {'old': 'pending', 'new': 'in_production'})

    def test_update_status_invalid(self):
        """Test an unknown status is rejected"""
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_statistics_endpoint(self):
        """Test the statistics endpoint"""
        response = self.client.get('/api/v1/admin/orders/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['total_orders'], 1)

    def test_order_not_found(self):
        """Test a missing order returns 404"""
        response = self.client.get('/api/v1/admin/orders/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class OrderStatusAPITests(TestCase):
    """Test configurable order status endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_status(self):
        """Test creating an order status"""
        response = self.client.post('/api/v1/admin/order-statuses/', {
            'name': 'Pending', 'code': 'pending', 'color': '#f59e0b',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['color'], '#f59e0b')

    def test_create_status_bad_color(self):
        """Test colors must be hex values"""
        response = self.client.post('/api/v1/admin/order-statuses/', {
            'name': 'Pending', 'code': 'pending', 'color': 'orange',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_duplicate_status(self):
        """Test a duplicate name returns 400"""
        TestDataFactory.create_order_status(name='Pending', code='pending')
        response = self.client.post('/api/v1/admin/order-statuses/', {'name': 'pending', 'code': 'other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Order status with this name already exists')

    def test_single_default(self):
        """Test a new default clears the previous one"""
        old = TestDataFactory.create_order_status(name='Pending', code='pending', is_default=True)
        response = self.client.post('/api/v1/admin/order-statuses/', {
            'name': 'Approved', 'code': 'approved', 'is_default': True,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        old.refresh_from_db()
        self.assertFalse(old.is_default)
        self.assertEqual(OrderStatus.objects.filter(is_default=True).count(), 1)

    def test_delete_default_with_others(self):
        """Test the default cannot be deleted while other statuses exist"""
        default = TestDataFactory.create_order_status(name='Pending', code='pending', is_default=True)
        TestDataFactory.create_order_status(name='Approved', code='approved')
        response = self.client.delete(f'/api/v1/admin/order-statuses/{default.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'You must designate another default status before deleting this one.')

    def test_delete_last_default(self):
        """Test the only remaining status can be deleted"""
        default = TestDataFactory.create_order_status(name='Pending', code='pending', is_default=True)
        response = self.client.delete(f'/api/v1/admin/order-statuses/{default.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_bulk_delete_with_default(self):
        """Test bulk delete refuses to remove the default"""
        default = TestDataFactory.create_order_status(name='Pending', code='pending', is_default=True)
        other = TestDataFactory.create_order_status(name='Approved', code='approved')
        response = self.client.post(
            '/api/v1/admin/order-statuses/bulk-delete/', {'ids': [default.id, other.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(OrderStatus.objects.count(), 2)

    def test_bulk_delete(self):
        """Test bulk deleting non-default statuses"""
        TestDataFactory.create_order_status(name='Pending', code='pending', is_default=True)
        other = TestDataFactory.create_order_status(name='Approved', code='approved')
        response = self.client.post('/api/v1/admin/order-statuses/bulk-delete/', {'ids': [other.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(OrderStatus.objects.count(), 1)


class CustomerOrderAPITests(TestCase):
    """Test customer order endpoints"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)
        self.order = TestDataFactory.create_order(user=self.customer)

    def test_list_own_orders(self):
        """Test customers only see their own orders"""
        TestDataFactory.create_order()
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], self.order.id)

    def test_detail_own_order(self):
        """Test a customer can open their order"""
        response = self.client.get(f'/api/v1/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reference'], self.order.reference)

    def test_detail_other_order(self):
        """Test another customer's order returns 404"""
        other = TestDataFactory.create_order()
        response = self.client.get(f'/api/v1/orders/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_cannot_update_status(self):
        """Test customers cannot use admin order routes"""
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/status/', {'status': 'delivered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Order.objects.get(pk=self.order.pk).status, 'pending')
