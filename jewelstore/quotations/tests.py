"""
Comprehensive test suite for Quotations module
Tests: Submission, cancellation, messages, admin approve/reject and customer confirmation
"""
from datetime import timedelta
from decimal import Decimal
from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
import uuid
from jewelstore.core.models import AuditLog
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.orders.models import Order, OrderStatusHistory
from jewelstore.quotations.models import Quotation, QuotationMessage


class QuotationTestMixin:
    """Shared catalog and users for quotation tests"""

    def create_catalog(self):
        gold = TestDataFactory.create_metal(name='Gold')
        purity = TestDataFactory.create_metal_purity(metal=gold, name='18K')
        TestDataFactory.create_price_rate(metal='gold', purity='18K', price_per_gram=Decimal('5000.00'))
        self.product = TestDataFactory.create_product(name='Solitaire Ring', making_charge_amount=Decimal('1000.00'))
        self.variant = TestDataFactory.create_variant(
            product=self.product, inventory_quantity=10, metal_purity=purity, metal_weight=Decimal('2.000')
        )


class CustomerQuotationAPITests(QuotationTestMixin, TestCase):
    """Test customer quotation API endpoints"""

    def setUp(self):
        self.create_catalog()
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)

    def test_submit_single_item(self):
        """Test submitting a single item at the top level"""
        response = self.client.post(
            '/api/v1/quotations/',
            {'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 2, 'notes': 'Size 12'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('Quotation submitted successfully', response.data['message'])
        quotation = Quotation.objects.get()
        self.assertEqual(quotation.status, 'pending')
        self.assertEqual(quotation.quantity, 2)
        self.assertEqual(response.data['quotation_group_id'], str(quotation.quotation_group_id))
        self.assertEqual(len(mail.outbox), 1)

    def test_submit_items_share_group(self):
        """Test items submitted together share one group id"""
        other = TestDataFactory.create_variant(inventory_quantity=3)
        response = self.client.post('/api/v1/quotations/', {'items': [
            {'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 1},
            {'product_id': other.product_id, 'quantity': 1},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['quotations']), 2)
        self.assertEqual(Quotation.objects.values('quotation_group_id').distinct().count(), 1)

    def test_submit_without_items(self):
        """Test an empty submission is rejected"""
        response = self.client.post('/api/v1/quotations/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_product(self):
        """Test an unknown product returns 404"""
        response = self.client.post('/api/v1/quotations/', {'product_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_foreign_variant(self):
        """Test a variant of another product is rejected"""
        other = TestDataFactory.create_variant()
        response = self.client.post(
            '/api/v1/quotations/', {'product_id': self.product.id, 'variant_id': other.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Product variant does not belong to this product')

    def test_out_of_stock(self):
        """Test a variant without inventory is rejected"""
        self.variant.inventory_quantity = 0
        self.variant.save()
        response = self.client.post(
            '/api/v1/quotations/', {'product_id': self.product.id, 'variant_id': self.variant.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Product is out of stock')

    def test_quantity_exceeds_inventory(self):
        """Test requesting more than the available inventory"""
        response = self.client.post(
            '/api/v1/quotations/',
            {'product_id': self.product.id, 'variant_id': self.variant.id, 'quantity': 11}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('exceeds the available inventory (10)', response.data['detail'])
        self.assertFalse(Quotation.objects.exists())

    def test_default_variant_stock_checked(self):
        """Test a product without a chosen variant is checked against its default variant"""
        response = self.client.post(
            '/api/v1/quotations/', {'product_id': self.product.id, 'quantity': 50}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_kyc_forbidden(self):
        """Test customers without KYC approval cannot request quotations"""
        self.customer.kyc_status = 'pending'
        self.customer.save()
        response = self.client.get('/api/v1/quotations/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_own_quotations(self):
        """Test the list only holds the caller's quotations"""
        own = TestDataFactory.create_quotation(user=self.customer, variant=self.variant)
        TestDataFactory.create_quotation(variant=self.variant)
        response = self.client.get('/api/v1/quotations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [own.id])

    def test_detail_with_tax_summary(self):
        """Test the detail carries group items, messages and a tax summary"""
        quotation = TestDataFactory.create_quotation(user=self.customer, variant=self.variant)
        response = self.client.get(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['group_items']), 1)
        self.assertEqual(response.data['messages'], [])
        self.assertEqual(response.data['tax_summary']['subtotal'], 11000.0)

    def test_other_users_quotation(self):
        """Test another customer's quotation is forbidden"""
        quotation = TestDataFactory.create_quotation(variant=self.variant)
        response = self.client.get(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.post(f'/api/v1/quotations/{quotation.id}/messages/', {'message': 'Hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cancel_pending(self):
        """Test cancelling a pending quotation deletes it"""
        quotation = TestDataFactory.create_quotation(user=self.customer, variant=self.variant)
        response = self.client.delete(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Quotation.objects.filter(pk=quotation.pk).exists())

    def test_cancel_non_pending(self):
        """Test only pending quotations can be cancelled"""
        quotation = TestDataFactory.create_quotation(user=self.customer, variant=self.variant, status='approved')
        response = self.client.delete(f'/api/v1/quotations/{quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Quotation.objects.filter(pk=quotation.pk).exists())

    def test_send_message(self):
        """Test a customer message is stored against the quotation"""
        quotation = TestDataFactory.create_quotation(user=self.customer, variant=self.variant)
        response = self.client.post(
            f'/api/v1/quotations/{quotation.id}/messages/', {'message': '  Can you do rose gold?  '}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['sender_type'], 'customer')
        self.assertEqual(QuotationMessage.objects.get().message, 'Can you do rose gold?')

    def test_empty_message(self):
        """Test a blank message is rejected"""
        quotation = TestDataFactory.create_quotation(user=self.customer, variant=self.variant)
        response = self.client.post(f'/api/v1/quotations/{quotation.id}/messages/', {'message': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminQuotationAPITests(QuotationTestMixin, TestCase):
    """Test admin quotation API endpoints"""

    def setUp(self):
        self.create_catalog()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer()
        self.group_id = uuid.uuid4()
        self.quotation = TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quantity=3, quotation_group_id=self.group_id
        )
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_groups(self):
        """Test the admin list returns one row per group"""
        TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quotation_group_id=self.group_id
        )
        TestDataFactory.create_quotation(variant=self.variant)
        response = self.client.get('/api/v1/admin/quotations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        group = [row for row in response.data['results'] if row['quotation_group_id'] == str(self.group_id)][0]
        self.assertEqual(group['items_count'], 2)
        self.assertEqual(len(group['quotations']), 2)

    def test_approve_creates_order(self):
        """Test approving creates an in-production order and reserves inventory"""
        response = self.client.post(
            f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {'admin_notes': 'Go ahead'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order = Order.objects.get(pk=response.data['order_id'])
        self.assertEqual(order.status, 'in_production')
        self.assertEqual(order.user, self.customer)
        self.assertEqual(order.items.get().quantity, 3)
        self.assertEqual(order.subtotal_amount, Decimal('33000.00'))

        history = OrderStatusHistory.objects.get(order=order)
        self.assertEqual(history.meta['source'], 'quotation_approval')
        self.assertEqual(history.meta['quotation_group_ids'], [str(self.group_id)])

        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'approved')
        self.assertEqual(self.quotation.order, order)
        self.assertEqual(self.quotation.admin_notes, 'Go ahead')
        self.assertIsNotNone(self.quotation.approved_at)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.inventory_quantity, 7)
        self.assertTrue(AuditLog.objects.filter(action='quotation_approve', object_reference=order.reference).exists())

    def test_approve_floors_inventory(self):
        """Test inventory never goes below zero"""
        self.quotation.quantity = 25
        self.quotation.save()
        self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {}, format='json')
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.inventory_quantity, 0)

    def test_approve_twice(self):
        """Test approving an approved quotation returns 400"""
        self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {}, format='json')
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Already approved')
        self.assertEqual(Order.objects.count(), 1)

    def test_approve_declined(self):
        """Test a declined quotation cannot be approved"""
        self.quotation.status = 'customer_declined'
        self.quotation.save()
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reject_group(self):
        """Test rejecting skips lines that are already approved"""
        TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quotation_group_id=self.group_id, status='approved'
        )
        response = self.client.post(
            f'/api/v1/admin/quotations/{self.quotation.id}/reject/', {'admin_notes': 'Not available'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rejected'], 1)
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'rejected')
        self.assertEqual(self.quotation.admin_notes, 'Not available')
        self.assertEqual(Quotation.objects.filter(status='approved').count(), 1)

    def test_reject_nothing_left(self):
        """Test rejecting a fully decided group returns 400"""
        self.quotation.status = 'rejected'
        self.quotation.save()
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/reject/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_message(self):
        """Test an admin message is stored with the admin sender type"""
        response = self.client.post(
            f'/api/v1/admin/quotations/{self.quotation.id}/messages/', {'message': 'Design attached'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sender_type'], 'admin')

    def test_customer_forbidden(self):
        """Test customers cannot use the admin routes"""
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AdminQuotationGroupEditTests(QuotationTestMixin, TestCase):
    """Test admin edits of a quotation group: adding, swapping and removing lines"""

    def setUp(self):
        self.create_catalog()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer()
        self.group_id = uuid.uuid4()
        self.quotation = TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quantity=2, quotation_group_id=self.group_id
        )
        self.other_variant = TestDataFactory.create_variant(inventory_quantity=4)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_add_item(self):
        """Test an added line joins the group and awaits customer confirmation"""
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/items/', {
            'product_id': self.other_variant.product_id, 'variant_id': self.other_variant.id, 'quantity': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        added = Quotation.objects.get(pk=response.data['id'])
        self.assertEqual(added.quotation_group_id, self.group_id)
        self.assertEqual(added.user, self.customer)
        self.assertEqual(added.status, 'pending_customer_confirmation')
        message = QuotationMessage.objects.get(quotation=added)
        self.assertEqual(message.sender_type, 'admin')
        self.assertIn(self.other_variant.product.name, message.message)
        self.assertEqual(len(mail.outbox), 1)
        self.assertTrue(AuditLog.objects.filter(action='create').exists())

    def test_add_item_with_notes(self):
        """Test admin notes replace the generated message"""
        self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/items/', {
            'product_id': self.other_variant.product_id, 'quantity': 1, 'admin_notes': 'Matching earrings',
        }, format='json')
        self.assertEqual(QuotationMessage.objects.get().message, 'Matching earrings')

    def test_add_item_insufficient_inventory(self):
        """Test adding more than the variant holds returns 400"""
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/items/', {
            'product_id': self.other_variant.product_id, 'variant_id': self.other_variant.id, 'quantity': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Insufficient inventory')
        self.assertEqual(Quotation.objects.count(), 1)

    def test_add_item_foreign_variant(self):
        """Test a variant of another product returns 400"""
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/items/', {
            'product_id': self.product.id, 'variant_id': self.other_variant.id, 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Invalid variant')

    def test_add_item_unknown_product(self):
        """Test an unknown product returns 404"""
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/items/', {
            'product_id': 999999, 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_change_product(self):
        """Test swapping the product sends the whole group back for confirmation"""
        second = TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quotation_group_id=self.group_id
        )
        response = self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/product/', {
            'product_id': self.other_variant.product_id, 'variant_id': self.other_variant.id, 'quantity': 3,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.product, self.other_variant.product)
        self.assertEqual(self.quotation.variant, self.other_variant)
        self.assertEqual(self.quotation.quantity, 3)
        second.refresh_from_db()
        self.assertEqual(second.status, 'pending_customer_confirmation')
        self.assertEqual(second.product, self.product)
        message = QuotationMessage.objects.get()
        self.assertEqual(message.message, f"Product changed from 'Solitaire Ring' to '{self.other_variant.product.name}'.")
        self.assertEqual(len(mail.outbox), 1)

    def test_change_product_drops_stale_variant(self):
        """Test the old variant is not kept against a different product"""
        self.client.post(f'/api/v1/admin/quotations/{self.quotation.id}/product/', {
            'product_id': self.other_variant.product_id, 'quantity': 1,
        }, format='json')
        self.quotation.refresh_from_db()
        self.assertIsNone(self.quotation.variant)

    def test_remove_line_keeps_conversation(self):
        """Test deleting one line moves the group's messages to a remaining line"""
        second = TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quotation_group_id=self.group_id
        )
        QuotationMessage.objects.create(quotation=self.quotation, user=self.admin, sender_type='admin', message='Hi')
        response = self.client.delete(f'/api/v1/admin/quotations/{self.quotation.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_last_quotation'])
        self.assertEqual(response.data['quotation_group_id'], str(self.group_id))
        self.assertFalse(Quotation.objects.filter(pk=self.quotation.id).exists())
        self.assertEqual(QuotationMessage.objects.get().quotation, second)
        self.assertTrue(AuditLog.objects.filter(action='delete').exists())

    def test_remove_last_line(self):
        """Test deleting the only line reports it was the last one"""
        QuotationMessage.objects.create(quotation=self.quotation, user=self.admin, sender_type='admin', message='Hi')
        response = self.client.delete(f'/api/v1/admin/quotations/{self.quotation.id}/')
        self.assertTrue(response.data['is_last_quotation'])
        self.assertFalse(Quotation.objects.exists())
        self.assertFalse(QuotationMessage.objects.exists())

    def test_remove_missing_line(self):
        """Test deleting an unknown quotation returns 404"""
        response = self.client.delete('/api/v1/admin/quotations/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_remove_group(self):
        """Test deleting a group removes every line of it and nothing else"""
        TestDataFactory.create_quotation(user=self.customer, variant=self.variant, quotation_group_id=self.group_id)
        other = TestDataFactory.create_quotation(variant=self.variant)
        response = self.client.delete(f'/api/v1/admin/quotations/{self.quotation.id}/group/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['removed'], 2)
        self.assertEqual(list(Quotation.objects.all()), [other])

    def test_customer_forbidden(self):
        """Test customers cannot edit groups"""
        self.client.authenticate_user(self.customer)
        response = self.client.delete(f'/api/v1/admin/quotations/{self.quotation.id}/group/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Quotation.objects.exists())


class QuotationStatisticsTests(QuotationTestMixin, TestCase):
    """Test the admin quotation report"""

    def setUp(self):
        self.create_catalog()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer()
        group_id = uuid.uuid4()
        TestDataFactory.create_quotation(user=self.customer, variant=self.variant, quantity=5, quotation_group_id=group_id)
        TestDataFactory.create_quotation(
            user=self.customer, variant=self.variant, quantity=2, quotation_group_id=group_id, status='approved'
        )
        TestDataFactory.create_quotation(variant=self.variant, quantity=1)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_groups_counted_once(self):
        """Test each group counts once under its newest line"""
        response = self.client.get('/api/v1/admin/quotations/statistics/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary'], {
            'total_quotations': 2, 'total_quantity': '3', 'average_quantity': '1.50',
        })
        self.assertEqual(response.data['by_status'], [
            {'status': 'approved', 'status_label': 'Approved', 'count': 1, 'quantity': 2},
            {'status': 'pending', 'status_label': 'Pending', 'count': 1, 'quantity': 1},
        ])
        self.assertEqual(response.data['by_date'][0]['count'], 2)

    def test_filter_by_user(self):
        """Test the report narrows to one customer"""
        response = self.client.get(f'/api/v1/admin/quotations/statistics/?user_id={self.customer.id}')
        self.assertEqual(response.data['summary']['total_quotations'], 1)
        self.assertEqual(response.data['summary']['total_quantity'], '2')

    def test_future_range_empty(self):
        """Test a range with no quotations reports zeros"""
        tomorrow = (timezone.localdate() + timedelta(days=1)).isoformat()
        response = self.client.get(f'/api/v1/admin/quotations/statistics/?start_date={tomorrow}')
        self.assertEqual(response.data['summary']['total_quotations'], 0)
        self.assertEqual(response.data['summary']['average_quantity'], '0.00')
        self.assertEqual(response.data['by_status'], [])


class QuotationConfirmationTests(QuotationTestMixin, TestCase):
    """Test the customer confirmation round trip"""

    def setUp(self):
        self.create_catalog()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer()
        self.quotation = TestDataFactory.create_quotation(user=self.customer, variant=self.variant)
        self.admin_client = AuthenticatedAPIClient()
        self.admin_client.authenticate_user(self.admin)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)

    def request_confirmation(self, **data):
        return self.admin_client.post(
            f'/api/v1/admin/quotations/{self.quotation.id}/request-confirmation/', data, format='json'
        )

    def test_request_confirmation(self):
        """Test requesting confirmation updates the line and posts an admin message"""
        response = self.request_confirmation(notes='Updated to 3 pieces', quantity=3)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'pending_customer_confirmation')
        self.assertEqual(self.quotation.quantity, 3)
        self.assertEqual(self.quotation.admin_notes, 'Updated to 3 pieces')
        message = QuotationMessage.objects.get()
        self.assertEqual(message.sender_type, 'admin')
        self.assertEqual(message.message, 'Updated to 3 pieces')

    def test_request_confirmation_default_message(self):
        """Test the default message when no notes are given"""
        self.request_confirmation()
        self.assertEqual(QuotationMessage.objects.get().message, 'Please review updated quotation details.')

    def test_request_confirmation_foreign_variant(self):
        """Test a variant of another product is rejected"""
        other = TestDataFactory.create_variant()
        response = self.request_confirmation(variant_id=other.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'pending')

    def test_confirm_then_approve(self):
        """Test a confirmed quotation can be approved"""
        self.request_confirmation()
        response = self.client.post(f'/api/v1/quotations/{self.quotation.id}/confirm/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Quotation approved. Awaiting admin confirmation.')
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'customer_confirmed')

        response = self.admin_client.post(f'/api/v1/admin/quotations/{self.quotation.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_confirm_twice(self):
        """Test confirming again reports the existing confirmation"""
        self.request_confirmation()
        self.client.post(f'/api/v1/quotations/{self.quotation.id}/confirm/', {}, format='json')
        response = self.client.post(f'/api/v1/quotations/{self.quotation.id}/confirm/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Quotation already confirmed.')

    def test_decline(self):
        """Test declining records a customer message"""
        self.request_confirmation()
        response = self.client.post(f'/api/v1/quotations/{self.quotation.id}/decline/', {}, format='json')
        self.assertEqual(response.data['message'], 'Quotation declined.')
        self.quotation.refresh_from_db()
        self.assertEqual(self.quotation.status, 'customer_declined')
        self.assertTrue(QuotationMessage.objects.filter(
            sender_type='customer', message='Customer declined the updated quotation.'
        ).exists())

    def test_confirm_without_request(self):
        """Test confirming a quotation that was not sent back returns 400"""
        response = self.client.post(f'/api/v1/quotations/{self.quotation.id}/confirm/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'No confirmation required for this quotation.')

    def test_confirm_other_users_quotation(self):
        """Test confirming another customer's quotation is forbidden"""
        other = TestDataFactory.create_quotation(variant=self.variant, status='pending_customer_confirmation')
        response = self.client.post(f'/api/v1/quotations/{other.id}/confirm/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
