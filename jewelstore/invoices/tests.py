"""
Comprehensive test suite for Invoices module
Tests: Numbering, creation from orders, admin/customer API, PDF layout and formatting
"""
from datetime import date, timedelta
from decimal import Decimal
from unittest import mock
from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from jewelstore.core.exceptions import ConflictError, NotFoundError
from jewelstore.core.models import AuditLog, Setting
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.invoices.models import Invoice
from jewelstore.invoices.pdf_generator import (
    build_invoice_layout, format_currency, format_date, MARGIN
)
from jewelstore.invoices.utils import create_invoice, generate_invoice_number


class InvoiceNumberTests(TestCase):
    """Test invoice number generation"""

    def test_first_number_of_day(self):
        """Test the first number of a day ends in 0001"""
        self.assertEqual(generate_invoice_number(date(2026, 10, 19)), 'INV-20261019-0001')

    def test_number_increments(self):
        """Test the sequence continues from the highest number of the day"""
        TestDataFactory.create_invoice(invoice_number='INV-20261019-0007')
        TestDataFactory.create_invoice(invoice_number='INV-20261018-0042')
        self.assertEqual(generate_invoice_number(date(2026, 10, 19)), 'INV-20261019-0008')

    def test_number_past_four_digits(self):
        """Test the sequence keeps counting after 9999"""
        TestDataFactory.create_invoice(invoice_number='INV-20261019-9999')
        TestDataFactory.create_invoice(invoice_number='INV-20261019-10000')
        self.assertEqual(generate_invoice_number(date(2026, 10, 19)), 'INV-20261019-10001')


class CreateInvoiceTests(TestCase):
    """Test creating invoices from orders"""

    def setUp(self):
        self.order = TestDataFactory.create_order(
            subtotal=Decimal('2000.00'), tax=Decimal('60.00'), discount=Decimal('100.00')
        )

    def test_missing_order(self):
        """Test an unknown order raises NotFoundError"""
        with self.assertRaises(NotFoundError):
            create_invoice(999999)

    def test_one_invoice_per_order(self):
        """Test a second invoice for the same order raises ConflictError"""
        create_invoice(self.order.id)
        with self.assertRaises(ConflictError):
            create_invoice(self.order.id)

    def test_defaults(self):
        """Test draft status, copied amounts and a 30 day due date"""
        invoice = create_invoice(self.order.id)
        today = timezone.localdate()
        self.assertEqual(invoice.status, 'draft')
        self.assertEqual(invoice.issue_date, today)
        self.assertEqual(invoice.due_date, today + timedelta(days=30))
        self.assertEqual(invoice.total_amount, Decimal('1960.00'))
        self.assertEqual(invoice.discount_amount, Decimal('100.00'))
        self.assertTrue(invoice.invoice_number.startswith(f"INV-{today.strftime('%Y%m%d')}-"))

    def test_default_terms_from_setting(self):
        """Test terms fall back to the configured default"""
        Setting.objects.create(key='invoice_default_terms', value='Payment within 30 days')
        invoice = create_invoice(self.order.id)
        self.assertEqual(invoice.terms, 'Payment within 30 days')

    def test_explicit_dates(self):
        """Test explicit issue and due dates are kept"""
        invoice = create_invoice(self.order.id, {'issue_date': date(2026, 1, 1), 'due_date': date(2026, 1, 15)})
        self.assertEqual(invoice.issue_date, date(2026, 1, 1))
        self.assertEqual(invoice.due_date, date(2026, 1, 15))

    def test_number_collision_retried(self):
        """Test a number taken between lookup and insert is regenerated"""
        TestDataFactory.create_invoice(invoice_number='INV-20261019-0001')
        with mock.patch(
            'jewelstore.invoices.utils.generate_invoice_number',
            side_effect=['INV-20261019-0001', 'INV-20261019-0002'],
        ) as generate:
            invoice = create_invoice(self.order.id)
        self.assertEqual(invoice.invoice_number, 'INV-20261019-0002')
        self.assertEqual(generate.call_count, 2)

    def test_number_collision_gives_up(self):
        """Test repeated number collisions end in a conflict after five attempts"""
        TestDataFactory.create_invoice(invoice_number='INV-20261019-0001')
        with mock.patch(
            'jewelstore.invoices.utils.generate_invoice_number', return_value='INV-20261019-0001'
        ) as generate:
            with self.assertRaises(ConflictError):
                create_invoice(self.order.id)
        self.assertEqual(generate.call_count, 5)
        self.assertFalse(Invoice.objects.filter(order=self.order).exists())


class InvoiceAdminAPITests(TestCase):
    """Test admin invoice API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer(name='Ravi Gems')
        self.order = TestDataFactory.create_order(user=self.customer)
        TestDataFactory.create_order_item(order=self.order, quantity=2, unit_price=Decimal('500.00'))
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_invoice(self):
        """Test creating an invoice returns it with its order and logs an audit entry"""
        response = self.client.post('/api/v1/admin/invoices/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['order']['reference'], self.order.reference)
        self.assertEqual(len(response.data['order']['items']), 1)
        self.assertTrue(AuditLog.objects.filter(action='invoice_create', object_reference=self.order.reference).exists())

    def test_create_duplicate_invoice(self):
        """Test a second invoice for an order returns 409"""
        TestDataFactory.create_invoice(order=self.order)
        response = self.client.post('/api/v1/admin/invoices/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_create_for_missing_order(self):
        """Test an unknown order returns 404"""
        response = self.client.post('/api/v1/admin/invoices/', {'order_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_due_date_before_issue_date(self):
        """Test a due date before the issue date is rejected"""
        response = self.client.post(
            '/api/v1/admin/invoices/',
            {'order_id': self.order.id, 'issue_date': '2026-02-10', 'due_date': '2026-02-01'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        """Test listing invoices filtered by status"""
        TestDataFactory.create_invoice(order=self.order, status='paid')
        TestDataFactory.create_invoice(status='draft')
        response = self.client.get('/api/v1/admin/invoices/', {'status': 'paid'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['status_label'], 'Paid')

    def test_mark_sent_emails_customer(self):
        """Test moving an invoice to sent emails the PDF to the customer"""
        invoice = TestDataFactory.create_invoice(order=self.order)
        response = self.client.patch(f'/api/v1/admin/invoices/{invoice.id}/', {'status': 'sent'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'sent')
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.customer.email])
        filename, content, mimetype = mail.outbox[0].attachments[0]
        self.assertEqual(filename, f'invoice-{invoice.invoice_number}.pdf')
        self.assertEqual(mimetype, 'application/pdf')
        self.assertTrue(AuditLog.objects.filter(action='invoice_send', object_id=str(invoice.id)).exists())

    def test_update_notes_does_not_email(self):
        """Test edits that do not change the status send nothing"""
        invoice = TestDataFactory.create_invoice(order=self.order)
        response = self.client.patch(f'/api/v1/admin/invoices/{invoice.id}/', {'notes': 'Handle with care'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)
        log = AuditLog.objects.get(action='invoice_update')
        self.assertEqual(log.changes['notes']['new'], 'Handle with care')

    def test_delete_draft(self):
        """Test deleting a draft invoice"""
        invoice = TestDataFactory.create_invoice(order=self.order)
        response = self.client.delete(f'/api/v1/admin/invoices/{invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Invoice.objects.filter(pk=invoice.pk).exists())

    def test_delete_non_draft(self):
        """Test only drafts can be deleted"""
        invoice = TestDataFactory.create_invoice(order=self.order, status='sent')
        response = self.client.delete(f'/api/v1/admin/invoices/{invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Only draft invoices can be deleted')

    def test_by_order(self):
        """Test the invoice summary for an order, or null"""
        response = self.client.get(f'/api/v1/admin/invoices/by-order/{self.order.id}/')
        self.assertIsNone(response.data)
        invoice = TestDataFactory.create_invoice(order=self.order)
        response = self.client.get(f'/api/v1/admin/invoices/by-order/{self.order.id}/')
        self.assertEqual(response.data['invoice_number'], invoice.invoice_number)

    def test_pdf_download(self):
        """Test the PDF is returned as an attachment"""
        invoice = TestDataFactory.create_invoice(order=self.order)
        response = self.client.get(f'/api/v1/admin/invoices/{invoice.id}/pdf/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertEqual(
            response['Content-Disposition'], f'attachment; filename="invoice-{invoice.invoice_number}.pdf"'
        )
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_customer_forbidden(self):
        """Test customers cannot use the admin routes"""
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/v1/admin/invoices/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CustomerInvoiceAPITests(TestCase):
    """Test customer invoice endpoints"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.invoice = TestDataFactory.create_invoice(order=TestDataFactory.create_order(user=self.customer))
        self.other_invoice = TestDataFactory.create_invoice()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)

    def test_list_own_invoices(self):
        """Test customers only see invoices of their own orders"""
        response = self.client.get('/api/v1/invoices/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [self.invoice.id])

    def test_detail(self):
        """Test reading an own invoice"""
        response = self.client.get(f'/api/v1/invoices/{self.invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['invoice_number'], self.invoice.invoice_number)

    def test_other_customers_invoice(self):
        """Test another customer's invoice returns 404"""
        response = self.client.get(f'/api/v1/invoices/{self.other_invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(f'/api/v1/invoices/{self.other_invoice.id}/pdf/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class InvoiceLayoutTests(TestCase):
    """Test invoice PDF layout and formatting"""

    def invoice_data(self, item_count=2, **overrides):
        data = {
            'invoice_number': 'INV-20261019-0001',
            'issue_date': date(2026, 10, 19),
            'bill_to': None,
            'items': [
                {'name': f'Ring {n}', 'sku': f'RING-{n}', 'unit_price': Decimal('1000'), 'quantity': 1,
                 'total_price': Decimal('1000')}
                for n in range(item_count)
            ],
            'subtotal_amount': Decimal('1000'),
            'discount_amount': Decimal('50'),
            'tax_amount': Decimal('30'),
            'total_amount': Decimal('980'),
        }
        data.update(overrides)
        return data

    def test_single_page(self):
        """Test a short invoice fits on one page"""
        layout = build_invoice_layout(self.invoice_data())
        self.assertEqual(layout.page_count, 1)
        texts = layout.texts()
        self.assertIn('ITEM DESCRIPTION', texts)
        self.assertIn('Subtotal: Rs. 1,000.00', texts)
        self.assertIn('Discount: -Rs. 50.00', texts)
        self.assertIn('Tax (GST): Rs. 30.00', texts)
        self.assertIn('TOTAL: Rs. 980.00', texts)

    def test_items_overflow_to_next_page(self):
        """Test rows past the page limit continue on a new page with the header redrawn"""
        layout = build_invoice_layout(self.invoice_data(item_count=12))
        self.assertEqual(layout.page_count, 2)
        first_page = layout.texts(0)
        second_page = layout.texts(1)
        self.assertIn('Ring 8', first_page)
        self.assertNotIn('Ring 9', first_page)
        self.assertIn('Ring 9', second_page)
        self.assertIn('ITEM DESCRIPTION', second_page)
        header = [op for op in layout.pages[1] if op['op'] == 'text' and op['text'] == 'ITEM DESCRIPTION'][0]
        self.assertEqual(header['y'], MARGIN + 10)

    def test_notes_on_new_page(self):
        """Test notes and terms follow the totals on a new page"""
        layout = build_invoice_layout(self.invoice_data(notes='Thank you', terms='Net 30'))
        self.assertEqual(layout.page_count, 2)
        self.assertEqual(layout.texts(1), ['Notes:', 'Thank you', 'Terms & Conditions:', 'Net 30'])

    def test_bill_to_and_details(self):
        """Test customer and invoice detail lines"""
        layout = build_invoice_layout(self.invoice_data(
            due_date=date(2026, 11, 18),
            order_reference='ABCDE12345',
            bill_to={'name': 'Ravi', 'business_name': 'Ravi Gems', 'email': 'ravi@example.com',
                     'city': 'Mumbai', 'state': 'Maharashtra', 'gst_number': '27ABCDE1234F1Z5'},
        ))
        texts = layout.texts()
        self.assertIn('Ravi Gems', texts)
        self.assertIn('Mumbai, Maharashtra', texts)
        self.assertIn('GST: 27ABCDE1234F1Z5', texts)
        self.assertIn('18 November 2026', texts)
        self.assertIn('ABCDE12345', texts)

    def test_format_currency(self):
        """Test Indian digit grouping"""
        self.assertEqual(format_currency(Decimal('1234567.5')), 'Rs. 12,34,567.50')
        self.assertEqual(format_currency(999), 'Rs. 999.00')
        self.assertEqual(format_currency(None), 'Rs. 0.00')
        self.assertEqual(format_currency(Decimal('100000')), 'Rs. 1,00,000.00')

    def test_format_date(self):
        """Test long dates and missing values"""
        self.assertEqual(format_date(date(2026, 10, 19)), '19 October 2026')
        self.assertEqual(format_date('2026-01-05'), '5 January 2026')
        self.assertEqual(format_date(None), 'N/A')
        self.assertEqual(format_date('not a date'), 'N/A')
