"""
Comprehensive test suite for KYC module
Tests: Onboarding, profile edits, document upload/review, messages, admin decisions and the KYC gate
"""
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
import shutil
import tempfile
from jewelstore.core.models import AuditLog
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.kyc.models import KycProfile, KycDocument, KycMessage

MEDIA_ROOT = tempfile.mkdtemp()


class KycOnboardingAPITests(TestCase):
    """Test customer onboarding endpoints"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer(kyc_status='pending', name='Asha Jewels')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)

    def test_onboarding_creates_profile(self):
        """Test the first onboarding visit creates a default profile"""
        response = self.client.get('/api/v1/kyc/onboarding/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['profile']['business_name'], 'Asha Jewels Enterprises')
        self.assertEqual(response.data['profile']['country'], 'India')
        self.assertIn('gst_certificate', response.data['document_types'])
        self.assertTrue(response.data['can_customer_reply'])
        self.assertEqual(KycProfile.objects.filter(user=self.customer).count(), 1)

    def test_profile_update_resets_to_pending(self):
        """Test editing the profile sends a rejected account back to pending"""
        self.customer.kyc_status = 'rejected'
        self.customer.kyc_notes = 'Missing GST'
        self.customer.save()
        response = self.client.patch('/api/v1/kyc/profile/', {'gst_number': '27ABCDE1234F1Z5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['gst_number'], '27ABCDE1234F1Z5')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.kyc_status, 'pending')
        self.assertIsNone(self.customer.kyc_notes)

    def test_profile_update_keeps_approved(self):
        """Test an approved customer stays approved after editing"""
        self.customer.kyc_status = 'approved'
        self.customer.save()
        self.client.patch('/api/v1/kyc/profile/', {'city': 'Mumbai'}, format='json')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.kyc_status, 'approved')

    def test_message_moves_to_review(self):
        """Test a customer message moves the account to review"""
        response = self.client.post('/api/v1/kyc/messages/', {'message': 'Documents uploaded'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sender_type'], 'customer')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.kyc_status, 'review')

    def test_empty_message_rejected(self):
        """Test an empty message returns 400"""
        response = self.client.post('/api/v1/kyc/messages/', {'message': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_message_with_comments_disabled(self):
        """Test messages are refused when comments are disabled"""
        self.customer.kyc_comments_enabled = False
        self.customer.save()
        response = self.client.post('/api/v1/kyc/messages/', {'message': 'Hello'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_other_users_document(self):
        """Test deleting a document of another user returns 404"""
        other = TestDataFactory.create_customer()
        document = KycDocument.objects.create(user=other, type='pan_card', file='kyc-documents/pan.pdf')
        response = self.client.delete(f'/api/v1/kyc/documents/{document.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(KycDocument.objects.filter(pk=document.pk).exists())


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class KycDocumentUploadTests(TestCase):
    """Test KYC document upload"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.customer = TestDataFactory.create_customer(kyc_status='review')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)

    def test_upload_document(self):
        """Test uploading a document stores it and resets status to pending"""
        upload = SimpleUploadedFile('gst.pdf', b'%PDF-1.4 test', content_type='application/pdf')
        response = self.client.post('/api/v1/kyc/documents/', {'type': 'gst_certificate', 'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['type_label'], 'GST Certificate')
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.kyc_status, 'pending')

    def test_upload_invalid_type(self):
        """Test an unknown document type is rejected"""
        upload = SimpleUploadedFile('x.pdf', b'data', content_type='application/pdf')
        response = self.client.post('/api/v1/kyc/documents/', {'type': 'passport', 'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_own_document(self):
        """Test deleting an own document"""
        upload = SimpleUploadedFile('pan.pdf', b'data', content_type='application/pdf')
        document_id = self.client.post(
            '/api/v1/kyc/documents/', {'type': 'pan_card', 'file': upload}, format='multipart'
        ).data['id']
        response = self.client.delete(f'/api/v1/kyc/documents/{document_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(KycDocument.objects.filter(pk=document_id).exists())


class KycAdminAPITests(TestCase):
    """Test admin KYC review endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_customer(kyc_status='review')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_approve_customer(self):
        """Test approving a customer logs a message, an audit entry and an email"""
        response = self.client.post(
            f'/api/v1/admin/customers/{self.customer.id}/kyc-status/',
            {'status': 'approved', 'remarks': 'All good'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.kyc_status, 'approved')
        self.assertEqual(self.customer.kyc_notes, 'All good')
        message = KycMessage.objects.get(user=self.customer)
        self.assertEqual(message.message, 'KYC Status updated to approved. Remarks: All good')
        self.assertTrue(AuditLog.objects.filter(action='kyc_status', object_id=str(self.customer.id)).exists())
        self.assertEqual(len(mail.outbox), 1)

    def test_invalid_status(self):
        """Test an unknown status is rejected"""
        response = self.client.post(
            f'/api/v1/admin/customers/{self.customer.id}/kyc-status/', {'status': 'maybe'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_staff_user_not_a_customer(self):
        """Test staff accounts are not reviewable"""
        other_admin = TestDataFactory.create_admin()
        response = self.client.post(
            f'/api/v1/admin/customers/{other_admin.id}/kyc-status/', {'status': 'approved'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_review_document(self):
        """Test setting a document status"""
        document = KycDocument.objects.create(user=self.customer, type='aadhaar', file='kyc-documents/a.pdf')
        response = self.client.patch(
            f'/api/v1/admin/customers/{self.customer.id}/kyc-documents/{document.id}/',
            {'status': 'rejected', 'remarks': 'Blurry'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        document.refresh_from_db()
        self.assertEqual(document.status, 'rejected')
        self.assertEqual(document.remarks, 'Blurry')

    def test_admin_message(self):
        """Test an admin message lands in the conversation"""
        response = self.client.post(
            f'/api/v1/admin/customers/{self.customer.id}/kyc-messages/', {'message': 'Please upload PAN'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['admin']['id'], self.admin.id)

    def test_toggle_comments(self):
        """Test toggling and explicitly setting comments"""
        response = self.client.post(f'/api/v1/admin/customers/{self.customer.id}/kyc-comments/', {}, format='json')
        self.assertFalse(response.data['kyc_comments_enabled'])
        response = self.client.post(
            f'/api/v1/admin/customers/{self.customer.id}/kyc-comments/', {'enabled': True}, format='json'
        )
        self.assertTrue(response.data['kyc_comments_enabled'])


class KycGateTests(TestCase):
    """Test the KYC approval gate on customer routes"""

    def test_gate_reads_current_status(self):
        """Test an approval applies to a token issued before it"""
        customer = TestDataFactory.create_customer(kyc_status='pending')
        client = AuthenticatedAPIClient()
        client.authenticate_user(customer)

        response = client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'KYC_NOT_APPROVED')

        customer.kyc_status = 'approved'
        customer.save()
        response = client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_admin_passes_gate(self):
        """Test staff users pass the gate"""
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_admin())
        response = client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
