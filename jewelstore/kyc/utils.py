"""
KYC onboarding workflow

Customer edits (profile, documents) send an unapproved account back to
``pending``; customer messages move it to ``review``. Admins decide the
final status.
"""
from django.db import transaction
import logging
from jewelstore.core.exceptions import ForbiddenError, NotFoundError
from jewelstore.core.notifications import send_notification
from .models import KycProfile, KycDocument, KycMessage

logger = logging.getLogger(__name__)

PROFILE_FIELDS = [
    'business_name', 'business_website', 'gst_number', 'pan_number', 'registration_number',
    'address_line1', 'address_line2', 'city', 'state', 'postal_code', 'country',
    'contact_name', 'contact_phone',
]


def get_or_create_profile(user):
    profile, created = KycProfile.objects.get_or_create(
        user=user,
        defaults={
            'business_name': f"{user.display_name} Enterprises",
            'country': 'India',
            'contact_name': user.display_name,
            'contact_phone': user.phone or None,
        },
    )
    if created:
        logger.info(f"Created KYC profile for user {user.id}")
    return profile


def mark_pending(user):
    """Reset an unapproved customer to pending after they changed their submission"""
    if user.kyc_status == 'approved':
        return
    user.kyc_status = 'pending'
    user.kyc_notes = None
    user.save(update_fields=['kyc_status', 'kyc_notes', 'updated_at'])


def update_profile(user, data):
    with transaction.atomic():
        profile = KycProfile.objects.select_for_update().filter(user=user).first() or KycProfile(user=user)
        for field in PROFILE_FIELDS:
            if field in data:
                setattr(profile, field, data[field])
        if 'metadata' in data:
            profile.metadata = data['metadata'] or {}
        profile.save()
        mark_pending(user)
    return profile


def upload_document(user, document_type, uploaded_file):
    with transaction.atomic():
        document = KycDocument.objects.create(user=user, type=document_type, file=uploaded_file, status='pending')
        mark_pending(user)
    logger.info(f"User {user.id} uploaded KYC document {document.id} ({document_type})")
    return document


def delete_document(user, document_id):
    document = KycDocument.objects.filter(pk=document_id, user=user).first()
    if document is None:
        raise NotFoundError('Document not found')

    with transaction.atomic():
        stored_file = document.file
        document.delete()
        mark_pending(user)

    if stored_file:
        try:
            stored_file.storage.delete(stored_file.name)
        except OSError as e:
            logger.warning(f"Could not remove KYC file {stored_file.name}: {str(e)}")


def send_customer_message(user, message):
    if not user.kyc_comments_enabled:
        raise ForbiddenError('Comments are disabled for your account')

    with transaction.atomic():
        kyc_message = KycMessage.objects.create(user=user, sender_type='customer', message=message.strip())
        if user.kyc_status not in ('approved', 'review'):
            user.kyc_status = 'review'
            user.save(update_fields=['kyc_status', 'updated_at'])
    return kyc_message


def update_kyc_status(customer, new_status, remarks=None, admin=None):
    """Set the decision, keep the remarks as notes and log it in the conversation"""
    previous = customer.kyc_status
    with transaction.atomic():
        customer.kyc_status = new_status
        customer.kyc_notes = remarks or None
        customer.save(update_fields=['kyc_status', 'kyc_notes', 'updated_at'])
        KycMessage.objects.create(
            user=customer,
            admin=admin,
            sender_type='admin',
            message=f"KYC Status updated to {new_status}. Remarks: {remarks or 'None'}",
        )

    logger.info(f"KYC status of user {customer.id} changed {previous} -> {new_status}")
    send_notification(
        customer.email,
        f"Your KYC status is now {new_status}",
        f"Dear {customer.display_name},\n\nYour KYC status has been updated to {new_status}.\n"
        f"Remarks: {remarks or 'None'}",
    )
    return previous


def add_admin_message(customer, message, admin):
    return KycMessage.objects.create(user=customer, admin=admin, sender_type='admin', message=message.strip())


def update_document_status(customer, document_id, new_status, remarks=None):
    document = KycDocument.objects.filter(pk=document_id, user=customer).first()
    if document is None:
        raise NotFoundError('Document not found for this customer')
    document.status = new_status
    document.remarks = remarks or None
    document.save(update_fields=['status', 'remarks', 'updated_at'])
    return document


def toggle_comments(customer, enabled=None):
    customer.kyc_comments_enabled = (not customer.kyc_comments_enabled) if enabled is None else bool(enabled)
    customer.save(update_fields=['kyc_comments_enabled', 'updated_at'])
    return customer.kyc_comments_enabled
