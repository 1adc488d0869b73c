"""
Customer notification emails

All senders are best effort: delivery problems are logged and reported
through the return value, never raised into the calling view.
"""
import logging

from django.conf import settings
from django.core.mail import EmailMessage, send_mail

logger = logging.getLogger(__name__)


def send_notification(to_email, subject, body, attachments=None):
    """Send a plain-text email; returns True when the backend accepted it"""
    if not to_email:
        logger.info(f"Skipping email '{subject}': recipient has no email address")
        return False
    try:
        if attachments:
            message = EmailMessage(subject, body, settings.DEFAULT_FROM_EMAIL, [to_email])
            for filename, content, mimetype in attachments:
                message.attach(filename, content, mimetype)
            message.send(fail_silently=False)
        else:
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to_email], fail_silently=False)
        logger.info(f"Sent email '{subject}' to {to_email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {to_email}: {str(e)}")
        return False


def send_invoice_email(invoice, pdf_bytes=None):
    order = invoice.order
    customer = order.user if order else None
    if not customer:
        return False
    subject = f"Invoice {invoice.invoice_number}"
    body = (
        f"Dear {customer.display_name},\n\n"
        f"Please find attached invoice {invoice.invoice_number} for order {order.reference}.\n"
        f"Amount due: {invoice.currency} {invoice.total_amount}\n"
        f"Due date: {invoice.due_date.isoformat() if invoice.due_date else 'N/A'}\n\n"
        f"Thank you for your business.\n"
        f"{settings.INVOICE_COMPANY['name']}"
    )
    attachments = None
    if pdf_bytes:
        attachments = [(f"invoice-{invoice.invoice_number}.pdf", pdf_bytes, 'application/pdf')]
    return send_notification(customer.email, subject, body, attachments=attachments)


def send_quotation_email(user, subject, lines):
    """Quotation lifecycle notice (submitted, approved, rejected, confirmation requested)"""
    body = f"Dear {user.display_name},\n\n" + "\n".join(lines) + f"\n\n{settings.INVOICE_COMPANY['name']}"
    return send_notification(user.email, subject, body)
