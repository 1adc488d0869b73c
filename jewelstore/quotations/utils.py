"""
Quotation workflow

Customers submit quotation lines; admins approve a whole group (creating an
order), reject it, or send it back for customer confirmation.
"""
from decimal import Decimal
from django.db import transaction
from django.utils import timezone
import logging
import uuid
from jewelstore.catalog.dimensions import metal_label, diamond_label, variant_size
from jewelstore.catalog.models import Product, ProductVariant
from jewelstore.core.exceptions import ForbiddenError, NotFoundError, ServiceError
from jewelstore.core.notifications import send_quotation_email
from jewelstore.orders.models import Order, OrderItem, OrderStatusHistory
from jewelstore.orders.utils import generate_order_reference
from jewelstore.pricing.calculator import calculate_product_price, calculate_tax, money
from .models import Quotation, QuotationMessage

logger = logging.getLogger(__name__)

APPROVABLE_STATUSES = ('pending', 'customer_confirmed')
CONFIRMATION_SOURCE_STATUSES = ('pending', 'approved', 'rejected')
DEFAULT_CONFIRMATION_MESSAGE = 'Please review updated quotation details.'


def group_quotations(quotation, statuses=None):
    queryset = Quotation.objects.filter(quotation_group_id=quotation.quotation_group_id)
    if statuses:
        queryset = queryset.filter(status__in=statuses)
    return queryset.select_related('user', 'product', 'variant').order_by('created_at', 'id')


def get_customer_quotation(user, quotation_id, action='view'):
    quotation = Quotation.objects.select_related('product', 'variant', 'order').filter(pk=quotation_id).first()
    if quotation is None:
        raise NotFoundError('Quotation not found')
    if quotation.user_id != user.id:
        raise ForbiddenError(f"You do not have permission to {action} this quotation")
    return quotation


# Customer side
def validate_quotation_item(item):
    """Resolve and check one requested line; returns (product, variant, quantity)"""
    product = Product.objects.filter(pk=item['product_id']).first()
    if product is None:
        raise NotFoundError('Product not found')

    variant = None
    if item.get('variant_id'):
        variant = ProductVariant.objects.filter(pk=item['variant_id']).first()
        if variant is None or variant.product_id != product.id:
            raise ServiceError('Product variant does not belong to this product')

    quantity = item['quantity']
    stock_holder = variant or product.default_variant
    if stock_holder is not None:
        available = stock_holder.inventory_quantity
        if available <= 0:
            raise ServiceError('Product is out of stock')
        if quantity > available:
            raise ServiceError(f"The requested quantity ({quantity}) exceeds the available inventory ({available}).")
    return product, variant, quantity


def submit_quotations(user, items):
    """Create one pending quotation per item, all in a new group"""
    resolved = [(validate_quotation_item(item), item.get('notes')) for item in items]
    group_id = uuid.uuid4()

    with transaction.atomic():
        quotations = [
            Quotation.objects.create(
                user=user,
                product=product,
                variant=variant,
                quantity=quantity,
                status='pending',
                quotation_group_id=group_id,
                notes=notes or None,
            )
            for (product, variant, quantity), notes in resolved
        ]

    logger.info(f"User {user.id} submitted quotation group {group_id} with {len(quotations)} items")
    send_quotation_email(user, 'Quotation submitted', [
        'We have received your quotation request for:',
        *[f"- {q.product.name} x {q.quantity}" for q in quotations],
        'Our team will get back to you shortly.',
    ])
    return quotations


def cancel_quotation(user, quotation_id):
    quotation = get_customer_quotation(user, quotation_id, action='cancel')
    if quotation.status != 'pending':
        raise ServiceError('Only pending quotations can be cancelled.')
    quotation.delete()


def add_message(quotation, user, sender_type, message):
    return QuotationMessage.objects.create(
        quotation=quotation,
        user=user,
        sender_type=sender_type,
        message=message.strip(),
    )


def respond_to_confirmation(user, quotation_id, accept):
    """Customer confirms or declines a group that is awaiting their confirmation"""
    quotation = get_customer_quotation(user, quotation_id, action='confirm' if accept else 'decline')
    target = 'customer_confirmed' if accept else 'customer_declined'
    related = list(group_quotations(quotation))

    awaiting = [q for q in related if q.status == 'pending_customer_confirmation']
    if not awaiting:
        if related and all(q.status == target for q in related):
            return 'Quotation already confirmed.' if accept else 'Quotation already declined.'
        raise ServiceError('No confirmation required for this quotation.')

    with transaction.atomic():
        Quotation.objects.filter(id__in=[q.id for q in awaiting]).update(status=target, updated_at=timezone.now())
        add_message(
            quotation,
            user,
            'customer',
            'Customer approved the updated quotation.' if accept else 'Customer declined the updated quotation.',
        )
    return 'Quotation approved. Awaiting admin confirmation.' if accept else 'Quotation declined.'


# Pricing
def price_quotation(quotation):
    variant = quotation.variant or quotation.product.default_variant
    price = calculate_product_price(quotation.product, quotation.user, variant, quotation.quantity)
    unit_subtotal = money(price['subtotal'])
    unit_discount = money(price['discount'])
    unit_total = money(price['total'])
    return {
        'quotation': quotation,
        'unit': price,
        'quantity': quotation.quantity,
        'unit_subtotal': unit_subtotal,
        'unit_discount': unit_discount,
        'unit_total': unit_total,
        'line_subtotal': unit_subtotal * quotation.quantity,
        'line_discount': unit_discount * quotation.quantity,
        'line_total': unit_total * quotation.quantity,
    }


def quotation_totals(quotations):
    """Priced lines plus subtotal, discount, tax and total for a set of quotations"""
    lines = [price_quotation(q) for q in quotations]
    subtotal = sum((line['line_subtotal'] for line in lines), Decimal('0'))
    discount = sum((line['line_discount'] for line in lines), Decimal('0'))
    tax = money(calculate_tax(subtotal - discount))
    return {
        'lines': lines,
        'subtotal': subtotal,
        'discount': discount,
        'taxable': subtotal - discount,
        'tax': tax,
        'total': subtotal + tax - discount,
    }


def tax_summary(quotations):
    totals = quotation_totals(quotations)
    return {
        'subtotal': float(totals['subtotal']),
        'discount': float(totals['discount']),
        'taxable_amount': float(totals['taxable']),
        'tax': float(totals['tax']),
        'total': float(totals['total']),
    }


def variant_configuration(variant):
    if variant is None:
        return {}
    return {
        'variant_id': variant.id,
        'label': variant.label,
        'metal': ' / '.join(metal_label(m) for m in variant.metals.select_related('metal', 'metal_purity', 'metal_tone')) or None,
        'diamond': ' / '.join(diamond_label(d) for d in variant.diamonds.select_related('diamond')) or None,
        'size': variant_size(variant),
    }


# Admin side
def create_order_from_quotations(quotations, admin=None):
    """Build an in-production order from approved quotation lines; call inside a transaction"""
    user = quotations[0].user
    totals = quotation_totals(quotations)

    order = Order.objects.create(
        user=user,
        reference=generate_order_reference(),
        status='in_production',
        currency='INR',
        subtotal_amount=totals['subtotal'],
        tax_amount=totals['tax'],
        discount_amount=totals['discount'],
        total_amount=totals['total'],
        price_breakdown={
            'items': [
                {
                    'quotation_group_id': str(line['quotation'].quotation_group_id),
                    'product_id': line['quotation'].product_id,
                    'variant_id': line['quotation'].variant_id,
                    'unit': line['unit'],
                    'quantity': line['quantity'],
                    'line_subtotal': float(line['line_subtotal']),
                    'line_discount': float(line['line_discount']),
                }
                for line in totals['lines']
            ],
            'totals': {
                'subtotal': float(totals['subtotal']),
                'discount': float(totals['discount']),
                'tax': float(totals['tax']),
                'total': float(totals['total']),
            },
        },
    )

    for line in totals['lines']:
        quotation = line['quotation']
        variant = quotation.variant
        OrderItem.objects.create(
            order=order,
            product=quotation.product,
            variant=variant,
            sku=variant.sku if variant else quotation.product.sku,
            name=quotation.product.name,
            quantity=quotation.quantity,
            unit_price=line['unit_total'],
            total_price=line['line_total'],
            configuration=variant_configuration(variant),
            metadata={
                'quotation_group_id': str(quotation.quotation_group_id),
                'variant': {'id': variant.id, 'label': variant.label, 'metadata': variant.metadata} if variant else None,
                'price_breakdown': line['unit'],
            },
        )

    OrderStatusHistory.objects.create(
        order=order,
        status='in_production',
        meta={
            'source': 'quotation_approval',
            'quotation_group_ids': sorted({str(q.quotation_group_id) for q in quotations}),
        },
        created_by=admin,
    )
    logger.info(f"Created order {order.reference} from {len(quotations)} quotations")
    return order


def approve_quotation_group(quotation, admin_notes=None, admin=None):
    if quotation.status == 'approved':
        raise ServiceError('Already approved')
    if quotation.status not in APPROVABLE_STATUSES:
        raise ServiceError('Quotation must be confirmed by user before approval')

    related = list(group_quotations(quotation, APPROVABLE_STATUSES))
    if not related:
        raise ServiceError('No quotations found to approve')

    with transaction.atomic():
        order = create_order_from_quotations(related, admin=admin)
        now = timezone.now()
        for q in related:
            q.status = 'approved'
            q.approved_at = now
            q.admin_notes = admin_notes
            q.order = order
            q.save(update_fields=['status', 'approved_at', 'admin_notes', 'order', 'updated_at'])

            if q.variant_id:
                variant = ProductVariant.objects.select_for_update().get(pk=q.variant_id)
                variant.inventory_quantity = max(0, variant.inventory_quantity - q.quantity)
                variant.save(update_fields=['inventory_quantity', 'updated_at'])

    send_quotation_email(related[0].user, 'Quotation approved', [
        f"Your quotation has been approved. Order reference: {order.reference}.",
        f"Order total: {order.currency} {order.total_amount}",
    ] + ([f"Notes: {admin_notes}"] if admin_notes else []))
    return order


def reject_quotation_group(quotation, admin_notes=None):
    related = list(group_quotations(quotation).exclude(status__in=['rejected', 'approved']))
    if not related:
        raise ServiceError('No quotations found to reject')

    Quotation.objects.filter(id__in=[q.id for q in related]).update(
        status='rejected', admin_notes=admin_notes, updated_at=timezone.now()
    )
    send_quotation_email(related[0].user, 'Quotation rejected', [
        'We are unable to proceed with your quotation request.',
    ] + ([f"Notes: {admin_notes}"] if admin_notes else []))
    return len(related)


def request_customer_confirmation(quotation, admin, notes=None, quantity=None, variant_id=None):
    """Send a group back to the customer with updated details"""
    related = list(group_quotations(quotation, CONFIRMATION_SOURCE_STATUSES))
    if not related:
        raise NotFoundError('Quotation group not found')

    with transaction.atomic():
        first = related[0]
        if quantity:
            first.quantity = quantity
        if variant_id:
            variant = ProductVariant.objects.filter(pk=variant_id, product_id=first.product_id).first()
            if variant is None:
                raise ServiceError('Product variant does not belong to this product')
            first.variant = variant
        for q in related:
            q.status = 'pending_customer_confirmation'
            if notes:
                q.admin_notes = notes
            q.save()
        add_message(first, admin, 'admin', notes or DEFAULT_CONFIRMATION_MESSAGE)

    send_quotation_email(first.user, 'Please confirm your updated quotation', [
        notes or DEFAULT_CONFIRMATION_MESSAGE,
        'Sign in to confirm or decline the updated quotation.',
    ])
    return related


def validate_group_item(data):
    """Resolve and check the product and variant of a line an admin adds or swaps in"""
    product = Product.objects.filter(pk=data['product_id']).first()
    if product is None:
        raise NotFoundError('Product not found')

    variant = None
    if data.get('variant_id'):
        variant = ProductVariant.objects.filter(pk=data['variant_id'], product_id=product.id).first()
        if variant is None:
            raise ServiceError('Invalid variant')
        if variant.inventory_quantity < data['quantity']:
            raise ServiceError('Insufficient inventory')
    return product, variant


def add_group_item(quotation, admin, data):
    """
    Add a product line to the quotation's group on the customer's behalf. The
    new line waits for the customer to confirm it.
    """
    related = list(group_quotations(quotation))
    if not related:
        raise NotFoundError('Quotation group not found')
    product, variant = validate_group_item(data)
    admin_notes = data.get('admin_notes') or None

    with transaction.atomic():
        added = Quotation.objects.create(
            user=related[0].user,
            product=product,
            variant=variant,
            quantity=data['quantity'],
            status='pending_customer_confirmation',
            quotation_group_id=quotation.quotation_group_id,
            admin_notes=admin_notes,
        )
        message = admin_notes or f"Added new product '{product.name}' to quotation."
        add_message(added, admin, 'admin', message)

    logger.info(f"Admin {admin.id} added product {product.id} to quotation group {quotation.quotation_group_id}")
    send_quotation_email(added.user, 'Please confirm your updated quotation', [
        message,
        'Sign in to confirm or decline the updated quotation.',
    ])
    return added


def change_group_product(quotation, admin, data):
    """
    Swap the product of the group's first line and send the whole group back
    for customer confirmation.
    """
    related = list(group_quotations(quotation))
    if not related:
        raise NotFoundError('Quotation group not found')
    product, variant = validate_group_item(data)
    admin_notes = data.get('admin_notes') or None

    first = related[0]
    previous_name = first.product.name
    with transaction.atomic():
        first.product = product
        if variant is not None:
            first.variant = variant
        elif first.variant_id and first.variant.product_id != product.id:
            first.variant = None
        first.quantity = data['quantity']
        for q in related:
            q.status = 'pending_customer_confirmation'
            q.admin_notes = admin_notes
            q.save()
        message = admin_notes or f"Product changed from '{previous_name}' to '{product.name}'."
        add_message(first, admin, 'admin', message)

    logger.info(f"Admin {admin.id} changed quotation group {quotation.quotation_group_id} to product {product.id}")
    send_quotation_email(first.user, 'Please confirm your updated quotation', [
        message,
        'Sign in to confirm or decline the updated quotation.',
    ])
    return related


def remove_quotation_group(quotation):
    queryset = Quotation.objects.filter(quotation_group_id=quotation.quotation_group_id)
    removed = queryset.count()
    queryset.delete()
    logger.info(f"Removed quotation group {quotation.quotation_group_id} ({removed} lines)")
    return removed


def remove_quotation(quotation):
    """
    Delete one line. The group's conversation moves to a remaining line so it
    outlives the deleted one.
    """
    group_id = quotation.quotation_group_id
    remaining = group_quotations(quotation).exclude(pk=quotation.pk).first()

    with transaction.atomic():
        if remaining is not None:
            quotation.messages.update(quotation=remaining)
        quotation.delete()

    return {
        'message': 'Quotation removed successfully',
        'is_last_quotation': remaining is None,
        'quotation_group_id': str(group_id),
    }
