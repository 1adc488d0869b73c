"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from jewelstore.catalog.models import (
    Brand, Category, Size, Metal, MetalPurity, MetalTone, Diamond, Product, ProductVariant
)
from jewelstore.groups.models import UserGroup, CustomerGroup, AdminGroup
from jewelstore.invoices.models import Invoice
from jewelstore.orders.models import Order, OrderItem, OrderStatus
from jewelstore.pricing.models import PriceRate, TaxGroup, Tax
from jewelstore.quotations.models import Quotation
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False,
                    type='retailer', kyc_status='pending', name=None):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            type=type,
            kyc_status=kyc_status,
            name=name or username,
        )

    @staticmethod
    def create_admin(username=None, **kwargs):
        """Create a staff user"""
        return TestDataFactory.create_user(username=username, is_staff=True, type='admin', kyc_status='approved', **kwargs)

    @staticmethod
    def create_customer(username=None, kyc_status='approved', type='retailer', **kwargs):
        """Create a customer, KYC approved unless told otherwise"""
        return TestDataFactory.create_user(username=username, type=type, kyc_status=kyc_status, **kwargs)

    @staticmethod
    def create_user_group(name=None, code=None):
        if not name:
            name = f'UserGroup_{TestDataFactory.random_string(6)}'
        return UserGroup.objects.create(name=name, code=code or name.lower())

    @staticmethod
    def create_customer_group(name=None, code=None):
        if not name:
            name = f'CustomerGroup_{TestDataFactory.random_string(6)}'
        return CustomerGroup.objects.create(name=name, code=code or name.lower())

    @staticmethod
    def create_admin_group(name=None, code=None, features=None):
        if not name:
            name = f'AdminGroup_{TestDataFactory.random_string(6)}'
        return AdminGroup.objects.create(name=name, code=code or name.lower(), features=features or [])

    @staticmethod
    def create_brand(name=None, code=None):
        """Create a test brand"""
        if not name:
            name = f'Brand_{TestDataFactory.random_string(6)}'
        return Brand.objects.create(name=name, code=code or name.lower())

    @staticmethod
    def create_category(name=None, code=None, parent=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, code=code or name.lower(), parent=parent)

    @staticmethod
    def create_size(name=None, value=None):
        if not name:
            name = f'Size_{TestDataFactory.random_string(4)}'
        return Size.objects.create(name=name, code=name.lower(), value=value or name)

    @staticmethod
    def create_metal(name='Gold'):
        return Metal.objects.create(name=name, code=name.lower())

    @staticmethod
    def create_metal_purity(metal=None, name='18K'):
        metal = metal or TestDataFactory.create_metal()
        return MetalPurity.objects.create(metal=metal, name=name, code=name.lower())

    @staticmethod
    def create_metal_tone(metal=None, name='Yellow'):
        metal = metal or TestDataFactory.create_metal()
        return MetalTone.objects.create(metal=metal, name=name, code=name.lower())

    @staticmethod
    def create_diamond(name=None, price=Decimal('1000.00')):
        if not name:
            name = f'Diamond_{TestDataFactory.random_string(4)}'
        return Diamond.objects.create(name=name, code=name.lower(), shape='Round', price=price)

    @staticmethod
    def create_product(name=None, sku=None, brand=None, category=None, making_charge_amount=None,
                       making_charge_percentage=None, is_active=True):
        """Create a test product without variants"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(8).upper()}'
        return Product.objects.create(
            name=name,
            sku=sku,
            brand=brand or TestDataFactory.create_brand(),
            category=category or TestDataFactory.create_category(),
            making_charge_amount=making_charge_amount,
            making_charge_percentage=making_charge_percentage,
            is_active=is_active,
        )

    @staticmethod
    def create_variant(product=None, sku=None, label=None, inventory_quantity=10, is_default=True,
                       metal=None, metal_purity=None, metal_weight=Decimal('5.000')):
        """Create a variant with a single metal row"""
        product = product or TestDataFactory.create_product()
        if not sku:
            sku = f'{product.sku}-{TestDataFactory.random_string(3).upper()}'
        variant = ProductVariant.objects.create(
            product=product,
            sku=sku,
            label=label or f'Variant {sku}',
            inventory_quantity=inventory_quantity,
            is_default=is_default,
        )
        metal = metal or (metal_purity.metal if metal_purity else TestDataFactory.create_metal())
        variant.metals.create(metal=metal, metal_purity=metal_purity, metal_weight=metal_weight)
        return variant

    @staticmethod
    def create_price_rate(metal='gold', purity='18K', price_per_gram=Decimal('5000.00')):
        return PriceRate.objects.create(metal=metal, purity=purity, price_per_gram=price_per_gram)

    @staticmethod
    def create_tax(rate=Decimal('3.000'), name='GST', tax_group=None, is_active=True):
        """Create a tax, in a fresh active tax group unless one is given"""
        if tax_group is None:
            tax_group = TaxGroup.objects.create(name=f'TaxGroup_{TestDataFactory.random_string(6)}')
        return Tax.objects.create(tax_group=tax_group, name=name, code=name.lower(), rate=rate, is_active=is_active)

    @staticmethod
    def create_order_status(name='Pending', code='pending', is_default=False):
        return OrderStatus.objects.create(name=name, code=code, is_default=is_default)

    @staticmethod
    def create_order(user=None, reference=None, status='pending', subtotal=Decimal('1000.00'),
                     tax=Decimal('30.00'), discount=Decimal('0.00')):
        """Create a test order with explicit amounts"""
        if not reference:
            reference = TestDataFactory.random_string(10).upper()
        return Order.objects.create(
            user=user or TestDataFactory.create_customer(),
            reference=reference,
            status=status,
            subtotal_amount=subtotal,
            tax_amount=tax,
            discount_amount=discount,
            total_amount=subtotal + tax - discount,
        )

    @staticmethod
    def create_order_item(order=None, product=None, variant=None, quantity=1, unit_price=Decimal('1000.00')):
        """Create a test order item"""
        order = order or TestDataFactory.create_order()
        product = product or (variant.product if variant else TestDataFactory.create_product())
        return OrderItem.objects.create(
            order=order,
            product=product,
            variant=variant,
            sku=variant.sku if variant else product.sku,
            name=product.name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=unit_price * quantity,
        )

    @staticmethod
    def create_invoice(order=None, invoice_number=None, status='draft'):
        """Create a test invoice copying the order's amounts"""
        order = order or TestDataFactory.create_order()
        if not invoice_number:
            invoice_number = f'INV-TEST-{TestDataFactory.random_string(6).upper()}'
        return Invoice.objects.create(
            order=order,
            invoice_number=invoice_number,
            status=status,
            issue_date=timezone.localdate(),
            subtotal_amount=order.subtotal_amount,
            tax_amount=order.tax_amount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            currency=order.currency,
        )

    @staticmethod
    def create_quotation(user=None, product=None, variant=None, quantity=1, status='pending', quotation_group_id=None):
        """Create a test quotation line"""
        if variant is None and product is None:
            variant = TestDataFactory.create_variant()
        product = product or variant.product
        kwargs = {}
        if quotation_group_id:
            kwargs['quotation_group_id'] = quotation_group_id
        return Quotation.objects.create(
            user=user or TestDataFactory.create_customer(),
            product=product,
            variant=variant,
            quantity=quantity,
            status=status,
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """API client with authentication helpers"""

    def authenticate_user(self, user):
        """Authenticate a user and set the JWT token"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return refresh.access_token

    def logout(self):
        """Remove authentication"""
        self.credentials()
