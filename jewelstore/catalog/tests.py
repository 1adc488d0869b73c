"""
Comprehensive test suite for Catalog module
Tests: Master data CRUD, product create/update with variant sync, SKU generation,
product options cache, catalogs and customer browsing
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from unittest import mock
import re
from jewelstore.core.cache_utils import make_cache_key
from jewelstore.core.exceptions import ConflictError, ServiceError, NotFoundError
from jewelstore.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from jewelstore.catalog.models import (
    Brand, Product, ProductVariant, ProductVariantMetal, ProductVariantDiamond, Catalog
)
from jewelstore.catalog.utils import generate_unique_variant_sku, build_media_data
from jewelstore.catalog.variant_sync import sync_variants, validate_variants


class MasterDataAPITests(TestCase):
    """Test master data API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_brand(self):
        """Test creating a brand fills in the code"""
        response = self.client.post('/api/v1/admin/brands/', {'name': 'Elvee Classic'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Elvee Classic')
        self.assertTrue(response.data['code'])

    def test_create_duplicate_brand_conflict(self):
        """Test creating a brand with an existing name returns 409"""
        TestDataFactory.create_brand(name='Aurum')
        response = self.client.post('/api/v1/admin/brands/', {'name': 'aurum'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_list_brands(self):
        """Test listing brands is paginated"""
        TestDataFactory.create_brand()
        TestDataFactory.create_brand()
        response = self.client.get('/api/v1/admin/brands/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(len(response.data['results']), 2)

    def test_delete_brand_used_by_product(self):
        """Test deleting a brand referenced by a product is refused"""
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/admin/brands/{product.brand_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Brand.objects.filter(pk=product.brand_id).exists())

    def test_update_metal_purity(self):
        """Test updating a metal purity"""
        purity = TestDataFactory.create_metal_purity(name='14K')
        response = self.client.patch(f'/api/v1/admin/metal-purities/{purity.id}/', {'name': '22K'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        purity.refresh_from_db()
        self.assertEqual(purity.name, '22K')

    def test_bulk_delete_requires_ids(self):
        """Test bulk delete without ids returns 400"""
        response = self.client.post('/api/v1/admin/brands/bulk-delete/', {'ids': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cannot_manage_master_data(self):
        """Test a non-staff user gets 403 on admin routes"""
        customer = TestDataFactory.create_customer()
        self.client.authenticate_user(customer)
        response = self.client.get('/api/v1/admin/brands/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class VariantSyncTests(TestCase):
    """Test variant synchronisation rules"""

    def setUp(self):
        self.product = TestDataFactory.create_product(sku='RING-001')
        self.metal = TestDataFactory.create_metal()
        self.purity = TestDataFactory.create_metal_purity(metal=self.metal)
        self.diamond = TestDataFactory.create_diamond()

    def variant_payload(self, **kwargs):
        payload = {
            'label': 'Default',
            'inventory_quantity': 3,
            'metals': [{'metal_id': self.metal.id, 'metal_purity_id': self.purity.id, 'metal_weight': '4.5'}],
        }
        payload.update(kwargs)
        return payload

    def test_variant_without_metal_rejected(self):
        """Test a variant without any metal fails validation"""
        with self.assertRaises(ServiceError) as ctx:
            validate_variants([{'label': 'Bare', 'metals': []}])
        self.assertIn('Variant "Bare" must have at least one metal.', str(ctx.exception.detail))

    def test_variant_without_label_uses_unknown(self):
        """Test the error names Unknown when neither label nor SKU is given"""
        with self.assertRaises(ServiceError) as ctx:
            validate_variants([{}])
        self.assertIn('Variant "Unknown"', str(ctx.exception.detail))

    def test_variant_level_metal_id_accepted(self):
        """Test a variant level metal_id stands in for the metals list"""
        variants = sync_variants(self.product, [{'label': 'Legacy', 'metal_id': self.metal.id}])
        self.assertEqual(len(variants), 1)
        self.assertEqual(variants[0].metals.count(), 1)

    def test_first_variant_becomes_default(self):
        """Test exactly one default when none is flagged"""
        sync_variants(self.product, [self.variant_payload(label='A'), self.variant_payload(label='B')])
        defaults = self.product.variants.filter(is_default=True)
        self.assertEqual(defaults.count(), 1)
        self.assertEqual(defaults.first().label, 'A')

    def test_flagged_variant_becomes_default(self):
        """Test the first flagged variant is the default"""
        sync_variants(self.product, [
            self.variant_payload(label='A'),
            self.variant_payload(label='B', is_default=True),
            self.variant_payload(label='C', is_default=True),
        ])
        self.assertEqual(list(self.product.variants.filter(is_default=True).values_list('label', flat=True)), ['B'])

    def test_generated_variant_sku_suffix(self):
        """Test a second variant without SKU gets a -XXX suffix"""
        variants = sync_variants(self.product, [self.variant_payload(label='A'), self.variant_payload(label='B')])
        skus = sorted(v.sku for v in variants)
        self.assertIn('RING-001', skus)
        other = [s for s in skus if s != 'RING-001'][0]
        self.assertRegex(other, r'^RING-001-[A-Z0-9]{3}$')

    def test_variant_sku_collision_regenerated(self):
        """Test a SKU rejected by the unique index is retried with a new suffix"""
        TestDataFactory.create_variant(sku='RING-001-TAKEN')
        with mock.patch('jewelstore.catalog.variant_sync.generate_unique_variant_sku', return_value='RING-001-TAKEN'):
            variants = sync_variants(self.product, [self.variant_payload(label='A')])
        self.assertRegex(variants[0].sku, r'^RING-001-[A-Z0-9]{3}$')
        self.assertNotEqual(variants[0].sku, 'RING-001-TAKEN')

    def test_variant_sku_collision_gives_up(self):
        """Test repeated SKU collisions end in a conflict after five attempts"""
        TestDataFactory.create_variant(sku='RING-001-TAKEN')
        TestDataFactory.create_variant(sku='RING-001-AAA')
        with mock.patch('jewelstore.catalog.variant_sync.generate_unique_variant_sku', return_value='RING-001-TAKEN'), \
                mock.patch('jewelstore.catalog.variant_sync.random_sku_suffix', return_value='AAA') as suffix:
            with self.assertRaises(ConflictError):
                sync_variants(self.product, [self.variant_payload(label='A')])
        self.assertEqual(suffix.call_count, 5)
        self.assertFalse(self.product.variants.exists())

    def test_swapped_skus_kept(self):
        """Test two variants can exchange their SKUs in one sync"""
        first, second = sync_variants(self.product, [
            self.variant_payload(label='A', sku='RING-001-A'),
            self.variant_payload(label='B', sku='RING-001-B'),
        ])
        first, second = sorted([first, second], key=lambda v: v.label)
        sync_variants(self.product, [
            self.variant_payload(id=first.id, label='A', sku='RING-001-B'),
            self.variant_payload(id=second.id, label='B', sku='RING-001-A'),
        ])
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.sku, 'RING-001-B')
        self.assertEqual(second.sku, 'RING-001-A')

    def test_missing_variants_removed(self):
        """Test variants left out of the payload are deleted with their metals and diamonds"""
        sync_variants(self.product, [
            self.variant_payload(label='Keep'),
            self.variant_payload(label='Drop', diamonds=[{'diamond_id': self.diamond.id, 'diamonds_count': 4}]),
        ])
        keep = self.product.variants.get(label='Keep')
        drop = self.product.variants.get(label='Drop')

        sync_variants(self.product, [self.variant_payload(id=keep.id, label='Keep')])

        self.assertFalse(ProductVariant.objects.filter(pk=drop.pk).exists())
        self.assertFalse(ProductVariantMetal.objects.filter(variant_id=drop.pk).exists())
        self.assertFalse(ProductVariantDiamond.objects.filter(variant_id=drop.pk).exists())
        self.assertEqual(self.product.variants.count(), 1)

    def test_update_variant_by_id(self):
        """Test an existing variant is updated in place"""
        variant = sync_variants(self.product, [self.variant_payload()])[0]
        sync_variants(self.product, [self.variant_payload(id=variant.id, label='Renamed', inventory_quantity=9)])
        variant.refresh_from_db()
        self.assertEqual(variant.label, 'Renamed')
        self.assertEqual(variant.inventory_quantity, 9)

    def test_negative_inventory_clamped(self):
        """Test negative inventory is stored as zero"""
        variant = sync_variants(self.product, [self.variant_payload(inventory_quantity=-5)])[0]
        self.assertEqual(variant.inventory_quantity, 0)

    def test_unknown_variant_id(self):
        """Test an id that does not belong to the product raises 404"""
        other = TestDataFactory.create_variant()
        with self.assertRaises(NotFoundError):
            sync_variants(self.product, [self.variant_payload(id=other.id)])

    def test_metal_rows_replaced(self):
        """Test metal rows missing from the payload are removed"""
        gold_variant = sync_variants(self.product, [self.variant_payload()])[0]
        silver = TestDataFactory.create_metal(name='Silver')
        sync_variants(self.product, [self.variant_payload(id=gold_variant.id, metals=[{'metal_id': silver.id}])])
        self.assertEqual(list(gold_variant.metals.values_list('metal_id', flat=True)), [silver.id])

    def test_diamonds_none_clears_rows(self):
        """Test omitting diamonds removes existing diamond rows"""
        variant = sync_variants(self.product, [
            self.variant_payload(diamonds=[{'diamond_id': self.diamond.id, 'diamonds_count': 2}])
        ])[0]
        self.assertEqual(variant.diamonds.count(), 1)
        sync_variants(self.product, [self.variant_payload(id=variant.id)])
        self.assertEqual(variant.diamonds.count(), 0)


class CatalogUtilsTests(TestCase):
    """Test SKU and media helpers"""

    def test_free_sku_returned_unchanged(self):
        """Test an unused SKU is kept"""
        self.assertEqual(generate_unique_variant_sku('FREE-SKU'), 'FREE-SKU')

    def test_taken_sku_gets_suffix(self):
        """Test a used SKU gets a random suffix"""
        variant = TestDataFactory.create_variant(sku='TAKEN')
        sku = generate_unique_variant_sku('TAKEN')
        self.assertTrue(re.match(r'^TAKEN-[A-Z0-9]{3}$', sku))
        self.assertEqual(generate_unique_variant_sku('TAKEN', exclude_pk=variant.pk), 'TAKEN')

    def test_build_media_data(self):
        """Test uploads come first and duplicate URLs are skipped"""
        media = build_media_data(
            [{'url': '/products/a.jpg'}, {'url': 'https://cdn.example.com/b.jpg', 'type': 'video'}],
            ['products/a.jpg'],
        )
        self.assertEqual(len(media), 2)
        self.assertEqual(media[0]['url'], '/products/a.jpg')
        self.assertEqual(media[1]['type'], 'video')


class ProductAPITests(TestCase):
    """Test product API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.brand = TestDataFactory.create_brand()
        self.category = TestDataFactory.create_category()
        self.metal = TestDataFactory.create_metal()
        self.purity = TestDataFactory.create_metal_purity(metal=self.metal)

    def product_payload(self, **kwargs):
        payload = {
            'name': 'Solitaire Ring',
            'sku': 'SOL-RING',
            'brand_id': self.brand.id,
            'category_id': self.category.id,
            'making_charge_amount': '500.00',
            'variants': [{
                'label': '18K Yellow',
                'inventory_quantity': 5,
                'metals': [{'metal_id': self.metal.id, 'metal_purity_id': self.purity.id, 'metal_weight': '3.2'}],
            }],
        }
        payload.update(kwargs)
        return payload

    def test_create_product(self):
        """Test creating a product with a variant"""
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sku'], 'SOL-RING')
        self.assertEqual(len(response.data['variants']), 1)
        self.assertTrue(response.data['variants'][0]['is_default'])
        self.assertEqual(len(response.data['variants'][0]['metals']), 1)

    def test_create_product_duplicate_sku(self):
        """Test creating a product with a used SKU returns 409"""
        TestDataFactory.create_product(sku='SOL-RING')
        response = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_create_product_variant_without_metal(self):
        """Test a variant without metal is rejected and nothing is written"""
        payload = self.product_payload(variants=[{'label': 'Plain', 'metals': []}])
        response = self.client.post('/api/v1/admin/products/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('must have at least one metal', str(response.data['detail']))
        self.assertFalse(Product.objects.filter(sku='SOL-RING').exists())

    def test_create_product_unknown_brand(self):
        """Test an unknown brand id returns 404"""
        response = self.client.post('/api/v1/admin/products/', self.product_payload(brand_id=99999), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_product_generates_sku(self):
        """Test a product without SKU gets a generated one"""
        response = self.client.post('/api/v1/admin/products/', self.product_payload(sku=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['sku'].startswith('SOLI-'))

    def test_update_product_syncs_variants(self):
        """Test PATCH with variants replaces the variant set"""
        created = self.client.post('/api/v1/admin/products/', self.product_payload(), format='json').data
        variant_id = created['variants'][0]['id']
        payload = {'variants': [
            {'id': variant_id, 'label': 'Updated', 'metals': [{'metal_id': self.metal.id}]},
            {'label': 'Second', 'metals': [{'metal_id': self.metal.id}]},
        ]}
        response = self.client.patch(f"/api/v1/admin/products/{created['id']}/", payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        labels = sorted(v['label'] for v in response.data['variants'])
        self.assertEqual(labels, ['Second', 'Updated'])

    def test_update_product_name_only(self):
        """Test PATCH without variants leaves them alone"""
        variant = TestDataFactory.create_variant()
        response = self.client.patch(f'/api/v1/admin/products/{variant.product_id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Renamed')
        self.assertEqual(len(response.data['variants']), 1)

    def test_delete_product(self):
        """Test deleting a product"""
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_bulk_delete_products(self):
        """Test bulk deleting products"""
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        response = self.client.post('/api/v1/admin/products/bulk-delete/', {'ids': [first.id, second.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Product.objects.count(), 0)

    def test_list_products_search(self):
        """Test searching products by variant SKU"""
        variant = TestDataFactory.create_variant(sku='FINDME-123')
        TestDataFactory.create_product()
        response = self.client.get('/api/v1/admin/products/', {'search': 'FINDME'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], variant.product_id)


class ProductOptionsCacheTests(TestCase):
    """Test the cached product options payload"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_options_cached(self):
        """Test the options payload is stored in the cache"""
        TestDataFactory.create_brand(name='Cached Brand')
        response = self.client.get('/api/v1/admin/products/options/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([b['name'] for b in response.data['brands']], ['Cached Brand'])
        self.assertIsNotNone(cache.get(make_cache_key('product_options')))

    def test_master_change_invalidates_options(self):
        """Test creating a brand drops the cached options"""
        self.client.get('/api/v1/admin/products/options/')
        TestDataFactory.create_brand(name='New Brand')
        self.assertIsNone(cache.get(make_cache_key('product_options')))
        response = self.client.get('/api/v1/admin/products/options/')
        self.assertIn('New Brand', [b['name'] for b in response.data['brands']])


class CatalogAPITests(TestCase):
    """Test catalog API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_catalog(self):
        """Test creating a catalog"""
        response = self.client.post('/api/v1/admin/catalogs/', {'code': 'BRIDAL', 'name': 'Bridal'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['products_count'], 0)

    def test_create_duplicate_catalog(self):
        """Test a duplicate catalog code returns 409"""
        Catalog.objects.create(code='BRIDAL', name='Bridal')
        response = self.client.post('/api/v1/admin/catalogs/', {'code': 'BRIDAL', 'name': 'Other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_assign_products(self):
        """Test setting the products of a catalog"""
        catalog = Catalog.objects.create(code='FESTIVE', name='Festive')
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        response = self.client.post(
            f'/api/v1/admin/catalogs/{catalog.id}/products/', {'product_ids': [first.id, second.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['products_count'], 2)

        response = self.client.get(f'/api/v1/admin/catalogs/{catalog.id}/products/')
        self.assertEqual(sorted(response.data['selected_ids']), sorted([first.id, second.id]))


class CustomerProductAPITests(TestCase):
    """Test customer product browsing"""

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.customer)
        self.metal = TestDataFactory.create_metal()
        self.purity = TestDataFactory.create_metal_purity(metal=self.metal, name='18K')
        TestDataFactory.create_price_rate(metal='gold', purity='18K', price_per_gram=Decimal('5000.00'))
        self.product = TestDataFactory.create_product(making_charge_amount=Decimal('1000.00'))
        TestDataFactory.create_variant(
            product=self.product, metal=self.metal, metal_purity=self.purity, metal_weight=Decimal('2.000')
        )

    def test_list_products_with_price(self):
        """Test the customer list carries the default variant price"""
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['price']['total'], 11000.0)

    def test_inactive_products_hidden(self):
        """Test inactive products are not listed"""
        TestDataFactory.create_product(is_active=False)
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data['count'], 1)

    def test_product_detail_dimensions(self):
        """Test the detail carries configurations and variant dimensions"""
        white = TestDataFactory.create_metal_tone(metal=self.metal, name='White')
        variant = TestDataFactory.create_variant(
            product=self.product, is_default=False, metal=self.metal, metal_purity=self.purity
        )
        variant.metals.update(metal_tone=white)

        response = self.client.get(f'/api/v1/products/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['configurations']), 2)
        keys = [d['key'] for d in response.data['variant_dimensions']]
        self.assertEqual(keys, ['metal'])

    def test_kyc_pending_customer_blocked(self):
        """Test customers without approved KYC get 403"""
        pending = TestDataFactory.create_customer(kyc_status='pending')
        self.client.authenticate_user(pending)
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
