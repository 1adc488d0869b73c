from django.contrib import admin
from .models import (
    Brand, Category, Style, Size, Metal, MetalPurity, MetalTone, Diamond,
    Product, ProductVariant, ProductVariantMetal, ProductVariantDiamond, ProductMedia, Catalog
)


class MasterDataAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'is_active', 'display_order']
    list_filter = ['is_active']
    search_fields = ['name', 'code']


for model in (Brand, Category, Style, Size, Metal, Diamond):
    admin.site.register(model, MasterDataAdmin)


@admin.register(MetalPurity, MetalTone)
class MetalOptionAdmin(MasterDataAdmin):
    list_display = ['name', 'metal', 'code', 'is_active', 'display_order']
    list_filter = ['metal', 'is_active']


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['sku', 'label', 'size', 'inventory_quantity', 'is_default']


class ProductMediaInline(admin.TabularInline):
    model = ProductMedia
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'brand', 'category', 'is_active', 'created_at']
    list_filter = ['is_active', 'brand', 'category', 'gender']
    search_fields = ['name', 'sku']
    inlines = [ProductVariantInline, ProductMediaInline]


class ProductVariantMetalInline(admin.TabularInline):
    model = ProductVariantMetal
    extra = 0


class ProductVariantDiamondInline(admin.TabularInline):
    model = ProductVariantDiamond
    extra = 0


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ['sku', 'label', 'product', 'inventory_quantity', 'is_default']
    search_fields = ['sku', 'label', 'product__name']
    inlines = [ProductVariantMetalInline, ProductVariantDiamondInline]


@admin.register(Catalog)
class CatalogAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'is_active', 'display_order']
    filter_horizontal = ['products']
