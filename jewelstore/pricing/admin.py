from django.contrib import admin
from .models import PriceRate, MakingChargeDiscount, TaxGroup, Tax


@admin.register(PriceRate)
class PriceRateAdmin(admin.ModelAdmin):
    list_display = ['metal', 'purity', 'price_per_gram', 'currency', 'source', 'effective_at']
    list_filter = ['metal', 'source']
    date_hierarchy = 'effective_at'


@admin.register(MakingChargeDiscount)
class MakingChargeDiscountAdmin(admin.ModelAdmin):
    list_display = ['name', 'discount_type', 'value', 'brand', 'category', 'customer_group', 'is_auto', 'is_active']
    list_filter = ['discount_type', 'is_auto', 'is_active']
    search_fields = ['name']


class TaxInline(admin.TabularInline):
    model = Tax
    extra = 0


@admin.register(TaxGroup)
class TaxGroupAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active']
    inlines = [TaxInline]
