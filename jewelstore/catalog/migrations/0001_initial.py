import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


def master_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('name', models.CharField(db_index=True, max_length=200)),
        ('code', models.CharField(blank=True, max_length=100, null=True)),
        ('description', models.TextField(blank=True, null=True)),
        ('is_active', models.BooleanField(db_index=True, default=True)),
        ('display_order', models.IntegerField(default=0)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Brand',
            fields=master_fields(),
            options={'db_table': 'brands', 'ordering': ['display_order', 'name'], 'abstract': False},
        ),
        migrations.CreateModel(
            name='Category',
            fields=master_fields() + [
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='children', to='catalog.category')),
            ],
            options={'db_table': 'categories', 'ordering': ['display_order', 'name'], 'verbose_name_plural': 'categories', 'abstract': False},
        ),
        migrations.CreateModel(
            name='Style',
            fields=master_fields(),
            options={'db_table': 'styles', 'ordering': ['display_order', 'name'], 'abstract': False},
        ),
        migrations.CreateModel(
            name='Size',
            fields=master_fields() + [
                ('value', models.CharField(blank=True, max_length=50, null=True)),
            ],
            options={'db_table': 'sizes', 'ordering': ['display_order', 'name'], 'abstract': False},
        ),
        migrations.CreateModel(
            name='Metal',
            fields=master_fields(),
            options={'db_table': 'metals', 'ordering': ['display_order', 'name'], 'abstract': False},
        ),
        migrations.CreateModel(
            name='MetalPurity',
            fields=master_fields() + [
                ('metal', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purities', to='catalog.metal')),
            ],
            options={'db_table': 'metal_purities', 'ordering': ['display_order', 'name'], 'verbose_name_plural': 'metal purities', 'abstract': False},
        ),
        migrations.CreateModel(
            name='MetalTone',
            fields=master_fields() + [
                ('metal', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tones', to='catalog.metal')),
            ],
            options={'db_table': 'metal_tones', 'ordering': ['display_order', 'name'], 'abstract': False},
        ),
        migrations.CreateModel(
            name='Diamond',
            fields=master_fields() + [
                ('shape', models.CharField(blank=True, max_length=100, null=True)),
                ('clarity', models.CharField(blank=True, max_length=100, null=True)),
                ('color', models.CharField(blank=True, max_length=100, null=True)),
                ('carat', models.DecimalField(blank=True, decimal_places=3, max_digits=8, null=True)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
            ],
            options={'db_table': 'diamonds', 'ordering': ['display_order', 'name'], 'abstract': False},
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=255)),
                ('sku', models.CharField(db_index=True, max_length=100, unique=True)),
                ('titleline', models.CharField(blank=True, max_length=255, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('collection', models.CharField(blank=True, max_length=200, null=True)),
                ('producttype', models.CharField(blank=True, max_length=100, null=True)),
                ('gender', models.CharField(blank=True, choices=[('women', 'Women'), ('men', 'Men'), ('unisex', 'Unisex'), ('kids', 'Kids')], max_length=20, null=True)),
                ('making_charge_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('making_charge_percentage', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('brand', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='catalog.brand')),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='products', to='catalog.category')),
                ('styles', models.ManyToManyField(blank=True, db_table='product_styles', related_name='products', to='catalog.style')),
                ('subcategories', models.ManyToManyField(blank=True, db_table='product_subcategories', related_name='subcategory_products', to='catalog.category')),
            ],
            options={'db_table': 'products', 'ordering': ['-created_at']},
        ),
        migrations.CreateModel(
            name='ProductVariant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=120, unique=True)),
                ('label', models.CharField(max_length=255)),
                ('inventory_quantity', models.IntegerField(default=0)),
                ('is_default', models.BooleanField(default=False)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variants', to='catalog.product')),
                ('size', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='variants', to='catalog.size')),
            ],
            options={'db_table': 'product_variants', 'ordering': ['-is_default', 'id']},
        ),
        migrations.CreateModel(
            name='ProductVariantMetal',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('metal_weight', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('display_order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('metal', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='variant_metals', to='catalog.metal')),
                ('metal_purity', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='variant_metals', to='catalog.metalpurity')),
                ('metal_tone', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='variant_metals', to='catalog.metaltone')),
                ('variant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='metals', to='catalog.productvariant')),
            ],
            options={'db_table': 'product_variant_metals', 'ordering': ['display_order', 'id']},
        ),
        migrations.CreateModel(
            name='ProductVariantDiamond',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('diamonds_count', models.IntegerField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('display_order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('diamond', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='variant_diamonds', to='catalog.diamond')),
                ('variant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='diamonds', to='catalog.productvariant')),
            ],
            options={'db_table': 'product_variant_diamonds', 'ordering': ['display_order', 'id']},
        ),
        migrations.CreateModel(
            name='ProductMedia',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('image', 'Image'), ('video', 'Video')], default='image', max_length=20)),
                ('url', models.CharField(max_length=500)),
                ('display_order', models.IntegerField(default=0)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='media', to='catalog.product')),
            ],
            options={'db_table': 'product_medias', 'ordering': ['display_order', 'id']},
        ),
        migrations.CreateModel(
            name='Catalog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=100, unique=True)),
                ('name', models.CharField(max_length=200, unique=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('display_order', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('products', models.ManyToManyField(blank=True, db_table='catalog_products', related_name='catalogs', to='catalog.product')),
            ],
            options={'db_table': 'catalogs', 'ordering': ['display_order', 'name']},
        ),
    ]
