"""
Initial migration for Orderman models.
"""

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


ITEM_KIND = [('product', 'Product'), ('service', 'Service')]
MOVEMENT_TYPE = [
    ('sale', 'Sale'), ('purchase', 'Purchase'), ('adjustment', 'Adjustment'),
    ('return', 'Return'), ('transfer', 'Transfer'), ('separation', 'Separation'),
    ('correction', 'Correction'),
]


class Migration(migrations.Migration):
    """Create Orderman models: catalog, orders, ledger, cost history, purchases."""

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='CatalogItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tenant_id', models.CharField(db_index=True, max_length=64, verbose_name='Tenant')),
                ('name', models.CharField(max_length=200, verbose_name='Name')),
                ('sku', models.CharField(blank=True, default='', max_length=64, verbose_name='SKU')),
                ('kind', models.CharField(choices=ITEM_KIND, default='service', max_length=20, verbose_name='Kind')),
                ('track_stock', models.BooleanField(default=False, verbose_name='Track stock')),
                ('requires_separation', models.BooleanField(default=False, verbose_name='Requires separation')),
                ('requires_delivery', models.BooleanField(default=False, verbose_name='Requires delivery')),
                ('requires_scheduling', models.BooleanField(default=False, verbose_name='Requires scheduling')),
                ('is_composition', models.BooleanField(default=False, help_text='Kit of other items, expanded into child lines when sold.', verbose_name='Is composition')),
                ('sell_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Sell price')),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Cost price')),
                ('average_cost', models.DecimalField(blank=True, decimal_places=4, help_text='Weighted moving average. Empty = fall back to cost price.', max_digits=14, null=True, verbose_name='Average cost')),
                ('commission_percent', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5, verbose_name='Commission %')),
                ('stock_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Cache. The stock ledger is the system of record.', max_digits=12, verbose_name='Stock quantity')),
                ('min_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Minimum stock')),
                ('unit_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Unit')),
                ('service_type_id', models.CharField(blank=True, default='', help_text='Links scheduled service lines to a workflow process.', max_length=64, verbose_name='Service type')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Catalog item',
                'verbose_name_plural': 'Catalog items',
                'db_table': 'catalog_items',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['tenant_id', 'track_stock'], name='catalog_tenant_tracked_idx')],
            },
        ),
        migrations.CreateModel(
            name='CompositionComponent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('1'), max_digits=12, verbose_name='Quantity per kit')),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='components', to='orderman.catalogitem', verbose_name='Kit')),
                ('child', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='orderman.catalogitem', verbose_name='Component')),
            ],
            options={
                'verbose_name': 'Composition component',
                'verbose_name_plural': 'Composition components',
                'db_table': 'catalog_compositions',
                'ordering': ['sort_order', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tenant_id', models.CharField(db_index=True, max_length=64, verbose_name='Tenant')),
                ('customer_id', models.CharField(max_length=64, verbose_name='Customer')),
                ('partner_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Partner')),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('discount_percent', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('tax_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), help_text='Always zero: no tax engine.', max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('status', models.CharField(choices=[('open', 'Open'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('refunded', 'Refunded'), ('partial_refund', 'Partially refunded')], db_index=True, default='open', max_length=20, verbose_name='Status')),
                ('payment_method', models.CharField(blank=True, default='', max_length=40, verbose_name='Payment method')),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('has_pending_products', models.BooleanField(default=False, verbose_name='Pending products')),
                ('has_pending_services', models.BooleanField(default=False, verbose_name='Pending services')),
                ('invoice_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Invoice')),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('sold_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='Sold by')),
            ],
            options={
                'verbose_name': 'Order',
                'verbose_name_plural': 'Orders',
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['tenant_id', 'status'], name='orders_tenant_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='OrderLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=ITEM_KIND, max_length=20, verbose_name='Kind')),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit_id', models.CharField(blank=True, default='', max_length=64)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('cost_price', models.DecimalField(decimal_places=4, default=Decimal('0'), help_text='Average cost snapshot at sale time.', max_digits=14)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('commission_percent', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5)),
                ('commission_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('separation_status', models.CharField(choices=[('not_required', 'Not required'), ('pending', 'Pending'), ('in_progress', 'In progress'), ('ready', 'Ready'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')], db_index=True, default='not_required', max_length=20)),
                ('separated_at', models.DateTimeField(blank=True, null=True)),
                ('delivery_status', models.CharField(choices=[('not_required', 'Not required'), ('pending', 'Pending'), ('in_transit', 'In transit'), ('delivered', 'Delivered'), ('failed', 'Failed'), ('cancelled', 'Cancelled')], db_index=True, default='not_required', max_length=20)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('fulfillment_status', models.CharField(choices=[('pending', 'Pending'), ('in_progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('appointment_id', models.CharField(blank=True, default='', max_length=64)),
                ('process_instance_id', models.CharField(blank=True, default='', max_length=64)),
                ('is_composition_parent', models.BooleanField(default=False)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lines', to='orderman.order', verbose_name='Order')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_lines', to='orderman.catalogitem', verbose_name='Item')),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='children', to='orderman.orderline', verbose_name='Composition parent')),
                ('separated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Order line',
                'verbose_name_plural': 'Order lines',
                'db_table': 'order_lines',
                'ordering': ['order', 'sort_order'],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tenant_id', models.CharField(db_index=True, max_length=64)),
                ('supplier_id', models.CharField(blank=True, default='', max_length=64)),
                ('supplier_name', models.CharField(blank=True, default='', max_length=200)),
                ('invoice_number', models.CharField(blank=True, default='', max_length=64)),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('shipping_cost', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('tax_amount', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('ordered', 'Ordered'), ('partial_received', 'Partially received'), ('received', 'Received'), ('cancelled', 'Cancelled')], db_index=True, default='draft', max_length=20)),
                ('payment_method', models.CharField(blank=True, default='', max_length=40)),
                ('installments', models.PositiveIntegerField(blank=True, null=True)),
                ('payment_terms', models.CharField(blank=True, default='', help_text='E.g. "30/60/90 days". Empty = due on receipt.', max_length=100)),
                ('ordered_at', models.DateTimeField(blank=True, null=True)),
                ('received_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('received_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Purchase order',
                'verbose_name_plural': 'Purchase orders',
                'db_table': 'purchase_orders',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrderLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('quantity_ordered', models.DecimalField(decimal_places=3, max_digits=12)),
                ('quantity_received', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('unit_cost', models.DecimalField(decimal_places=4, max_digits=14)),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12)),
                ('update_cost_price', models.BooleanField(default=True, help_text='Apply weighted average cost on receipt.')),
                ('received_at', models.DateTimeField(blank=True, null=True)),
                ('purchase_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='orderman.purchaseorder')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='+', to='orderman.catalogitem')),
            ],
            options={
                'verbose_name': 'Purchase order line',
                'verbose_name_plural': 'Purchase order lines',
                'db_table': 'purchase_order_lines',
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tenant_id', models.CharField(db_index=True, max_length=64, verbose_name='Tenant')),
                ('movement_type', models.CharField(choices=MOVEMENT_TYPE, db_index=True, max_length=20, verbose_name='Type')),
                ('quantity', models.DecimalField(decimal_places=3, help_text='Positive = incoming, negative = outgoing', max_digits=12, verbose_name='Quantity')),
                ('previous_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('new_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=14, null=True)),
                ('reason', models.CharField(blank=True, default='', max_length=255, verbose_name='Reason')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='orderman.catalogitem', verbose_name='Item')),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='orderman.order')),
                ('order_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='orderman.orderline')),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='orderman.purchaseorder')),
                ('purchase_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='orderman.purchaseorderline')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Stock movement',
                'verbose_name_plural': 'Stock movements',
                'db_table': 'stock_movements',
                'ordering': ['created_at', 'pk'],
                'indexes': [
                    models.Index(fields=['tenant_id', 'item'], name='movement_tenant_item_idx'),
                    models.Index(fields=['order_line', 'movement_type'], name='movement_line_type_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CostHistoryEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tenant_id', models.CharField(db_index=True, max_length=64)),
                ('movement_type', models.CharField(choices=MOVEMENT_TYPE, max_length=20)),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('unit_cost', models.DecimalField(decimal_places=4, max_digits=14)),
                ('previous_average_cost', models.DecimalField(decimal_places=4, max_digits=14)),
                ('new_average_cost', models.DecimalField(decimal_places=4, max_digits=14)),
                ('previous_stock_qty', models.DecimalField(decimal_places=3, max_digits=12)),
                ('new_stock_qty', models.DecimalField(decimal_places=3, max_digits=12)),
                ('stock_value_before', models.DecimalField(decimal_places=2, max_digits=14)),
                ('stock_value_after', models.DecimalField(decimal_places=2, max_digits=14)),
                ('reference', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='cost_history', to='orderman.catalogitem', verbose_name='Item')),
                ('movement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='cost_entry', to='orderman.stockmovement')),
                ('purchase_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='orderman.purchaseorder')),
                ('purchase_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='orderman.purchaseorderline')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Cost history entry',
                'verbose_name_plural': 'Cost history',
                'db_table': 'cost_history',
                'ordering': ['-created_at', '-pk'],
            },
        ),
    ]
