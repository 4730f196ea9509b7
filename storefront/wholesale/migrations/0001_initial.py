import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='WholesaleProduct',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('rrp', models.DecimalField(decimal_places=2, help_text='Recommended retail price', max_digits=12)),
                ('wholesale_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('moq', models.PositiveIntegerField(default=1, help_text='Minimum order quantity')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wholesale_entries', to='catalog.product')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wholesale_products', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wholesale_products',
                'ordering': ['name'],
                'unique_together': {('seller', 'product')},
            },
        ),
        migrations.CreateModel(
            name='WholesaleInvitation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('buyer_email', models.EmailField(max_length=254)),
                ('buyer_name', models.CharField(blank=True, max_length=200)),
                ('token', models.CharField(db_index=True, max_length=64, unique=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('expired', 'Expired')], db_index=True, default='pending', max_length=20)),
                ('wholesale_terms', models.JSONField(blank=True, default=dict, help_text='allowedPaymentTerms, minimumOrderValue, depositPercentage')),
                ('message', models.TextField(blank=True)),
                ('expires_at', models.DateTimeField()),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('buyer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='wholesale_invitations', to=settings.AUTH_USER_MODEL)),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wholesale_invitations_sent', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wholesale_invitations',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='WholesaleAccessGrant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('active', 'Active'), ('revoked', 'Revoked')], default='active', max_length=20)),
                ('wholesale_terms', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wholesale_grants', to=settings.AUTH_USER_MODEL)),
                ('invitation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='grants', to='wholesale.wholesaleinvitation')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wholesale_buyer_grants', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wholesale_access_grants',
                'unique_together': {('buyer', 'seller')},
            },
        ),
        migrations.CreateModel(
            name='WholesaleOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(db_index=True, max_length=50, unique=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('deposit_paid', 'Deposit Paid'), ('awaiting_balance', 'Awaiting Balance'), ('balance_overdue', 'Balance Overdue'), ('paid', 'Paid'), ('processing', 'Processing'), ('fulfilled', 'Fulfilled'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=30)),
                ('subtotal_cents', models.BigIntegerField(default=0)),
                ('tax_amount_cents', models.BigIntegerField(default=0)),
                ('total_cents', models.BigIntegerField(default=0)),
                ('deposit_amount_cents', models.BigIntegerField(default=0)),
                ('balance_amount_cents', models.BigIntegerField(default=0)),
                ('deposit_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('balance_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('payment_terms', models.CharField(default='Net 30', max_length=30)),
                ('balance_due_date', models.DateField(blank=True, null=True)),
                ('po_number', models.CharField(blank=True, max_length=100)),
                ('buyer_email', models.EmailField(blank=True, max_length=254)),
                ('buyer_name', models.CharField(blank=True, max_length=200)),
                ('currency', models.CharField(default='USD', max_length=3)),
                ('shipping_address', models.JSONField(blank=True, default=dict)),
                ('billing_address', models.JSONField(blank=True, default=dict)),
                ('deposit_paid_at', models.DateTimeField(blank=True, null=True)),
                ('balance_paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('buyer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='wholesale_orders', to=settings.AUTH_USER_MODEL)),
                ('invitation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='wholesale.wholesaleinvitation')),
                ('seller', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='wholesale_sales', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wholesale_orders',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='WholesaleOrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_name', models.CharField(max_length=200)),
                ('product_sku', models.CharField(blank=True, max_length=100)),
                ('variant_key', models.CharField(blank=True, max_length=120)),
                ('quantity', models.PositiveIntegerField()),
                ('moq', models.PositiveIntegerField(default=1)),
                ('unit_price_cents', models.BigIntegerField()),
                ('subtotal_cents', models.BigIntegerField()),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='wholesale.wholesaleorder')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to='catalog.product')),
            ],
            options={
                'db_table': 'wholesale_order_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='WholesaleOrderEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(max_length=50)),
                ('description', models.TextField(blank=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='wholesale.wholesaleorder')),
                ('performed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'wholesale_order_events',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
