from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
import storefront.orders.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='OrderReview',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(default=storefront.orders.models.generate_order_number, max_length=50, unique=True)),
                ('order_data', models.JSONField(blank=True, default=list, help_text='Snapshot of submitted cart lines')),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('shipping', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('tax', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('needs-changes', 'Needs Changes'), ('pending-payment', 'Pending Payment'), ('approved-processing', 'Approved Processing'), ('picture-reply-pending', 'Picture Reply Pending'), ('picture-reply-rejected', 'Picture Reply Rejected'), ('picture-reply-approved', 'Picture Reply Approved'), ('ready-for-production', 'Ready for Production'), ('in-production', 'In Production'), ('ready-for-checkout', 'Ready for Checkout'), ('shipped', 'Shipped'), ('delivered', 'Delivered'), ('refunded', 'Refunded')], db_index=True, default='pending', max_length=30)),
                ('submitted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('admin_notes', models.TextField(blank=True)),
                ('admin_picture_replies', models.JSONField(blank=True, default=list)),
                ('customer_confirmations', models.JSONField(blank=True, default=list)),
                ('picture_reply_uploaded_at', models.DateTimeField(blank=True, null=True)),
                ('customer_confirmed_at', models.DateTimeField(blank=True, null=True)),
                ('shipping_address', models.JSONField(blank=True, default=dict)),
                ('billing_address', models.JSONField(blank=True, default=dict)),
                ('shipping_method', models.JSONField(blank=True, default=dict)),
                ('tracking_number', models.CharField(blank=True, max_length=100)),
                ('tracking_url', models.CharField(blank=True, max_length=500)),
                ('shipping_carrier', models.CharField(blank=True, max_length=100)),
                ('shipped_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('customer_notes', models.TextField(blank=True)),
                ('refund_status', models.CharField(choices=[('none', 'None'), ('requested', 'Requested'), ('partial', 'Partially Refunded'), ('full', 'Fully Refunded')], default='none', max_length=20)),
                ('refunded_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='order_reviews', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'order_reviews',
                'ordering': ['-submitted_at'],
                'indexes': [models.Index(fields=['user', 'status'], name='order_review_user_status_idx')],
            },
        ),
    ]
