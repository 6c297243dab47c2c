from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='EmbroideryOption',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('image', models.CharField(blank=True, max_length=500)),
                ('stitches', models.PositiveIntegerField(default=0)),
                ('estimated_time', models.CharField(blank=True, max_length=100)),
                ('category', models.CharField(choices=[('coverage', 'Coverage'), ('threads', 'Threads'), ('material', 'Material'), ('border', 'Border'), ('backing', 'Backing'), ('upgrades', 'Upgrades'), ('cutting', 'Cutting')], db_index=True, max_length=20)),
                ('level', models.CharField(choices=[('basic', 'Basic'), ('standard', 'Standard'), ('premium', 'Premium'), ('luxury', 'Luxury')], default='basic', max_length=20)),
                ('is_popular', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('incompatible_with', models.JSONField(blank=True, default=list, help_text='Ids of options that cannot be combined with this one')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'embroidery_options',
                'ordering': ['category', 'price', 'name'],
            },
        ),
        migrations.CreateModel(
            name='CustomEmbroideryOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('design_name', models.CharField(max_length=255)),
                ('design_file', models.CharField(blank=True, max_length=500)),
                ('design_preview', models.TextField(blank=True)),
                ('dimensions', models.JSONField(default=dict)),
                ('selected_styles', models.JSONField(blank=True, default=dict)),
                ('material_costs', models.JSONField(blank=True, default=dict)),
                ('options_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('total_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('in_production', 'In Production'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='pending', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('estimated_delivery', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='custom_embroidery_orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'custom_embroidery_orders',
                'ordering': ['-created_at'],
            },
        ),
    ]
