from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='MaterialCost',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('cost', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('width', models.DecimalField(decimal_places=2, default=Decimal('0'), help_text='Width in inches', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('length', models.DecimalField(decimal_places=2, default=Decimal('0'), help_text='Length in inches, stitches for bobbin/thread', max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('waste_factor', models.DecimalField(decimal_places=2, default=Decimal('1.00'), max_digits=4, validators=[django.core.validators.MinValueValidator(Decimal('1')), django.core.validators.MaxValueValidator(Decimal('10'))])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'material_costs',
                'ordering': ['name'],
            },
        ),
    ]
