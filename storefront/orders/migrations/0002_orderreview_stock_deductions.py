from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='orderreview',
            name='stock_deductions',
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name='orderreview',
            name='stock_deducted_at',
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
