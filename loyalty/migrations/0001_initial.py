import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clinics', '0001_initial'),
        ('patients', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='LoyaltyRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('event_type', models.CharField(choices=[('TREATMENT', 'Treatment'), ('PURCHASE', 'Medicine Purchase'), ('VISIT', 'Completed Visit'), ('REDEEM', 'Redemption')], max_length=10)),
                ('points_per_unit', models.DecimalField(decimal_places=4, default=Decimal('0.0010'), help_text='Points earned per unit of currency. For redemptions: currency discount per point.', max_digits=12)),
                ('min_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Minimum amount to earn points. For redemptions: minimum points to redeem.', max_digits=12)),
                ('active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='loyalty_rules', to='clinics.location')),
            ],
            options={
                'verbose_name': 'Loyalty Rule',
                'verbose_name_plural': 'Loyalty Rules',
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='LoyaltyTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('points', models.IntegerField(help_text='Positive when earned, negative when redeemed.')),
                ('type', models.CharField(choices=[('EARNED', 'Earned'), ('REDEEMED', 'Redeemed')], max_length=8)),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='loyalty_transactions', to='clinics.location')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='loyalty_transactions', to='patients.patient')),
            ],
            options={
                'verbose_name': 'Loyalty Transaction',
                'verbose_name_plural': 'Loyalty Transactions',
                'ordering': ['-created_at', '-pk'],
            },
        ),
    ]
