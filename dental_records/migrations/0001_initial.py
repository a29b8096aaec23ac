import dental_records.models
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
            name='TreatmentType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('category', models.CharField(choices=[('Preventative', 'Preventative'), ('Restorative', 'Restorative'), ('Cosmetic', 'Cosmetic'), ('Surgery', 'Surgery'), ('Orthodontics', 'Orthodontics')], default='Preventative', max_length=20)),
                ('is_flat_rate', models.BooleanField(default=False, help_text='Charge the cost once, no matter how many teeth are treated.')),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='treatment_types', to='clinics.location')),
            ],
            options={
                'verbose_name': 'Treatment Type',
                'verbose_name_plural': 'Treatment Types',
                'ordering': ['category', 'name'],
            },
        ),
        migrations.CreateModel(
            name='ClinicalRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('teeth', models.JSONField(blank=True, default=list, help_text='Tooth numbers treated. Empty for general treatments.', validators=[dental_records.models.validate_teeth])),
                ('description', models.CharField(max_length=255)),
                ('cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='clinical_records', to='clinics.location')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clinical_records', to='patients.patient')),
            ],
            options={
                'verbose_name': 'Clinical Record',
                'verbose_name_plural': 'Clinical Records',
                'ordering': ['-date', '-created_at'],
            },
        ),
    ]
