import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ClinicDoctor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doctor_number', models.CharField(max_length=32, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('qualification', models.CharField(blank=True, default='', max_length=200)),
                ('specialty', models.CharField(blank=True, default='', max_length=200)),
                ('registration_number', models.CharField(max_length=64, unique=True)),
                ('phone', models.CharField(blank=True, db_index=True, default='', max_length=32)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('letterhead_note', models.TextField(blank=True, default='')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Clinic Doctor',
                'verbose_name_plural': 'Clinic Doctors',
                'db_table': 'doctors_clinicdoctor',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='ReferralDoctor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doctor_number', models.CharField(max_length=32, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('phone', models.CharField(blank=True, db_index=True, default='', max_length=32)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('commission_percent', models.DecimalField(decimal_places=2, default=0, max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('clinic_doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='referral_profiles', to='doctors.clinicdoctor')),
            ],
            options={
                'verbose_name': 'Referral Doctor',
                'verbose_name_plural': 'Referral Doctors',
                'db_table': 'doctors_referraldoctor',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
