import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('doctors', '0001_initial'),
        ('lab', '0001_initial'),
        ('patients', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Visit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('domain', models.CharField(choices=[('DIAGNOSTICS', 'Diagnostics'), ('CLINIC', 'Clinic')], db_index=True, max_length=16)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('WAITING', 'Waiting'), ('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], db_index=True, default='DRAFT', max_length=16)),
                ('bill_number', models.CharField(max_length=48, unique=True)),
                ('total_amount_in_paise', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='visits', to='core.branch')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_visits', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='visits', to='patients.patient')),
                ('referral_doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='visits', to='doctors.referraldoctor')),
            ],
            options={
                'verbose_name': 'Visit',
                'verbose_name_plural': 'Visits',
                'db_table': 'visits_visit',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['branch', 'domain', 'created_at'], name='visits_branch_domain_idx')],
            },
        ),
        migrations.CreateModel(
            name='Bill',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bill_number', models.CharField(max_length=48, unique=True)),
                ('total_amount_in_paise', models.PositiveIntegerField(default=0)),
                ('payment_type', models.CharField(choices=[('CASH', 'Cash'), ('ONLINE', 'Online'), ('CHEQUE', 'Cheque')], default='CASH', max_length=8)),
                ('payment_status', models.CharField(choices=[('PENDING', 'Pending'), ('PAID', 'Paid')], default='PENDING', max_length=8)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bills', to='core.branch')),
                ('visit', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='bill', to='visits.visit')),
            ],
            options={
                'verbose_name': 'Bill',
                'verbose_name_plural': 'Bills',
                'db_table': 'visits_bill',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='TestOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('price_in_paise', models.PositiveIntegerField(default=0)),
                ('referral_commission_percentage', models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                ('test_name_snapshot', models.CharField(blank=True, default='', max_length=200)),
                ('test_code_snapshot', models.CharField(blank=True, default='', max_length=32)),
                ('reference_min_snapshot', models.FloatField(blank=True, null=True)),
                ('reference_max_snapshot', models.FloatField(blank=True, null=True)),
                ('reference_unit_snapshot', models.CharField(blank=True, default='', max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='test_orders', to='core.branch')),
                ('test', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='lab.labtest')),
                ('visit', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='test_orders', to='visits.visit')),
            ],
            options={
                'verbose_name': 'Test Order',
                'verbose_name_plural': 'Test Orders',
                'db_table': 'visits_testorder',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='ClinicVisit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('visit_type', models.CharField(choices=[('OP', 'Out-patient'), ('IP', 'In-patient')], default='OP', max_length=2)),
                ('hospital_ward', models.CharField(blank=True, default='', max_length=100)),
                ('consultation_fee_in_paise', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('WAITING', 'Waiting'), ('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], default='WAITING', max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('clinic_doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='clinic_visits', to='doctors.clinicdoctor')),
                ('visit', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='clinic_visit', to='visits.visit')),
            ],
            options={
                'verbose_name': 'Clinic Visit',
                'verbose_name_plural': 'Clinic Visits',
                'db_table': 'visits_clinicvisit',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
