import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('doctors', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='DoctorPayoutLedger',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doctor_type', models.CharField(choices=[('REFERRAL', 'Referral doctor'), ('CLINIC', 'Clinic doctor')], db_index=True, max_length=16)),
                ('period_start_date', models.DateField()),
                ('period_end_date', models.DateField()),
                ('derived_amount_in_paise', models.BigIntegerField(default=0)),
                ('derived_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('payment_method', models.CharField(blank=True, choices=[('CASH', 'Cash'), ('ONLINE', 'Online'), ('CHEQUE', 'Cheque')], max_length=16, null=True)),
                ('payment_reference_id', models.CharField(blank=True, default='', max_length=128)),
                ('notes', models.TextField(blank=True, default='')),
                ('reviewed_at', models.DateTimeField(blank=True, null=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payouts', to='core.branch')),
                ('clinic_doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payouts', to='doctors.clinicdoctor')),
                ('referral_doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payouts', to='doctors.referraldoctor')),
            ],
            options={
                'verbose_name': 'Doctor Payout',
                'verbose_name_plural': 'Doctor Payouts',
                'db_table': 'payouts_doctorpayoutledger',
                'ordering': ['-derived_at', '-id'],
                'indexes': [models.Index(fields=['branch', 'doctor_type'], name='payouts_branch_type_idx')],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('doctor_type', 'REFERRAL')), fields=('referral_doctor', 'branch', 'period_start_date', 'period_end_date'), name='payouts_referral_period_unique'),
                    models.UniqueConstraint(condition=models.Q(('doctor_type', 'CLINIC')), fields=('clinic_doctor', 'branch', 'period_start_date', 'period_end_date'), name='payouts_clinic_period_unique'),
                ],
            },
        ),
    ]
