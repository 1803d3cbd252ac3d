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
            name='Patient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('patient_number', models.CharField(max_length=32, unique=True)),
                ('name', models.CharField(db_index=True, max_length=100)),
                ('gender', models.CharField(choices=[('M', 'Male'), ('F', 'Female'), ('O', 'Other')], max_length=1)),
                ('year_of_birth', models.PositiveIntegerField()),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('address', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patients_patient',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='PatientIdentifier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('PHONE', 'Phone'), ('EMAIL', 'Email')], max_length=8)),
                ('value', models.CharField(db_index=True, max_length=254)),
                ('is_primary', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='identifiers', to='patients.patient')),
            ],
            options={
                'verbose_name': 'Patient Identifier',
                'verbose_name_plural': 'Patient Identifiers',
                'db_table': 'patients_identifier',
                'ordering': ['-is_primary', 'id'],
                'indexes': [
                    models.Index(fields=['type', 'value'], name='patients_ident_type_val_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_primary', True)), fields=('patient', 'type'), name='patients_one_primary_per_type'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PatientChangeLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('field_name', models.CharField(max_length=64)),
                ('old_value', models.TextField(blank=True, null=True)),
                ('new_value', models.TextField(blank=True, null=True)),
                ('change_type', models.CharField(choices=[('IDENTITY', 'Identity'), ('NON_IDENTITY', 'Non-identity')], max_length=16)),
                ('change_reason', models.TextField(blank=True, default='')),
                ('changed_by_role', models.CharField(blank=True, default='', max_length=50)),
                ('request_id', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='patient_changes', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='change_logs', to='patients.patient')),
            ],
            options={
                'verbose_name': 'Patient Change Log',
                'verbose_name_plural': 'Patient Change Logs',
                'db_table': 'patients_changelog',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
