import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('report_header_text', models.CharField(max_length=200)),
                ('display_order', models.IntegerField(db_index=True, default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Department',
                'verbose_name_plural': 'Departments',
                'db_table': 'lab_department',
                'ordering': ['display_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='LabTest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=32, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('price_in_paise', models.PositiveIntegerField(default=0)),
                ('reference_min', models.FloatField(blank=True, null=True)),
                ('reference_max', models.FloatField(blank=True, null=True)),
                ('reference_unit', models.CharField(blank=True, default='', max_length=32)),
                ('is_panel', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('parent_test', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='sub_tests', to='lab.labtest')),
            ],
            options={
                'verbose_name': 'Lab Test',
                'verbose_name_plural': 'Lab Tests',
                'db_table': 'lab_labtest',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='SigningDoctor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('degrees', models.CharField(blank=True, default='', max_length=200)),
                ('designation', models.CharField(blank=True, default='', max_length=200)),
                ('registration_number', models.CharField(blank=True, default='', max_length=64)),
                ('signature_image_path', models.CharField(blank=True, default='', max_length=255)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Signing Doctor',
                'verbose_name_plural': 'Signing Doctors',
                'db_table': 'lab_signingdoctor',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='PanelDefinition',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('display_name', models.CharField(max_length=200)),
                ('layout_type', models.CharField(choices=[('STANDARD_TABLE', 'Standard table'), ('CBP', 'Complete blood picture'), ('WIDAL', 'Widal'), ('INTERPRETATION_SINGLE', 'Single test with interpretation'), ('TEXT_ONLY', 'Text only')], default='STANDARD_TABLE', max_length=32)),
                ('display_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='panels', to='lab.department')),
            ],
            options={
                'verbose_name': 'Panel Definition',
                'verbose_name_plural': 'Panel Definitions',
                'db_table': 'lab_paneldefinition',
                'ordering': ['department__display_order', 'display_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='PanelTestItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('display_order', models.IntegerField(default=0)),
                ('method_text', models.CharField(blank=True, default='', max_length=200)),
                ('indent_level', models.PositiveSmallIntegerField(default=0)),
                ('sub_group', models.CharField(blank=True, choices=[('MAIN', 'Main'), ('DIFFERENTIAL', 'Differential count'), ('SMEAR', 'Peripheral smear')], max_length=16, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('panel', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='lab.paneldefinition')),
                ('test', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='panel_items', to='lab.labtest')),
            ],
            options={
                'verbose_name': 'Panel Test Item',
                'verbose_name_plural': 'Panel Test Items',
                'db_table': 'lab_paneltestitem',
                'ordering': ['panel', 'display_order', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('panel', 'test'), name='lab_panel_item_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SigningRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('show_lab_incharge_note', models.BooleanField(default=False)),
                ('display_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('department', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='signing_rules', to='lab.department')),
                ('signing_doctor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='signing_rules', to='lab.signingdoctor')),
            ],
            options={
                'verbose_name': 'Signing Rule',
                'verbose_name_plural': 'Signing Rules',
                'db_table': 'lab_signingrule',
                'ordering': ['display_order', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('department', 'signing_doctor'), name='lab_signing_rule_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InterpretationTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('min_value', models.FloatField(blank=True, null=True)),
                ('max_value', models.FloatField(blank=True, null=True)),
                ('interpretation_text', models.TextField()),
                ('display_order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('test', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='interpretations', to='lab.labtest')),
            ],
            options={
                'verbose_name': 'Interpretation Template',
                'verbose_name_plural': 'Interpretation Templates',
                'db_table': 'lab_interpretationtemplate',
                'ordering': ['test', 'display_order', 'id'],
            },
        ),
    ]
