import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('lab', '0001_initial'),
        ('visits', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DiagnosticReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('branch', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reports', to='core.branch')),
                ('visit', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='report', to='visits.visit')),
            ],
            options={
                'verbose_name': 'Diagnostic Report',
                'verbose_name_plural': 'Diagnostic Reports',
                'db_table': 'reports_diagnosticreport',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='ReportVersion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('version_num', models.PositiveIntegerField(default=1)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('FINALIZED', 'Finalized')], db_index=True, default='DRAFT', max_length=16)),
                ('finalized_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('panels_snapshot', models.JSONField(blank=True, null=True)),
                ('signatures_snapshot', models.JSONField(blank=True, null=True)),
                ('patient_snapshot', models.JSONField(blank=True, null=True)),
                ('visit_snapshot', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('finalized_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='finalized_report_versions', to=settings.AUTH_USER_MODEL)),
                ('report', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='versions', to='reports.diagnosticreport')),
            ],
            options={
                'verbose_name': 'Report Version',
                'verbose_name_plural': 'Report Versions',
                'db_table': 'reports_reportversion',
                'ordering': ['report', '-version_num'],
                'constraints': [models.UniqueConstraint(fields=('report', 'version_num'), name='reports_version_unique')],
            },
        ),
        migrations.CreateModel(
            name='TestResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('value', models.FloatField(blank=True, null=True)),
                ('flag', models.CharField(blank=True, choices=[('NORMAL', 'Normal'), ('HIGH', 'High'), ('LOW', 'Low')], default='', max_length=8)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('report_version', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='results', to='reports.reportversion')),
                ('test', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='results', to='lab.labtest')),
                ('test_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='results', to='visits.testorder')),
            ],
            options={
                'verbose_name': 'Test Result',
                'verbose_name_plural': 'Test Results',
                'db_table': 'reports_testresult',
                'ordering': ['id'],
                'constraints': [models.UniqueConstraint(fields=('report_version', 'test_order', 'test'), name='reports_result_unique')],
            },
        ),
        migrations.CreateModel(
            name='ReportAccessToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('token', models.CharField(max_length=12, unique=True)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('access_count', models.PositiveIntegerField(default=0)),
                ('last_accessed_at', models.DateTimeField(blank=True, null=True)),
                ('last_accessed_ip', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('report_version', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_tokens', to='reports.reportversion')),
            ],
            options={
                'verbose_name': 'Report Access Token',
                'verbose_name_plural': 'Report Access Tokens',
                'db_table': 'reports_accesstoken',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ReportAccessLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('access_type', models.CharField(choices=[('VIEW', 'View'), ('DOWNLOAD', 'Download'), ('PRINT', 'Print')], max_length=16)),
                ('accessed_via', models.CharField(choices=[('TOKEN', 'Token link'), ('STAFF_PORTAL', 'Staff portal')], max_length=16)),
                ('ip_address', models.CharField(blank=True, default='', max_length=64)),
                ('user_agent', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('report_version', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_logs', to='reports.reportversion')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='report_accesses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Report Access Log',
                'verbose_name_plural': 'Report Access Logs',
                'db_table': 'reports_accesslog',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
