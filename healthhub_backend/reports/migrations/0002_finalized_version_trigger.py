"""Database-level guard: finalized report versions reject UPDATE and DELETE (PostgreSQL only)."""

from django.db import migrations

CREATE_TRIGGER = """
CREATE OR REPLACE FUNCTION reports_prevent_finalized_version_mutation()
RETURNS TRIGGER AS $$
BEGIN
    IF OLD.status = 'FINALIZED' THEN
        RAISE EXCEPTION 'Report version % is FINALIZED and cannot be modified', OLD.id
            USING HINT = 'Create an amended version instead';
    END IF;
    IF TG_OP = 'DELETE' THEN
        RETURN OLD;
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS reports_version_immutable ON reports_reportversion;
CREATE TRIGGER reports_version_immutable
    BEFORE UPDATE OR DELETE ON reports_reportversion
    FOR EACH ROW
    EXECUTE FUNCTION reports_prevent_finalized_version_mutation();
"""

DROP_TRIGGER = """
DROP TRIGGER IF EXISTS reports_version_immutable ON reports_reportversion;
DROP FUNCTION IF EXISTS reports_prevent_finalized_version_mutation();
"""


def create_trigger(apps, schema_editor):
    if schema_editor.connection.vendor != 'postgresql':
        return
    schema_editor.execute(CREATE_TRIGGER, params=None)


def drop_trigger(apps, schema_editor):
    if schema_editor.connection.vendor != 'postgresql':
        return
    schema_editor.execute(DROP_TRIGGER, params=None)


class Migration(migrations.Migration):

    dependencies = [
        ('reports', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_trigger, drop_trigger),
    ]
