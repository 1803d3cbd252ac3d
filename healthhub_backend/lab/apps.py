from django.apps import AppConfig


class LabConfig(AppConfig):
    """Lab test catalogue and report layout configuration."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'healthhub_backend.lab'
    verbose_name = 'Lab Catalogue'
