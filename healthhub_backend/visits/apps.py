from django.apps import AppConfig


class VisitsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'healthhub_backend.visits'
    verbose_name = 'Visits & Billing'
