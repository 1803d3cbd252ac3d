from django.apps import AppConfig


class PayoutsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'healthhub_backend.payouts'
    verbose_name = 'Doctor Payouts'
