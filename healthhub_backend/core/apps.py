"""
Core App Configuration
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Users, roles, branches, audit log and number sequences."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'healthhub_backend.core'
    verbose_name = 'Core (Users, Branches & Audit)'
