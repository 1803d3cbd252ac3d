"""
WSGI config for healthhub_backend project.

It exposes the WSGI callable as a module-level variable named ``application``.
"""

import os

from django.core.wsgi import get_wsgi_application

# Deployments set DJANGO_SETTINGS_MODULE=healthhub_backend.settings_prod.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'healthhub_backend.settings')

application = get_wsgi_application()
