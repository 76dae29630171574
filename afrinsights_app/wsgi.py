"""WSGI entry point for the Africa Data Insights service."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "afrinsights_app.settings")

application = get_wsgi_application()
