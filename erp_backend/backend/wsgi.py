# backend/wsgi.py
"""
PATH: backend/wsgi.py

WSGI entrypoint for the ERP API (gunicorn backend.wsgi).
Deployments set DJANGO_SETTINGS_MODULE=backend.settings.prod; the dev
settings are only the local fallback.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
