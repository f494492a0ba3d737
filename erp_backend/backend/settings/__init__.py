# backend/settings/__init__.py
"""
PATH: backend/settings/__init__.py

Settings modules, selected with DJANGO_SETTINGS_MODULE:
- backend.settings.dev   (local development, SQLite by default)
- backend.settings.test  (pytest / manage.py test)
- backend.settings.prod  (PostgreSQL deployment)
"""
