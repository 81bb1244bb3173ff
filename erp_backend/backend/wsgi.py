# backend/wsgi.py
"""
WSGI entrypoint for the import ERP backend (gunicorn / mod_wsgi).

Production MUST export DJANGO_SETTINGS_MODULE=backend.settings.prod.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
