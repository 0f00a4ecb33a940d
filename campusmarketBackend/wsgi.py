"""
WSGI config for campusmarketBackend project (HTTP only, no websockets).
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "campusmarketBackend.settings")

application = get_wsgi_application()
