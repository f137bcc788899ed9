"""
WSGI config for pharmacy_books.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "pharmacy_books.settings")

application = get_wsgi_application()
