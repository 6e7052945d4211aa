"""
WSGI config for the reseller platform.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'reseller_platform.settings')

application = get_wsgi_application()
