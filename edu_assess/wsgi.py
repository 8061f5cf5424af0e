"""WSGI config for edu_assess project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "edu_assess.settings")

application = get_wsgi_application()
