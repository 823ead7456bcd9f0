"""
WSGI config for the TravelBuddy project.

This module contains the WSGI application used by Django's development server
and any production WSGI deployments. It should expose a module-level variable
named ``application``. Django's ``runserver`` command discovers this application
via the ``WSGI_APPLICATION`` setting.

Realtime (Socket.IO) needs the ASGI entrypoint in ``config.asgi``; this one
serves the REST API only.

"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.production")

# This application object is used by any WSGI server configured to use this
# file. This includes Django's development server, if the WSGI_APPLICATION
# setting points here.
application = get_wsgi_application()
