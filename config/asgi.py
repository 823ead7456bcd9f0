"""
ASGI config for the TravelBuddy project.

It exposes the ASGI callable as a module-level variable named ``application``.

For more information on this file, see
https://docs.djangoproject.com/en/dev/howto/deployment/asgi/

"""

import logging
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.production")

django_application = get_asgi_application()

from django.conf import settings  # noqa: E402
from socketio import ASGIApp  # noqa: E402

from travelbuddy.realtime.broker import get_broker  # noqa: E402
from travelbuddy.realtime.socketio import sio  # noqa: E402

logger = logging.getLogger("travelbuddy.realtime")


async def on_startup():
    await get_broker().start()
    logger.info("Realtime broker ready: %s", type(get_broker()).__name__)


async def on_shutdown():
    await get_broker().close()
    logger.info("Realtime broker closed")


# Socket.IO sits in front of Django: Engine.IO needs both HTTP long-polling and
# WebSocket upgrades on the same path.
application = ASGIApp(
    sio,
    other_asgi_app=django_application,
    socketio_path=settings.SOCKETIO_PATH,
    on_startup=on_startup,
    on_shutdown=on_shutdown,
)
