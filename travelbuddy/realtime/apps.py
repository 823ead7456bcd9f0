import logging

from django.apps import AppConfig
from django.conf import settings
from django.utils.module_loading import import_string
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


class RealtimeConfig(AppConfig):
    name = "travelbuddy.realtime"
    verbose_name = _("Realtime")

    broker = None

    def ready(self):
        broker_class = import_string(settings.REALTIME_BROKER_BACKEND)
        self.broker = broker_class()
        logger.debug("Realtime broker: %s", broker_class.__name__)
