import pytest
from django.apps import apps

from travelbuddy.realtime.broker import InMemoryBroker


@pytest.fixture(autouse=True)
def broker() -> InMemoryBroker:
    """The in-memory realtime broker, emptied for every test."""
    realtime = apps.get_app_config("realtime")
    if not isinstance(realtime.broker, InMemoryBroker):
        realtime.broker = InMemoryBroker()
    realtime.broker.reset()
    return realtime.broker
