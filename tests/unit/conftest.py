import pytest

from netmgr import ChangeNotifier


class RecordingNotifier(ChangeNotifier):
    def __init__(self):
        self.calls = []

    def on_routes_changed(self, added, removed):
        self.calls.append(("routes", set(added), set(removed)))

    def on_addresses_changed(self, added, removed):
        self.calls.append(("addresses", set(added), set(removed)))

    def on_interfaces_changed(self, activated, deactivated, removed):
        self.calls.append(("interfaces", set(activated), set(deactivated), set(removed)))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
