"""Status notification sink — tells customers when their order changes status."""

from ordering.utils.adapters import AdapterRegistry

_registry = AdapterRegistry(
    "STATUS_NOTIFIER_ADAPTER",
    default="fake",
    adapters={"fake": "ordering.notification.fake_adapter:RecordingStatusNotifier"},
)


def get_status_notifier():
    return _registry.get()


def reset_status_notifier():
    _registry.reset()
