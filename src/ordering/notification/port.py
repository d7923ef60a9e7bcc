"""Notification sink port — fire-and-forget customer notifications."""

from abc import ABC, abstractmethod


class NotificationSink(ABC):
    @abstractmethod
    def status_changed(self, customer_email: str, order: dict, new_status: str, previous_status: str) -> dict:
        """Tell the customer their order moved to ``new_status``.

        Returns:
            dict with keys: sent (bool), error (str, on failure)
        """
        ...
