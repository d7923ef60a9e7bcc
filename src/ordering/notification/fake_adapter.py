"""Recording notifier — keeps sent notifications in memory for tests and development."""

from datetime import UTC, datetime

from ordering.notification.port import NotificationSink


class RecordingStatusNotifier(NotificationSink):
    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Mail server unavailable"
        self.sent = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Mail server unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def reset(self):
        self.should_succeed = True
        self.failure_reason = "Mail server unavailable"
        self.sent = []

    def status_changed(self, customer_email: str, order: dict, new_status: str, previous_status: str) -> dict:
        if not self.should_succeed:
            return {"sent": False, "error": self.failure_reason}

        self.sent.append(
            {
                "to": customer_email,
                "order_id": order.get("id"),
                "order_number": order.get("order_number"),
                "new_status": new_status,
                "previous_status": previous_status,
                "sent_at": datetime.now(UTC).isoformat(),
            }
        )
        return {"sent": True}
