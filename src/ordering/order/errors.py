"""Domain errors raised by the order status engine.

All errors extend Protean's exception hierarchy so the FastAPI integration
and the API routes can map them onto HTTP responses.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class TransitionRejected(ValidationError):
    """A requested status change is not permitted for the part's current state."""

    def __init__(self, reason, current_status, requested_status, allowed_transitions=None):
        self.reason = reason
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed_transitions = list(allowed_transitions or [])
        super().__init__({"status": [reason]})


class OrderNotFound(ObjectNotFoundError):
    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__({"order": [f"Order '{identifier}' does not exist"]})


class NotOrderOwner(InvalidOperationError):
    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__({"order": ["You can only cancel your own orders"]})
