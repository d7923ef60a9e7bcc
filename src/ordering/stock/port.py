"""Stock ledger port — abstract interface for product stock counters.

Orders reserve stock when they are placed and give it back when a part is
cancelled. Adapters report failures in the result instead of raising.
"""

from abc import ABC, abstractmethod


class StockLedger(ABC):
    """Abstract interface for stock ledger adapters."""

    @abstractmethod
    def reserve(self, product_id: str, quantity: int) -> dict:
        """Take ``quantity`` units out of available stock.

        Returns:
            dict with keys: success (bool), available (int), error (str, on failure)
        """
        ...

    @abstractmethod
    def restore(self, product_id: str, quantity: int) -> dict:
        """Put ``quantity`` units back into available stock.

        Returns:
            dict with keys: success (bool), available (int), error (str, on failure)
        """
        ...

    @abstractmethod
    def release_for_order(self, order_id: str, lines: list[tuple[str, int]]) -> dict:
        """Restore every ``(product_id, quantity)`` line held by an order or part.

        Returns:
            dict with keys: success (bool), restored (list of product ids), error (str, on failure)
        """
        ...
