"""In-memory stock ledger — deterministic stock counters for testing and development.

Configurable success/failure behavior for exercising compensation paths.
"""

from collections import defaultdict

from ordering.stock.port import StockLedger


class InMemoryStockLedger(StockLedger):
    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Stock service unavailable"
        self.available = defaultdict(int)
        self.restorations = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Stock service unavailable"):
        """Configure the fake ledger behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_stock(self, product_id: str, quantity: int):
        self.available[str(product_id)] = quantity

    def reserve(self, product_id: str, quantity: int) -> dict:
        if not self.should_succeed:
            return {"success": False, "available": self.available[str(product_id)], "error": self.failure_reason}

        self.available[str(product_id)] -= quantity
        return {"success": True, "available": self.available[str(product_id)]}

    def restore(self, product_id: str, quantity: int) -> dict:
        if not self.should_succeed:
            return {"success": False, "available": self.available[str(product_id)], "error": self.failure_reason}

        self.available[str(product_id)] += quantity
        self.restorations.append((str(product_id), quantity))
        return {"success": True, "available": self.available[str(product_id)]}

    def release_for_order(self, order_id: str, lines: list[tuple[str, int]]) -> dict:
        if not self.should_succeed:
            return {"success": False, "restored": [], "error": self.failure_reason}

        restored = []
        for product_id, quantity in lines:
            self.restore(product_id, quantity)
            restored.append(str(product_id))
        return {"success": True, "restored": restored}
