"""Stock ledger abstraction — pluggable inventory counters for order compensation."""

from ordering.utils.adapters import AdapterRegistry

_registry = AdapterRegistry(
    "STOCK_LEDGER_ADAPTER",
    default="fake",
    adapters={"fake": "ordering.stock.fake_adapter:InMemoryStockLedger"},
)


def get_stock_ledger():
    """The configured stock ledger, in memory unless STOCK_LEDGER_ADAPTER says otherwise."""
    return _registry.get()


def reset_stock_ledger():
    _registry.reset()
