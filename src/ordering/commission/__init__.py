"""Vendor commission ledger — pluggable store for monthly commission buckets."""

import os

from ordering.utils.adapters import AdapterRegistry

DEFAULT_COMMISSION_RATE = 0.20

_registry = AdapterRegistry(
    "COMMISSION_LEDGER_ADAPTER",
    default="repository",
    adapters={"repository": "ordering.commission.ledger:RepositoryCommissionLedger"},
)


def get_commission_ledger():
    """The configured commission ledger; buckets live in the domain's repository by default."""
    return _registry.get()


def reset_commission_ledger():
    _registry.reset()


def get_commission_rate() -> float:
    """Platform commission taken on vendor sales, as a fraction."""
    return float(os.environ.get("VENDOR_COMMISSION_RATE", DEFAULT_COMMISSION_RATE))


def legacy_commission_fallback_enabled() -> bool:
    """Whether a zero stored commission may be recomputed from the rate on reversal."""
    return os.environ.get("LEGACY_COMMISSION_FALLBACK", "").lower() in ("1", "true", "yes", "on")
