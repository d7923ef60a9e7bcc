"""Ordering bounded context — multi-vendor order status resolution.

Splits mixed checkouts into an admin part and per-vendor parts, resolves a
single canonical status for the decomposed order, and repairs divergence
between a cancelled parent and its still-active parts.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
