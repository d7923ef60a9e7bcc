"""Commission ledger port — abstract interface for vendor commission accounting.

Commission is booked into one bucket per (vendor, month, year). Each bucket
holds running totals and one transaction per (root order, vendor part).
"""

from abc import ABC, abstractmethod


class CommissionLedger(ABC):
    """Abstract interface for commission ledgers."""

    @abstractmethod
    def accrue(
        self,
        vendor_id: str,
        month: int,
        year: int,
        root_id: str,
        part_id: str,
        amount: float,
        sales_amount: float,
    ) -> dict:
        """Book commission for a vendor part. Booking the same part twice is a no-op.

        Returns:
            dict with the bucket's vendor_id, month, year and running totals
        """
        ...

    @abstractmethod
    def reverse(
        self,
        vendor_id: str,
        month: int,
        year: int,
        root_id: str,
        part_id: str,
        amount: float,
        sales_amount: float,
    ) -> dict | None:
        """Remove a part's transaction and decrement the bucket totals.

        Returns:
            the bucket summary, or None when no bucket or transaction matched
        """
        ...
