"""Commission ledger backed by the MonthlyCommission repository.

Saves go through Protean's version check. A bucket saved by someone else
between our read and our save raises ``ExpectedVersionError``; the write is
then replayed on a fresh read.
"""

from protean.exceptions import ExpectedVersionError, InvalidOperationError
from protean.utils.globals import current_domain

from ordering.commission.bucket import MonthlyCommission
from ordering.commission.port import CommissionLedger
from ordering.domain import logger

MAX_WRITE_ATTEMPTS = 3


class CommissionWriteConflict(InvalidOperationError):
    pass


class RepositoryCommissionLedger(CommissionLedger):
    def accrue(self, vendor_id, month, year, root_id, part_id, amount, sales_amount):
        return self._write(
            vendor_id,
            month,
            year,
            lambda bucket: bucket.accrue(root_id, part_id, amount, sales_amount),
            create=True,
        )

    def reverse(self, vendor_id, month, year, root_id, part_id, amount, sales_amount):
        return self._write(
            vendor_id,
            month,
            year,
            lambda bucket: bucket.reverse(root_id, part_id, amount, sales_amount),
            create=False,
        )

    def bucket_for(self, vendor_id, month, year):
        results = (
            current_domain.repository_for(MonthlyCommission)
            ._dao.query.filter(vendor_id=str(vendor_id), month=month, year=year)
            .all()
            .items
        )
        return results[0] if results else None

    def _write(self, vendor_id, month, year, mutate, create):
        repo = current_domain.repository_for(MonthlyCommission)

        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            bucket = self.bucket_for(vendor_id, month, year)
            if bucket is None:
                if not create:
                    return None
                bucket = MonthlyCommission.open(vendor_id, month, year)

            if not mutate(bucket):
                return bucket.summary() if create else None

            try:
                repo.add(bucket)
            except ExpectedVersionError as exc:
                logger.warning(
                    "Commission bucket changed during write, retrying",
                    vendor_id=str(vendor_id),
                    month=month,
                    year=year,
                    attempt=attempt,
                    error=str(exc),
                )
                continue

            return bucket.summary()

        raise CommissionWriteConflict(
            {"commission": [f"Could not update commission bucket for vendor {vendor_id} {month}/{year}"]}
        )
