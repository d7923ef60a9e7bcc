"""MonthlyCommission aggregate (CQRS) — one vendor's commission for one month.

Totals move by increments only. Concurrent writers are kept apart by the
aggregate version Protean checks on every save.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="MonthlyCommission")
class CommissionAccrued:
    __version__ = 1

    bucket_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    root_id = Identifier(required=True)
    part_id = Identifier(required=True)
    amount = Float(required=True)
    accrued_at = DateTime(required=True)


@ordering.event(part_of="MonthlyCommission")
class CommissionReversed:
    __version__ = 1

    bucket_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    root_id = Identifier(required=True)
    part_id = Identifier(required=True)
    amount = Float(required=True)
    reversed_at = DateTime(required=True)


@ordering.entity(part_of="MonthlyCommission")
class CommissionTransaction:
    root_id = Identifier(required=True)
    part_id = Identifier(required=True)
    amount = Float(required=True)
    sales_amount = Float(default=0.0)
    status = String(max_length=20, default="pending")
    recorded_at = DateTime()


@ordering.aggregate
class MonthlyCommission:
    vendor_id = Identifier(required=True)
    month = Integer(required=True, min_value=1, max_value=12)
    year = Integer(required=True)
    total_orders = Integer(default=0)
    total_sales = Float(default=0.0)
    total_commission = Float(default=0.0)
    paid_amount = Float(default=0.0)
    pending_amount = Float(default=0.0)
    transactions = HasMany(CommissionTransaction)
    updated_at = DateTime()

    @classmethod
    def open(cls, vendor_id, month, year):
        return cls(vendor_id=str(vendor_id), month=month, year=year, updated_at=datetime.now(UTC))

    def transaction_for(self, root_id, part_id):
        return next(
            (t for t in self.transactions if str(t.root_id) == str(root_id) and str(t.part_id) == str(part_id)),
            None,
        )

    def accrue(self, root_id, part_id, amount, sales_amount) -> bool:
        """Book a part's commission. Returns False if it was already booked."""
        if self.transaction_for(root_id, part_id) is not None:
            return False

        now = datetime.now(UTC)
        self.add_transactions(
            CommissionTransaction(
                root_id=str(root_id),
                part_id=str(part_id),
                amount=amount,
                sales_amount=sales_amount,
                recorded_at=now,
            )
        )
        self.total_orders += 1
        self.total_sales = round(self.total_sales + sales_amount, 2)
        self.total_commission = round(self.total_commission + amount, 2)
        self.pending_amount = round(self.pending_amount + amount, 2)
        self._touch(now)

        self.raise_(
            CommissionAccrued(
                bucket_id=str(self.id),
                vendor_id=self.vendor_id,
                root_id=str(root_id),
                part_id=str(part_id),
                amount=amount,
                accrued_at=now,
            )
        )
        return True

    def reverse(self, root_id, part_id, amount, sales_amount) -> bool:
        """Pull a part's transaction and decrement the totals. Returns False if there was none."""
        transaction = self.transaction_for(root_id, part_id)
        if transaction is None:
            return False

        now = datetime.now(UTC)
        self.remove_transactions(transaction)
        self.total_orders -= 1
        self.total_sales = round(self.total_sales - sales_amount, 2)
        self.total_commission = round(self.total_commission - amount, 2)
        self.pending_amount = round(self.pending_amount - amount, 2)
        self._touch(now)

        self.raise_(
            CommissionReversed(
                bucket_id=str(self.id),
                vendor_id=self.vendor_id,
                root_id=str(root_id),
                part_id=str(part_id),
                amount=amount,
                reversed_at=now,
            )
        )
        return True

    def summary(self):
        return {
            "vendor_id": self.vendor_id,
            "month": self.month,
            "year": self.year,
            "total_orders": self.total_orders,
            "total_sales": self.total_sales,
            "total_commission": self.total_commission,
            "paid_amount": self.paid_amount,
            "pending_amount": self.pending_amount,
        }

    def _touch(self, now):
        self.updated_at = now
