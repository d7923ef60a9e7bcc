"""Compensation saga run when a part enters a cancelled state.

Steps run in order and each one persists its own progress before the next
starts:

    reverse-commission   gated by ``commission_reversed``
    restore-stock        gated by ``stock_restored``
    rewrite-status       writes the new status and history entry

A failing compensation step is logged and reported, never raised. The
status write always happens. Re-running the saga on a part that already
went through it changes nothing.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from ordering.commission import get_commission_rate, legacy_commission_fallback_enabled
from ordering.domain import logger


class StepOutcome(Enum):
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    step: str
    outcome: StepOutcome
    detail: str | None = None


@dataclass
class CompensationReport:
    part_id: str
    steps: list[StepResult] = field(default_factory=list)

    def outcome_of(self, step_name):
        return next((s.outcome for s in self.steps if s.step == step_name), None)

    @property
    def failed(self):
        return [s for s in self.steps if s.outcome == StepOutcome.FAILED]


class ReverseCommission:
    name = "reverse-commission"

    def __init__(self, commission_ledger, graphs):
        self.commission_ledger = commission_ledger
        self.graphs = graphs

    def run(self, part):
        if not part.is_vendor_part:
            return part, StepResult(self.name, StepOutcome.SKIPPED, "not a vendor part")
        if part.commission_reversed:
            return part, StepResult(self.name, StepOutcome.SKIPPED, "already reversed")

        amount = part.commission_amount
        if amount <= 0:
            if not (legacy_commission_fallback_enabled() and part.total_amount > 0):
                return part, StepResult(self.name, StepOutcome.SKIPPED, "no commission recorded")
            amount = round(part.total_amount * get_commission_rate(), 2)
            logger.warning(
                "Reversing commission recomputed from the rate, no stored amount",
                part_id=part.id,
                vendor_id=part.vendor_id,
                amount=amount,
            )

        booked_at = part.created_at or datetime.now(UTC)
        try:
            bucket = self.commission_ledger.reverse(
                vendor_id=part.vendor_id,
                month=booked_at.month,
                year=booked_at.year,
                root_id=part.parent_id,
                part_id=part.id,
                amount=amount,
                sales_amount=part.total_amount,
            )
        except Exception as exc:
            logger.warning(
                "Failed to reverse commission",
                part_id=part.id,
                vendor_id=part.vendor_id,
                error=str(exc),
            )
            return part, StepResult(self.name, StepOutcome.FAILED, str(exc))

        if bucket is None:
            logger.warning(
                "No commission transaction found to reverse",
                part_id=part.id,
                vendor_id=part.vendor_id,
                month=booked_at.month,
                year=booked_at.year,
            )

        part.record.mark_commission_reversed()
        part = self.graphs.save_part(part)
        return part, StepResult(self.name, StepOutcome.DONE)


class RestoreStock:
    name = "restore-stock"

    def __init__(self, stock_ledger, graphs):
        self.stock_ledger = stock_ledger
        self.graphs = graphs

    def run(self, part):
        if part.stock_restored:
            return part, StepResult(self.name, StepOutcome.SKIPPED, "already restored")

        try:
            result = self.stock_ledger.release_for_order(part.id, part.stock_lines())
        except Exception as exc:
            result = {"success": False, "error": str(exc)}

        if not result.get("success"):
            logger.warning("Failed to restore stock", part_id=part.id, error=result.get("error"))
            return part, StepResult(self.name, StepOutcome.FAILED, result.get("error"))

        part.record.mark_stock_restored()
        part = self.graphs.save_part(part)
        return part, StepResult(self.name, StepOutcome.DONE)


class RewriteStatus:
    name = "rewrite-status"

    def __init__(self, graphs, status, actor, reason=None):
        self.graphs = graphs
        self.status = status
        self.actor = actor
        self.reason = reason

    def run(self, part):
        if part.status == self.status:
            return part, StepResult(self.name, StepOutcome.SKIPPED, "status unchanged")

        part.record.record_status(self.status, self.actor, self.reason, previous_status=part.status)
        part = self.graphs.save_part(part)
        return part, StepResult(self.name, StepOutcome.DONE)


class CompensationSaga:
    def __init__(self, steps):
        self.steps = steps

    @property
    def step_names(self):
        return [step.name for step in self.steps]

    def run(self, part):
        report = CompensationReport(part_id=part.id)
        for step in self.steps:
            part, result = step.run(part)
            report.steps.append(result)
        if report.failed:
            logger.warning(
                "Compensation finished with failed steps",
                part_id=part.id,
                failed=[s.step for s in report.failed],
            )
        return part, report


def cancellation_saga(stock_ledger, commission_ledger, graphs, status, actor, reason=None):
    """Compensate a part and then move it into the cancelled ``status``."""
    return CompensationSaga(
        [
            ReverseCommission(commission_ledger, graphs),
            RestoreStock(stock_ledger, graphs),
            RewriteStatus(graphs, status, actor, reason),
        ]
    )
