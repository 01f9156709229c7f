"""Payment-status partitioning of individual billing records."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from finance_insights.normalize import normalize, parse_date

# Unpaid invoices older than this are critical
OVERDUE_DAYS = 30


@dataclass(frozen=True)
class PaymentPartition:
    """Disjoint, exhaustive split of payment records by settlement status."""
    fully_paid: tuple = field(default_factory=tuple)
    partially_paid: tuple = field(default_factory=tuple)
    unpaid: tuple = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.fully_paid) + len(self.partially_paid) + len(self.unpaid)


def payment_status(record: dict) -> str:
    """Classify one payment as "fully_paid", "unpaid" or "partially_paid".

    Checked in that order, so a zero-amount invoice with nothing paid is
    fully paid.
    """
    paid = normalize(record.get("amountPaid"))
    total = normalize(record.get("totalAmount"))
    if paid >= total:
        return "fully_paid"
    if paid == 0:
        return "unpaid"
    return "partially_paid"


def categorize(payments: list[dict]) -> PaymentPartition:
    """Partition payments into fully paid, partially paid and unpaid.

    Every record lands in exactly one partition and input order is kept
    within each one.
    """
    buckets: dict[str, list[dict]] = {"fully_paid": [], "partially_paid": [], "unpaid": []}
    for record in payments:
        fields = record if isinstance(record, dict) else {}
        buckets[payment_status(fields)].append(record)
    return PaymentPartition(
        fully_paid=tuple(buckets["fully_paid"]),
        partially_paid=tuple(buckets["partially_paid"]),
        unpaid=tuple(buckets["unpaid"]),
    )


def overdue_critical(unpaid: tuple | list, as_of: date) -> int:
    """Count unpaid records dated more than OVERDUE_DAYS before as_of.

    Records without a parsable date are never counted.
    """
    cutoff = as_of - timedelta(days=OVERDUE_DAYS)
    count = 0
    for record in unpaid:
        when = parse_date(record.get("date")) if isinstance(record, dict) else None
        if when is not None and when < cutoff:
            count += 1
    return count


def status_counts(partition: PaymentPartition) -> dict[str, int]:
    """Number of records in each partition."""
    return {
        "fully_paid": len(partition.fully_paid),
        "partially_paid": len(partition.partially_paid),
        "unpaid": len(partition.unpaid),
    }


def outstanding_by_status(partition: PaymentPartition) -> dict[str, float]:
    """Receivable still owed (totalAmount - amountPaid) within each partition."""
    def owed(records: tuple) -> float:
        return sum((
            max(0.0, normalize(r.get("totalAmount")) - normalize(r.get("amountPaid")))
            for r in records
            if isinstance(r, dict)
        ), 0.0)

    return {
        "fully_paid": owed(partition.fully_paid),
        "partially_paid": owed(partition.partially_paid),
        "unpaid": owed(partition.unpaid),
    }
