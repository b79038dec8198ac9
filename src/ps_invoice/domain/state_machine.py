"""Invoice status state machine.

    draft   -> pending     (issued / sent)
    pending -> paid        (settlement succeeds)
    paid    -> released    (funds released from escrow)
    paid    -> refunded    (reversal)

pending -> overdue is derived at read time (due_date < now while persisted status
is pending) and is never written. Every other edge is illegal.
"""

from datetime import datetime

from src.ps_common.enums import InvoiceStatus
from src.ps_common.errors import InvalidTransitionError, ValidationError

_ALLOWED: frozenset[tuple[InvoiceStatus, InvoiceStatus]] = frozenset({
    (InvoiceStatus.DRAFT, InvoiceStatus.PENDING),
    (InvoiceStatus.PENDING, InvoiceStatus.PAID),
    (InvoiceStatus.PAID, InvoiceStatus.RELEASED),
    (InvoiceStatus.PAID, InvoiceStatus.REFUNDED),
})

# Statuses whose details (recipient, due date, description) may still change
EDITABLE_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.PENDING})


def parse_status(value: str) -> InvoiceStatus:
    try:
        return InvoiceStatus(value.strip().lower())
    except (ValueError, AttributeError):
        allowed = ", ".join(s.value for s in InvoiceStatus)
        raise ValidationError(f"unknown status {value!r} (allowed: {allowed})") from None


def is_allowed(from_status: InvoiceStatus, to_status: InvoiceStatus) -> bool:
    return (from_status, to_status) in _ALLOWED


def check_transition(from_status: InvoiceStatus, to_status: InvoiceStatus) -> None:
    """Raise InvalidTransitionError unless from -> to is a legal, writable edge."""
    if to_status == InvoiceStatus.OVERDUE:
        raise InvalidTransitionError(
            from_status.value, to_status.value, "overdue is derived from due date, never written"
        )
    if not is_allowed(from_status, to_status):
        raise InvalidTransitionError(from_status.value, to_status.value)


def derive_status(persisted: str, due_date: datetime, now: datetime) -> str:
    """Read-time status: a pending invoice past its due date reports overdue."""
    if persisted == InvoiceStatus.PENDING.value and due_date < now:
        return InvoiceStatus.OVERDUE.value
    return persisted


def status_timestamps(
    new_status: str, now: datetime, paid_at: datetime | None
) -> tuple[datetime | None, datetime | None]:
    """(paid_at, refunded_at) after moving to new_status.

    paid_at is set exactly while the invoice is paid or released.
    """
    if new_status == InvoiceStatus.PAID.value:
        return now, None
    if new_status == InvoiceStatus.REFUNDED.value:
        return None, now
    return paid_at, None
