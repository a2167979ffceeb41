"""Quote payment lifecycle.

::

    pre-quote → quoted → deposit-paid → in-production → completed

    cancelled  reachable from every state before completed
    refunded   reachable from deposit-paid, in-production and completed

Everything here works on a :class:`PaymentSnapshot` and returns a new one;
persistence is left to the quote service.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from decimal import Decimal

from backend.app.core.errors import ConflictError, InvalidTransitionError, ValidationError
from backend.app.models.quotes import PaymentStatus, PaymentType

S = PaymentStatus

TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    S.PRE_QUOTE: frozenset({S.QUOTED, S.CANCELLED}),
    S.QUOTED: frozenset({S.DEPOSIT_PAID, S.CANCELLED}),
    S.DEPOSIT_PAID: frozenset({S.IN_PRODUCTION, S.CANCELLED, S.REFUNDED}),
    S.IN_PRODUCTION: frozenset({S.COMPLETED, S.CANCELLED, S.REFUNDED}),
    S.COMPLETED: frozenset({S.REFUNDED}),
    S.CANCELLED: frozenset(),
    S.REFUNDED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


@dataclass(frozen=True)
class PaymentSnapshot:
    status: PaymentStatus
    total_paid: Decimal
    total_due: Decimal


@dataclass(frozen=True)
class PaymentOutcome:
    snapshot: PaymentSnapshot
    warnings: list[str] = field(default_factory=list)


# ─── Guards ───────────────────────────────────────────────────────────────────

Guard = Callable[[PaymentSnapshot], bool]

_GUARDS: dict[PaymentStatus, tuple[Guard, str]] = {
    S.DEPOSIT_PAID: (
        lambda s: s.total_paid > 0,
        "a deposit must be recorded first",
    ),
    S.COMPLETED: (
        lambda s: s.total_paid >= s.total_due,
        "the quote is not fully paid",
    ),
    S.REFUNDED: (
        lambda s: s.total_paid == 0,
        "all payments must be refunded first",
    ),
}


def allowed_transitions(status: PaymentStatus) -> frozenset[PaymentStatus]:
    return TRANSITIONS[status]


def check_transition(snapshot: PaymentSnapshot, target: PaymentStatus) -> str | None:
    """Return the reason ``target`` is not reachable, or ``None`` if it is."""
    if target not in TRANSITIONS[snapshot.status]:
        return "transition not allowed"
    guard = _GUARDS.get(target)
    if guard is not None and not guard[0](snapshot):
        return guard[1]
    return None


def can_transition(snapshot: PaymentSnapshot, target: PaymentStatus) -> bool:
    return check_transition(snapshot, target) is None


def transition(snapshot: PaymentSnapshot, target: PaymentStatus) -> PaymentSnapshot:
    reason = check_transition(snapshot, target)
    if reason is not None:
        raise InvalidTransitionError(snapshot.status.value, target.value, reason)
    return replace(snapshot, status=target)


# ─── Payments ─────────────────────────────────────────────────────────────────


def apply_payment(
    snapshot: PaymentSnapshot, payment_type: PaymentType, amount: Decimal
) -> PaymentOutcome:
    """Apply a signed payment to ``total_paid``; status is left unchanged."""
    if amount <= 0:
        raise ValidationError.single("amount", "Amount must be greater than 0", "INVALID_AMOUNT")
    if snapshot.status == S.REFUNDED:
        raise ConflictError(
            "Refunded quotes accept no further payments", code="QUOTE_CLOSED"
        )
    if snapshot.status == S.CANCELLED and payment_type.sign > 0:
        raise ConflictError(
            "Cancelled quotes only accept refunds and adjustments", code="QUOTE_CLOSED"
        )

    new_total = snapshot.total_paid + payment_type.sign * amount
    if new_total < 0:
        raise ValidationError.single(
            "amount",
            f"{payment_type.value} of {amount} exceeds the {snapshot.total_paid} paid so far",
            "INVALID_AMOUNT",
        )

    warnings: list[str] = []
    if new_total > snapshot.total_due:
        warnings.append(
            f"Total paid {new_total} exceeds the quoted total {snapshot.total_due}"
        )
    return PaymentOutcome(snapshot=replace(snapshot, total_paid=new_total), warnings=warnings)
