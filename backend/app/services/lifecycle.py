"""Request lifecycle state machine.

    pending              ──► approved | rejected
    pending_verification ──► approved | rejected

``approved`` and ``rejected`` are terminal. The initial state depends on the
payment path: ``pending`` when the gateway already confirmed the money,
``pending_verification`` when the customer self-reported a bank transfer.
"""
from app.errors import InvalidTransition
from app.models.service_request import PaymentMethod, RequestStatus

TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.pending: frozenset({RequestStatus.approved, RequestStatus.rejected}),
    RequestStatus.pending_verification: frozenset({RequestStatus.approved, RequestStatus.rejected}),
    RequestStatus.approved: frozenset(),
    RequestStatus.rejected: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

INITIAL_STATES = {
    PaymentMethod.gateway: RequestStatus.pending,
    PaymentMethod.bank_transfer: RequestStatus.pending_verification,
}


def initial_status(method: PaymentMethod) -> RequestStatus:
    return INITIAL_STATES[method]


def is_terminal(status: RequestStatus) -> bool:
    return status in TERMINAL_STATES


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: RequestStatus, target: RequestStatus) -> None:
    """Raise InvalidTransition unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidTransition(current.value, target.value)
