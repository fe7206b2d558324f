"""
RETURN LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Return entities.

    pending  -> approved | rejected | cancelled
    approved -> completed

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from returns.models import Return
from returns.services.exceptions import InvalidReturnTransitionError

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Return.STATUS_REJECTED,
    Return.STATUS_COMPLETED,
    Return.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Return.STATUS_PENDING: {
        Return.STATUS_APPROVED,
        Return.STATUS_REJECTED,
        Return.STATUS_CANCELLED,
    },
    Return.STATUS_APPROVED: {
        Return.STATUS_COMPLETED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, return_request: Return, target_status: str):
    if not can_transition(
        from_status=return_request.status,
        to_status=target_status,
    ):
        raise InvalidReturnTransitionError(
            f"Return {return_request.return_number or return_request.id} cannot transition "
            f"from '{return_request.status}' to '{target_status}'",
            current_status=return_request.status,
            target_status=target_status,
        )
