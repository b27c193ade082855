"""Task status state machine."""

from __future__ import annotations

from typing import Dict, List, Tuple

from .errors import InvalidTransitionError
from .models import STATUS_DONE, STATUS_IN_PROGRESS, STATUS_NOT_STARTED


VALID_STATUS_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    STATUS_NOT_STARTED: (STATUS_IN_PROGRESS,),
    STATUS_IN_PROGRESS: (STATUS_DONE, STATUS_NOT_STARTED),
    STATUS_DONE: (STATUS_IN_PROGRESS,),
}


def allowed_transitions(current: str) -> List[str]:
    """Return the statuses reachable from ``current`` in one step."""
    return list(VALID_STATUS_TRANSITIONS.get(current, ()))


def is_valid_transition(current: str, requested: str) -> bool:
    # Same-state requests are not edges; callers treat them as no-ops.
    return requested in VALID_STATUS_TRANSITIONS.get(current, ())


def check_transition(current: str, requested: str) -> None:
    """Raise ``InvalidTransitionError`` unless ``current -> requested`` is an edge."""
    if not is_valid_transition(current, requested):
        raise InvalidTransitionError(current, requested, allowed_transitions(current))
