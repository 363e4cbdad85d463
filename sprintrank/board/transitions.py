"""Drag gesture state machine defined as data."""

from __future__ import annotations

from enum import Enum

from ..ranking.exceptions import InvalidDragTransitionError


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    CANCELLED = "cancelled"


VALID_DRAG_TRANSITIONS: frozenset[tuple[DragPhase, DragPhase]] = frozenset(
    {
        (DragPhase.IDLE, DragPhase.DRAGGING),           # drag start
        (DragPhase.DRAGGING, DragPhase.DRAGGING),       # drag over
        (DragPhase.DRAGGING, DragPhase.COMMITTING),     # drop on a target
        (DragPhase.DRAGGING, DragPhase.CANCELLED),      # cancel / drop outside
        (DragPhase.COMMITTING, DragPhase.IDLE),         # commit finished
        (DragPhase.CANCELLED, DragPhase.IDLE),          # discard
    }
)


def validate_drag_transition(from_phase: DragPhase, to_phase: DragPhase) -> None:
    """Raise InvalidDragTransitionError if the transition is not allowed."""
    if (from_phase, to_phase) not in VALID_DRAG_TRANSITIONS:
        raise InvalidDragTransitionError(from_phase, to_phase)
