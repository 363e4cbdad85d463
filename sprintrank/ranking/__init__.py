from .exceptions import (
    InvalidDragTransitionError,
    InvalidSprintLabelError,
    NotFoundError,
    WriteFailureError,
)
from .labels import canonical_sprint_id, parse_sprint_label, sprint_label
from .models import (
    BoardSnapshot,
    DropTargetKind,
    Epic,
    MoveKind,
    MovePlan,
    RankWrite,
    Sprint,
    SprintAssignmentWrite,
    WorkItem,
)
from .normalizer import ensure_dense_ranks
from .resolver import resolve_move

__all__ = [
    "BoardSnapshot",
    "DropTargetKind",
    "Epic",
    "InvalidDragTransitionError",
    "InvalidSprintLabelError",
    "MoveKind",
    "MovePlan",
    "NotFoundError",
    "RankWrite",
    "Sprint",
    "SprintAssignmentWrite",
    "WorkItem",
    "WriteFailureError",
    "canonical_sprint_id",
    "ensure_dense_ranks",
    "parse_sprint_label",
    "resolve_move",
    "sprint_label",
]
