"""Domain models for sprint ranking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .labels import sprint_label


class DropTargetKind(Enum):
    EPIC = "epic"
    SPRINT = "sprint"


class MoveKind(Enum):
    NOOP = "noop"
    REORDER = "reorder"
    TRANSFER = "transfer"
    APPEND = "append"


@dataclass
class WorkItem:
    id: str
    name: str
    status: str = "todo"
    story_points: float = 0.0


@dataclass
class Epic:
    """A schedulable group of work items with a per-sprint rank history.

    Only ``rank[sprint_label(current_sprint_id)]`` is authoritative; entries
    for other sprints are kept as history and never read for ordering.
    """

    id: str
    name: str
    current_sprint_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    rank: dict[str, int] = field(default_factory=dict)
    tasks: list[WorkItem] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def is_grouped(self) -> bool:
        return self.current_sprint_id is not None

    @property
    def current_label(self) -> str | None:
        if self.current_sprint_id is None:
            return None
        return sprint_label(self.current_sprint_id)


@dataclass
class Sprint:
    sprint_id: str
    start_date: date | None = None
    end_date: date | None = None
    epics: list[Epic] = field(default_factory=list)

    @property
    def label(self) -> str:
        return sprint_label(self.sprint_id)

    @property
    def is_scheduled(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def find_epic(self, epic_id: str) -> Epic | None:
        for epic in self.epics:
            if epic.id == epic_id:
                return epic
        return None


@dataclass
class BoardSnapshot:
    sprints: list[Sprint] = field(default_factory=list)
    ungrouped: list[Epic] = field(default_factory=list)

    def get_sprint(self, sprint_id: str) -> Sprint | None:
        for sprint in self.sprints:
            if sprint.sprint_id == sprint_id:
                return sprint
        return None


@dataclass(frozen=True)
class RankWrite:
    epic_id: str
    sprint_label: str
    rank: int


@dataclass(frozen=True)
class SprintAssignmentWrite:
    """Moves an epic into a sprint and sets its rank there in one update."""

    epic_id: str
    sprint_id: str
    start_date: date | None
    end_date: date | None
    rank: int
    name: str | None = None

    @property
    def sprint_label(self) -> str:
        return sprint_label(self.sprint_id)


@dataclass
class MovePlan:
    """Complete write-set for one drag-and-drop gesture."""

    epic_id: str
    kind: MoveKind
    source_sprint_id: str | None = None
    destination_sprint_id: str | None = None
    rank_writes: list[RankWrite] = field(default_factory=list)
    assignment: SprintAssignmentWrite | None = None

    @property
    def is_noop(self) -> bool:
        return self.kind is MoveKind.NOOP

    @property
    def writes(self) -> list[RankWrite | SprintAssignmentWrite]:
        writes: list[RankWrite | SprintAssignmentWrite] = list(self.rank_writes)
        if self.assignment is not None:
            writes.append(self.assignment)
        return writes

    def final_rank(self, epic_id: str) -> int | None:
        """Rank this plan assigns to an epic in the sprint it ends up in."""
        if self.assignment is not None and self.assignment.epic_id == epic_id:
            return self.assignment.rank
        for write in self.rank_writes:
            if write.epic_id == epic_id:
                return write.rank
        return None
