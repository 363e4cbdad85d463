"""Board view model: turns a board snapshot into ordered sprint columns.

Kept free of textual so it can be tested without a running app. UI state
(collapsed sprints, hidden unscheduled sprints) is passed in explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from sprintrank.board.controller import DragState
from sprintrank.board.progress import StoryPoints, completion_pct, epic_story_points, sprint_story_points
from sprintrank.ranking.models import BoardSnapshot, DropTargetKind, Sprint
from sprintrank.ranking.normalizer import ordered_epics, rank_of

# Sprint header color by schedule state
SCHEDULED_COLOR = "cyan"
UNSCHEDULED_COLOR = "white"


@dataclass
class ViewState:
    collapsed: set[str] = field(default_factory=set)
    hide_unscheduled: bool = False

    def toggle_collapsed(self, sprint_id: str) -> bool:
        """Flip a sprint's collapsed flag. Returns the new value."""
        if sprint_id in self.collapsed:
            self.collapsed.discard(sprint_id)
            return False
        self.collapsed.add(sprint_id)
        return True


@dataclass
class EpicRow:
    epic_id: str
    name: str
    sprint_id: str
    rank: int | None
    points: StoryPoints
    task_count: int = 0


@dataclass
class SprintColumn:
    sprint_id: str
    label: str
    start_date: date | None
    end_date: date | None
    points: StoryPoints
    rows: list[EpicRow] = field(default_factory=list)
    collapsed: bool = False

    @property
    def scheduled(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def header_text(self) -> str:
        color = SCHEDULED_COLOR if self.scheduled else UNSCHEDULED_COLOR
        dates = f"{self.start_date:%b %d} - {self.end_date:%b %d}" if self.scheduled else "not scheduled"
        chevron = ">" if self.collapsed else "v"
        return (
            f"[bold {color}]{chevron} {self.label}[/] [dim]({len(self.rows)})[/]\n"
            f"[dim]{dates} | {self.points.completed:g}/{self.points.total:g} pts "
            f"({completion_pct(self.points)}%)[/]"
        )


@dataclass(frozen=True)
class DropTarget:
    target_id: str
    kind: DropTargetKind


def sprint_sort_key(sprint: Sprint) -> tuple:
    """Scheduled sprints first by start date, unscheduled last by id."""
    return (not sprint.is_scheduled, sprint.start_date or date.max, sprint.sprint_id)


def build_columns(snapshot: BoardSnapshot, state: ViewState | None = None) -> list[SprintColumn]:
    state = state or ViewState()
    columns = []
    for sprint in sorted(snapshot.sprints, key=sprint_sort_key):
        if state.hide_unscheduled and not sprint.is_scheduled:
            continue
        label = sprint.label
        rows = [
            EpicRow(
                epic_id=epic.id,
                name=epic.name,
                sprint_id=sprint.sprint_id,
                rank=rank_of(epic, label),
                points=epic_story_points(epic),
                task_count=len(epic.tasks),
            )
            for epic in ordered_epics(label, sprint.epics)
        ]
        columns.append(
            SprintColumn(
                sprint_id=sprint.sprint_id,
                label=label,
                start_date=sprint.start_date,
                end_date=sprint.end_date,
                points=sprint_story_points(sprint),
                rows=rows,
                collapsed=sprint.sprint_id in state.collapsed,
            )
        )
    return columns


def row_text(row: EpicRow, dragging: bool = False, hovered: bool = False) -> str:
    rank = f"{row.rank:>2}" if row.rank is not None else " -"
    marker = "[reverse]" if dragging else ""
    end = "[/]" if dragging else ""
    prefix = "[bold yellow]>>[/] " if hovered else ""
    return f"{prefix}{marker}[dim]{rank}.[/] {row.name} [dim]({row.points.total:g} pts)[/]{end}"


def ghost_text(drag: DragState | None) -> str:
    """Status line shown while an epic is being dragged."""
    if drag is None:
        return ""
    name = drag.epic_name or drag.epic_id
    if drag.over_id is None:
        return f"Moving {name}"
    where = "sprint" if drag.over_kind is DropTargetKind.SPRINT else "epic"
    return f"Moving {name} onto {where} {drag.over_id}"
