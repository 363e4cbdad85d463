"""Story point and task progress aggregation for sprint cards."""

from __future__ import annotations

from dataclasses import dataclass

from ..ranking.models import Epic, Sprint

DONE_STATUS = "done"


@dataclass
class StoryPoints:
    total: float = 0.0
    completed: float = 0.0


def epic_story_points(epic: Epic) -> StoryPoints:
    points = StoryPoints()
    for task in epic.tasks:
        points.total += task.story_points
        if task.status == DONE_STATUS:
            points.completed += task.story_points
    return points


def sprint_story_points(sprint: Sprint) -> StoryPoints:
    points = StoryPoints()
    for epic in sprint.epics:
        epic_points = epic_story_points(epic)
        points.total += epic_points.total
        points.completed += epic_points.completed
    return points


def task_status_counts(epics: list[Epic]) -> dict[str, int]:
    """Count child work items by status across *epics*."""
    counts: dict[str, int] = {"todo": 0, "in-progress": 0, "done": 0}
    for epic in epics:
        for task in epic.tasks:
            counts[task.status] = counts.get(task.status, 0) + 1
    return counts


def completion_pct(points: StoryPoints) -> float:
    return round(points.completed / points.total * 100, 1) if points.total > 0 else 0.0
