"""Move resolver: turns one drag-and-drop gesture into a consistent write-set.

Pure and synchronous. Both the source and destination sprints are expected to
be rank-normalized already (see ``normalizer.ensure_dense_ranks``); the
resolver still ignores unranked epics when looking for the highest rank.
"""

from __future__ import annotations

from .exceptions import NotFoundError
from .labels import relabel_epic_name
from .models import (
    DropTargetKind,
    Epic,
    MoveKind,
    MovePlan,
    RankWrite,
    Sprint,
    SprintAssignmentWrite,
)
from .normalizer import highest_rank, rank_of


def find_epic_sprint(epic_id: str, sprints: list[Sprint]) -> tuple[Epic, Sprint] | None:
    """Locate an epic among the loaded sprints."""
    for sprint in sprints:
        epic = sprint.find_epic(epic_id)
        if epic is not None:
            return epic, sprint
    return None


def _find_sprint(sprint_id: str, sprints: list[Sprint]) -> Sprint | None:
    for sprint in sprints:
        if sprint.sprint_id == sprint_id:
            return sprint
    return None


def resolve_move(
    epic_id: str,
    source_sprint_id: str | None,
    drop_target_id: str,
    drop_target_kind: DropTargetKind | str,
    sprints: list[Sprint],
    relabel: bool = True,
) -> MovePlan:
    """Compute the rank and sprint updates for dropping *epic_id* on a target.

    Raises NotFoundError if the dragged epic, the target epic or the target
    sprint is not in *sprints*, or if the epic is not in *source_sprint_id*.
    """
    kind = DropTargetKind(drop_target_kind)

    located = find_epic_sprint(epic_id, sprints)
    if located is None:
        raise NotFoundError("epic", epic_id)
    epic, source = located
    if source_sprint_id is not None and source.sprint_id != source_sprint_id:
        raise NotFoundError(
            "epic", epic_id, f"expected in sprint {source_sprint_id}, found in {source.sprint_id}"
        )

    if kind is DropTargetKind.SPRINT:
        destination = _find_sprint(drop_target_id, sprints)
        if destination is None:
            raise NotFoundError("sprint", drop_target_id)
        if destination.sprint_id == source.sprint_id:
            return _noop(epic_id, source)
        return _append_to_sprint(epic, source, destination, relabel)

    if drop_target_id == epic_id:
        return _noop(epic_id, source)

    target = find_epic_sprint(drop_target_id, sprints)
    if target is None:
        raise NotFoundError("epic", drop_target_id, "drop target")
    target_epic, destination = target

    if destination.sprint_id == source.sprint_id:
        return _reorder_within_sprint(epic, target_epic, source)
    return _transfer_onto_epic(epic, source, target_epic, destination, relabel)


def _noop(epic_id: str, sprint: Sprint) -> MovePlan:
    return MovePlan(
        epic_id=epic_id,
        kind=MoveKind.NOOP,
        source_sprint_id=sprint.sprint_id,
        destination_sprint_id=sprint.sprint_id,
    )


def _reorder_within_sprint(epic: Epic, target: Epic, sprint: Sprint) -> MovePlan:
    """Remove-and-reinsert on a dense sequence.

    The dragged epic takes the target's rank and everything between the old
    and new slot slides one place towards the vacated slot.
    """
    label = sprint.label
    end = highest_rank(label, sprint.epics) + 1
    source_rank = rank_of(epic, label) or end
    target_rank = rank_of(target, label) or end

    if source_rank == target_rank:
        return _noop(epic.id, sprint)

    writes = []
    for other in sprint.epics:
        if other.id == epic.id:
            continue
        rank = rank_of(other, label)
        if rank is None:
            continue
        if source_rank < target_rank and source_rank < rank <= target_rank:
            writes.append(RankWrite(other.id, label, rank - 1))
        elif source_rank > target_rank and target_rank <= rank < source_rank:
            writes.append(RankWrite(other.id, label, rank + 1))
    writes.append(RankWrite(epic.id, label, target_rank))

    return MovePlan(
        epic_id=epic.id,
        kind=MoveKind.REORDER,
        source_sprint_id=sprint.sprint_id,
        destination_sprint_id=sprint.sprint_id,
        rank_writes=writes,
    )


def _close_source_gap(epic: Epic, source: Sprint) -> list[RankWrite]:
    """Shift source epics ranked after the leaving epic up by one."""
    label = source.label
    vacated = rank_of(epic, label)
    if vacated is None:
        return []
    writes = []
    for other in source.epics:
        if other.id == epic.id:
            continue
        rank = rank_of(other, label)
        if rank is not None and rank > vacated:
            writes.append(RankWrite(other.id, label, rank - 1))
    return writes


def _assignment(epic: Epic, destination: Sprint, rank: int, relabel: bool) -> SprintAssignmentWrite:
    name = relabel_epic_name(epic.name, destination.sprint_id) if relabel else None
    if name == epic.name:
        name = None
    return SprintAssignmentWrite(
        epic_id=epic.id,
        sprint_id=destination.sprint_id,
        start_date=destination.start_date,
        end_date=destination.end_date,
        rank=rank,
        name=name,
    )


def _transfer_onto_epic(
    epic: Epic,
    source: Sprint,
    target: Epic,
    destination: Sprint,
    relabel: bool,
) -> MovePlan:
    label = destination.label
    target_rank = rank_of(target, label) or highest_rank(label, destination.epics) + 1

    writes = _close_source_gap(epic, source)
    for other in destination.epics:
        rank = rank_of(other, label)
        if rank is not None and rank >= target_rank:
            writes.append(RankWrite(other.id, label, rank + 1))

    return MovePlan(
        epic_id=epic.id,
        kind=MoveKind.TRANSFER,
        source_sprint_id=source.sprint_id,
        destination_sprint_id=destination.sprint_id,
        rank_writes=writes,
        assignment=_assignment(epic, destination, target_rank, relabel),
    )


def _append_to_sprint(epic: Epic, source: Sprint, destination: Sprint, relabel: bool) -> MovePlan:
    new_rank = highest_rank(destination.label, destination.epics) + 1
    return MovePlan(
        epic_id=epic.id,
        kind=MoveKind.APPEND,
        source_sprint_id=source.sprint_id,
        destination_sprint_id=destination.sprint_id,
        rank_writes=_close_source_gap(epic, source),
        assignment=_assignment(epic, destination, new_rank, relabel),
    )
