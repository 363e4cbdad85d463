"""Sprint board controller: drag lifecycle and atomic commit of rank updates."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

from ..ranking.exceptions import InvalidDragTransitionError, NotFoundError, WriteFailureError
from ..ranking.labels import canonical_sprint_id, sprint_label
from ..ranking.models import (
    BoardSnapshot,
    DropTargetKind,
    MovePlan,
    RankWrite,
    Sprint,
    SprintAssignmentWrite,
)
from ..ranking.normalizer import (
    apply_rank_writes,
    ensure_dense_ranks,
    highest_rank,
    ordered_epics,
)
from ..ranking.resolver import find_epic_sprint, resolve_move
from .config import BoardConfig
from .interface import SprintMembershipStore
from .transitions import DragPhase, validate_drag_transition

logger = logging.getLogger(__name__)

Write = RankWrite | SprintAssignmentWrite


class MoveOutcome(Enum):
    COMMITTED = "committed"
    NOOP = "noop"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class DragState:
    """What the view needs while a drag is in flight (ghost and highlight)."""

    epic_id: str
    epic_name: str = ""
    sprint_id: str | None = None
    over_id: str | None = None
    over_kind: DropTargetKind | None = None


@dataclass
class MoveResult:
    outcome: MoveOutcome
    epic_id: str | None = None
    plan: MovePlan | None = None
    repairs: list[RankWrite] = field(default_factory=list)
    written: list[Write] = field(default_factory=list)
    error: Exception | None = None
    board: BoardSnapshot | None = None

    @property
    def success(self) -> bool:
        return self.outcome in (MoveOutcome.COMMITTED, MoveOutcome.NOOP)

    def raise_for_failure(self) -> None:
        if self.error is not None and not self.success:
            raise self.error


def merge_writes(repairs: list[RankWrite], plan: MovePlan) -> list[Write]:
    """Combine back-fill repairs with a move plan into one batch.

    The plan wins over a repair for the same epic and label, and the
    assignment write replaces any rank write for the destination label.
    """
    merged: dict[tuple[str, str], RankWrite] = {}
    for write in [*repairs, *plan.rank_writes]:
        merged[(write.epic_id, write.sprint_label)] = write

    batch: list[Write] = []
    assignment = plan.assignment
    if assignment is not None:
        merged.pop((assignment.epic_id, assignment.sprint_label), None)
    batch.extend(merged.values())
    if assignment is not None:
        batch.append(assignment)
    return batch


class SprintBoardController:
    """Orchestrates one drag gesture at a time against a membership store.

    Nothing is cached between gestures: every commit reads the sprints fresh,
    normalizes the ones it touches, resolves the move, fires all writes
    concurrently and then re-reads the board.
    """

    def __init__(self, store: SprintMembershipStore, config: BoardConfig | None = None):
        self._store = store
        self._config = config or BoardConfig()
        self._phase = DragPhase.IDLE
        self._drag: DragState | None = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def drag_state(self) -> DragState | None:
        return self._drag

    def _transition(self, to_phase: DragPhase) -> None:
        validate_drag_transition(self._phase, to_phase)
        self._phase = to_phase

    def _require_phase(self, phase: DragPhase, to_phase: DragPhase) -> None:
        if self._phase is not phase:
            raise InvalidDragTransitionError(self._phase, to_phase)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_board(self) -> BoardSnapshot:
        """Read all sprints and ungrouped epics, each sprint ordered by rank."""
        sprints, ungrouped = await asyncio.gather(
            self._store.list_sprints(),
            self._store.list_ungrouped_epics(),
        )
        ordered = [
            replace(sprint, epics=ordered_epics(sprint.label, sprint.epics))
            for sprint in sprints
        ]
        return BoardSnapshot(sprints=ordered, ungrouped=list(ungrouped))

    # ------------------------------------------------------------------
    # Drag lifecycle
    # ------------------------------------------------------------------

    def drag_start(self, epic_id: str, epic_name: str = "", sprint_id: str | None = None) -> DragState:
        self._require_phase(DragPhase.IDLE, DragPhase.DRAGGING)
        self._transition(DragPhase.DRAGGING)
        self._drag = DragState(epic_id=epic_id, epic_name=epic_name, sprint_id=sprint_id)
        return self._drag

    def drag_over(self, target_id: str | None, kind: DropTargetKind | str | None = None) -> None:
        """Record the hover target for highlighting. Never writes."""
        self._require_phase(DragPhase.DRAGGING, DragPhase.DRAGGING)
        self._drag.over_id = target_id
        self._drag.over_kind = DropTargetKind(kind) if kind is not None else None

    def drag_cancel(self) -> None:
        if self._phase is DragPhase.IDLE:
            return
        self._transition(DragPhase.CANCELLED)
        self._drag = None
        self._transition(DragPhase.IDLE)

    async def drag_end(
        self,
        target_id: str | None,
        kind: DropTargetKind | str = DropTargetKind.EPIC,
    ) -> MoveResult:
        """Drop the dragged epic on a target and commit the resulting writes.

        A drop outside any target (``target_id`` None) cancels the gesture.
        """
        self._require_phase(DragPhase.DRAGGING, DragPhase.COMMITTING)
        drag = self._drag

        if target_id is None:
            self.drag_cancel()
            return MoveResult(outcome=MoveOutcome.CANCELLED, epic_id=drag.epic_id)

        self._transition(DragPhase.COMMITTING)
        try:
            return await self._commit(drag, target_id, DropTargetKind(kind))
        finally:
            self._drag = None
            self._transition(DragPhase.IDLE)

    async def move_epic(
        self,
        epic_id: str,
        target_id: str,
        kind: DropTargetKind | str = DropTargetKind.EPIC,
    ) -> MoveResult:
        """Run a whole gesture in one call: start, then drop on *target_id*."""
        self.drag_start(epic_id)
        return await self.drag_end(target_id, kind)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def _touched_sprint_ids(
        self, epic_id: str, target_id: str, kind: DropTargetKind, sprints: list[Sprint]
    ) -> set[str]:
        touched = set()
        source = find_epic_sprint(epic_id, sprints)
        if source is not None:
            touched.add(source[1].sprint_id)
        if kind is DropTargetKind.SPRINT:
            touched.add(target_id)
        else:
            target = find_epic_sprint(target_id, sprints)
            if target is not None:
                touched.add(target[1].sprint_id)
        return touched

    async def _commit(self, drag: DragState, target_id: str, kind: DropTargetKind) -> MoveResult:
        board = await self.load_board()
        touched = self._touched_sprint_ids(drag.epic_id, target_id, kind, board.sprints)

        repairs: list[RankWrite] = []
        normalized: list[Sprint] = []
        for sprint in board.sprints:
            if sprint.sprint_id in touched:
                writes = ensure_dense_ranks(sprint.label, sprint.epics)
                if writes:
                    logger.debug(
                        f"Back-filling {len(writes)} rank(s) in {sprint.label} before move"
                    )
                    repairs.extend(writes)
                    sprint = replace(
                        sprint, epics=apply_rank_writes(sprint.label, sprint.epics, writes)
                    )
            normalized.append(sprint)

        try:
            plan = resolve_move(
                drag.epic_id,
                drag.sprint_id,
                target_id,
                kind,
                normalized,
                relabel=self._config.relabel_epic_names,
            )
        except NotFoundError as e:
            logger.warning(f"Aborting move of {drag.epic_id}: {e}")
            return MoveResult(
                outcome=MoveOutcome.NOT_FOUND, epic_id=drag.epic_id, error=e, board=board
            )

        batch = merge_writes(repairs, plan)
        if not batch:
            return MoveResult(
                outcome=MoveOutcome.NOOP, epic_id=drag.epic_id, plan=plan, board=board
            )

        failures = await self._apply(batch)
        refreshed = await self.load_board()

        if failures:
            error = WriteFailureError(
                [epic_id for epic_id, _ in failures], [cause for _, cause in failures]
            )
            logger.error(f"Move of {drag.epic_id} failed: {error}")
            return MoveResult(
                outcome=MoveOutcome.FAILED,
                epic_id=drag.epic_id,
                plan=plan,
                repairs=repairs,
                written=batch,
                error=error,
                board=refreshed,
            )

        outcome = MoveOutcome.NOOP if plan.is_noop else MoveOutcome.COMMITTED
        logger.info(
            f"Moved {drag.epic_id} ({plan.kind.value}) "
            f"{plan.source_sprint_id} -> {plan.destination_sprint_id}: {len(batch)} write(s)"
        )
        return MoveResult(
            outcome=outcome,
            epic_id=drag.epic_id,
            plan=plan,
            repairs=repairs,
            written=batch,
            board=refreshed,
        )

    async def _issue(self, write: Write) -> None:
        if isinstance(write, SprintAssignmentWrite):
            await self._store.write_epic_sprint_assignment(
                write.epic_id,
                write.sprint_id,
                write.start_date,
                write.end_date,
                write.rank,
                name=write.name,
            )
        else:
            await self._store.write_epic_rank(write.epic_id, write.sprint_label, write.rank)

    async def _apply(self, batch: list[Write]) -> list[tuple[str, BaseException]]:
        """Fire every write concurrently. Returns (epic_id, exception) per failure."""
        limit = self._config.max_parallel_writes
        semaphore = asyncio.Semaphore(limit) if limit > 0 else None

        async def _write(write: Write) -> None:
            if semaphore is None:
                await self._issue(write)
                return
            async with semaphore:
                await self._issue(write)

        results = await asyncio.gather(
            *[_write(write) for write in batch],
            return_exceptions=True,
        )
        return [
            (write.epic_id, result)
            for write, result in zip(batch, results)
            if isinstance(result, BaseException)
        ]

    # ------------------------------------------------------------------
    # Grouping and repair
    # ------------------------------------------------------------------

    async def schedule_epics(
        self,
        epic_ids: list[str],
        sprint_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[SprintAssignmentWrite]:
        """Place ungrouped epics into a sprint bucket, appended in the given order.

        Missing dates are taken from the sprint when it already exists.
        """
        if self._phase is not DragPhase.IDLE:
            raise ValueError("Cannot schedule epics while a drag is in progress")

        # Each epic is placed once.
        epic_ids = list(dict.fromkeys(epic_ids))
        sprint_id = canonical_sprint_id(sprint_id)
        ungrouped = {e.id: e for e in await self._store.list_ungrouped_epics()}
        for epic_id in epic_ids:
            if epic_id not in ungrouped:
                raise NotFoundError("ungrouped epic", epic_id)

        existing = await self._store.fetch_epics_by_sprint(sprint_id)
        if start_date is None or end_date is None:
            try:
                sprint = await self._store.get_sprint(sprint_id)
            except KeyError:
                sprint = None
            if sprint is not None:
                start_date = start_date or sprint.start_date
                end_date = end_date or sprint.end_date

        next_rank = highest_rank(sprint_label(sprint_id), existing) + 1
        batch = []
        for offset, epic_id in enumerate(epic_ids):
            batch.append(
                SprintAssignmentWrite(
                    epic_id=epic_id,
                    sprint_id=sprint_id,
                    start_date=start_date,
                    end_date=end_date,
                    rank=next_rank + offset,
                )
            )

        failures = await self._apply(batch)
        if failures:
            raise WriteFailureError(
                [epic_id for epic_id, _ in failures], [cause for _, cause in failures]
            )
        logger.info(f"Scheduled {len(batch)} epic(s) into {sprint_label(sprint_id)}")
        return batch

    async def normalize_sprint(self, sprint_id: str) -> list[RankWrite]:
        """Repair a sprint's ranks to 1..N and write the result."""
        label = sprint_label(sprint_id)
        epics = await self._store.fetch_epics_by_sprint(sprint_id)
        writes = ensure_dense_ranks(label, epics)
        if not writes:
            return []
        failures = await self._apply(writes)
        if failures:
            raise WriteFailureError(
                [epic_id for epic_id, _ in failures], [cause for _, cause in failures]
            )
        logger.info(f"Normalized {label}: {len(writes)} rank(s) rewritten")
        return writes
