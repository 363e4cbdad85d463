"""Pure handler functions for sprint board MCP tools.

Each handler takes (args, store) and returns MCP result format.
No SDK dependency, testable with InMemoryStore.
"""

import json
from datetime import date
from typing import Any

from ..board.controller import MoveOutcome, SprintBoardController
from ..board.interface import SprintMembershipStore
from ..board.progress import completion_pct, epic_story_points, sprint_story_points
from ..ranking.exceptions import InvalidSprintLabelError, NotFoundError, WriteFailureError
from ..ranking.models import Epic, Sprint
from ..ranking.normalizer import ordered_epics, rank_of


def _text_result(text: str) -> dict[str, Any]:
    """Build MCP tool result with a text content block."""
    return {"content": [{"type": "text", "text": text}]}


def _json_result(data: Any) -> dict[str, Any]:
    """Build MCP tool result with JSON-serialized content."""
    return _text_result(json.dumps(data, indent=2, default=str))


def _epic_summary(epic: Epic, label: str | None) -> dict[str, Any]:
    points = epic_story_points(epic)
    return {
        "id": epic.id,
        "name": epic.name,
        "rank": rank_of(epic, label) if label else None,
        "tasks": len(epic.tasks),
        "story_points": {"total": points.total, "completed": points.completed},
    }


def _sprint_summary(sprint: Sprint) -> dict[str, Any]:
    points = sprint_story_points(sprint)
    return {
        "sprint_id": sprint.sprint_id,
        "label": sprint.label,
        "start_date": sprint.start_date,
        "end_date": sprint.end_date,
        "scheduled": sprint.is_scheduled,
        "story_points": {
            "total": points.total,
            "completed": points.completed,
            "pct": completion_pct(points),
        },
        "epics": [
            _epic_summary(e, sprint.label) for e in ordered_epics(sprint.label, sprint.epics)
        ],
    }


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value))


async def get_sprint_board_handler(
    args: dict[str, Any], store: SprintMembershipStore
) -> dict[str, Any]:
    """Get every sprint with its epics in rank order, plus ungrouped epics."""
    board = await SprintBoardController(store).load_board()
    return _json_result({
        "sprints": [_sprint_summary(s) for s in board.sprints],
        "ungrouped": [_epic_summary(e, None) for e in board.ungrouped],
    })


async def get_sprint_handler(
    args: dict[str, Any], store: SprintMembershipStore
) -> dict[str, Any]:
    """Get one sprint with its epics in rank order."""
    sprint_id = args["sprint_id"]
    try:
        sprint = await store.get_sprint(sprint_id)
    except (KeyError, InvalidSprintLabelError):
        return _text_result(f"Error: Sprint not found: {sprint_id}")
    return _json_result(_sprint_summary(sprint))


async def move_epic_handler(
    args: dict[str, Any], store: SprintMembershipStore
) -> dict[str, Any]:
    """Drop an epic onto another epic (insert at its rank) or a sprint (append)."""
    epic_id = args["epic_id"]
    target_id = args["target_id"]
    kind = args.get("target_kind") or "epic"
    if kind not in ("epic", "sprint"):
        return _text_result(f"Error: target_kind must be 'epic' or 'sprint', got {kind!r}")

    result = await SprintBoardController(store).move_epic(epic_id, target_id, kind)
    if result.outcome in (MoveOutcome.NOT_FOUND, MoveOutcome.FAILED):
        return _text_result(f"Error: {result.error}")

    plan = result.plan
    return _json_result({
        "outcome": result.outcome.value,
        "kind": plan.kind.value if plan else None,
        "source_sprint_id": plan.source_sprint_id if plan else None,
        "destination_sprint_id": plan.destination_sprint_id if plan else None,
        "repairs": len(result.repairs),
        "writes": len(result.written),
        "rank": plan.final_rank(epic_id) if plan else None,
    })


async def schedule_epics_handler(
    args: dict[str, Any], store: SprintMembershipStore
) -> dict[str, Any]:
    """Place ungrouped epics into a sprint. epic_ids is a JSON list string."""
    sprint_id = args["sprint_id"]
    raw_ids = args.get("epic_ids", "[]")
    try:
        epic_ids = json.loads(raw_ids) if isinstance(raw_ids, str) else raw_ids
    except json.JSONDecodeError:
        epic_ids = [raw_ids]

    try:
        start = _parse_date(args.get("start_date"))
        end = _parse_date(args.get("end_date"))
    except ValueError as e:
        return _text_result(f"Error: Invalid date: {e}")

    try:
        writes = await SprintBoardController(store).schedule_epics(epic_ids, sprint_id, start, end)
    except (NotFoundError, WriteFailureError, InvalidSprintLabelError) as e:
        return _text_result(f"Error: {e}")

    return _json_result({
        "scheduled": [{"epic_id": w.epic_id, "rank": w.rank} for w in writes],
        "sprint_id": sprint_id,
    })


async def normalize_sprint_handler(
    args: dict[str, Any], store: SprintMembershipStore
) -> dict[str, Any]:
    """Repair a sprint's ranks to a contiguous 1..N sequence."""
    sprint_id = args["sprint_id"]
    try:
        writes = await SprintBoardController(store).normalize_sprint(sprint_id)
    except (WriteFailureError, InvalidSprintLabelError) as e:
        return _text_result(f"Error: {e}")
    return _json_result({
        "sprint_id": sprint_id,
        "rewritten": [{"epic_id": w.epic_id, "rank": w.rank} for w in writes],
    })
