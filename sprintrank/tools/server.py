"""MCP server factory binding board handlers to a membership store."""

from typing import Any

from claude_agent_sdk import create_sdk_mcp_server, tool

from ..board.interface import SprintMembershipStore
from . import handlers


def create_board_server(store: SprintMembershipStore):
    """Create an MCP server with sprint board tools.

    Each handler is bound to the store via closure so the @tool wrappers
    are clean single-argument async functions as the SDK expects.
    """

    @tool(
        "get_sprint_board",
        "Get all sprints with their epics in rank order, story points, and ungrouped epics",
        {},
    )
    async def get_sprint_board(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.get_sprint_board_handler(args, store)

    @tool(
        "get_sprint",
        "Get one sprint by ID with its epics in rank order",
        {"sprint_id": str},
    )
    async def get_sprint(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.get_sprint_handler(args, store)

    @tool(
        "move_epic",
        "Move an epic. target_kind 'epic' inserts at the target epic's rank (any sprint); "
        "'sprint' appends to the end of the target sprint.",
        {"epic_id": str, "target_id": str, "target_kind": str},
    )
    async def move_epic(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.move_epic_handler(args, store)

    @tool(
        "schedule_epics",
        "Place ungrouped epics into a sprint. epic_ids is a JSON list; dates are YYYY-MM-DD.",
        {"sprint_id": str, "epic_ids": str, "start_date": str, "end_date": str},
    )
    async def schedule_epics(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.schedule_epics_handler(args, store)

    @tool(
        "normalize_sprint",
        "Repair a sprint's epic ranks to a contiguous 1..N sequence",
        {"sprint_id": str},
    )
    async def normalize_sprint(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.normalize_sprint_handler(args, store)

    return create_sdk_mcp_server(
        name="sprint_board",
        version="0.1.0",
        tools=[get_sprint_board, get_sprint, move_epic, schedule_epics, normalize_sprint],
    )
