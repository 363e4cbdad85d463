"""CLI entry point for the sprint board.

Usage:
  sprintrank show [--sprint ID] [--store sprintboard.yaml]
  sprintrank move <epic_id> (--onto-epic ID | --onto-sprint ID)
  sprintrank schedule <sprint_id> <epic_id>... [--start YYYY-MM-DD] [--end YYYY-MM-DD]
  sprintrank normalize <sprint_id>
  sprintrank add-sprint <sprint_id> [--start YYYY-MM-DD] [--end YYYY-MM-DD]
  sprintrank add-epic <name> [--sprint ID]
  sprintrank board
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date

from sprintrank.ranking.labels import sprint_label


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sprint ranking board")
    parser.add_argument("--store", default="sprintboard.yaml", help="Board YAML file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    show_parser = subparsers.add_parser("show", help="Show sprints and epics in rank order")
    show_parser.add_argument("--sprint", default=None, help="Only show this sprint")

    move_parser = subparsers.add_parser("move", help="Move an epic")
    move_parser.add_argument("epic_id", help="Epic to move")
    target = move_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--onto-epic", default=None, help="Insert at this epic's rank")
    target.add_argument("--onto-sprint", default=None, help="Append to the end of this sprint")

    schedule_parser = subparsers.add_parser("schedule", help="Place ungrouped epics into a sprint")
    schedule_parser.add_argument("sprint_id", help="Destination sprint")
    schedule_parser.add_argument("epic_ids", nargs="+", help="Epics to schedule, in order")
    schedule_parser.add_argument("--start", type=_iso_date, default=None, help="Sprint start date")
    schedule_parser.add_argument("--end", type=_iso_date, default=None, help="Sprint end date")

    normalize_parser = subparsers.add_parser("normalize", help="Repair a sprint's ranks to 1..N")
    normalize_parser.add_argument("sprint_id", help="Sprint to repair")

    sprint_parser = subparsers.add_parser("add-sprint", help="Create a sprint")
    sprint_parser.add_argument("sprint_id", help="Sprint id, e.g. 007")
    sprint_parser.add_argument("--start", type=_iso_date, default=None, help="Start date")
    sprint_parser.add_argument("--end", type=_iso_date, default=None, help="End date")

    epic_parser = subparsers.add_parser("add-epic", help="Create an epic")
    epic_parser.add_argument("name", help="Epic name")
    epic_parser.add_argument("--sprint", default=None, help="Place it in this sprint")

    subparsers.add_parser("board", help="Open the interactive terminal board")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "board":
        from board_tui.app import run_board

        run_board(args.store)
        return

    commands = {
        "show": _show_command,
        "move": _move_command,
        "schedule": _schedule_command,
        "normalize": _normalize_command,
        "add-sprint": _add_sprint_command,
        "add-epic": _add_epic_command,
    }
    asyncio.run(commands[args.command](args))


def _controller(args):
    from sprintrank.adapters.yaml_file import YamlFileStore
    from sprintrank.board.controller import SprintBoardController

    store = YamlFileStore(args.store)
    return store, SprintBoardController(store)


def _print_sprint(sprint) -> None:
    from sprintrank.board.progress import completion_pct, sprint_story_points
    from sprintrank.ranking.normalizer import rank_of

    points = sprint_story_points(sprint)
    if sprint.is_scheduled:
        dates = f"{sprint.start_date} .. {sprint.end_date}"
    else:
        dates = "not scheduled"
    print(f"{sprint.label} ({dates}) {points.completed:g}/{points.total:g} pts ({completion_pct(points)}%)")
    if not sprint.epics:
        print("  (empty)")
    for epic in sprint.epics:
        rank = rank_of(epic, sprint.label)
        print(f"  {rank if rank is not None else '-':>3}. {epic.name} [{epic.id}]")


async def _show_command(args) -> None:
    _, controller = _controller(args)
    board = await controller.load_board()

    if args.sprint is not None:
        sprint = board.get_sprint(args.sprint)
        if sprint is None:
            print(f"Sprint not found: {args.sprint}", file=sys.stderr)
            sys.exit(1)
        _print_sprint(sprint)
        return

    for sprint in board.sprints:
        _print_sprint(sprint)
    if board.ungrouped:
        print("Ungrouped")
        for epic in board.ungrouped:
            print(f"    - {epic.name} [{epic.id}]")


async def _move_command(args) -> None:
    from sprintrank.ranking.models import DropTargetKind

    _, controller = _controller(args)
    if args.onto_sprint is not None:
        target, kind = args.onto_sprint, DropTargetKind.SPRINT
    else:
        target, kind = args.onto_epic, DropTargetKind.EPIC

    result = await controller.move_epic(args.epic_id, target, kind)
    try:
        result.raise_for_failure()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if result.plan is None or result.plan.is_noop:
        print(f"{args.epic_id}: no change")
        return
    plan = result.plan
    print(
        f"{args.epic_id}: {plan.kind.value} -> {sprint_label(plan.destination_sprint_id)} "
        f"rank {plan.final_rank(args.epic_id)} ({len(result.written)} writes)"
    )
    sprint = result.board.get_sprint(plan.destination_sprint_id) if result.board else None
    if sprint is not None:
        _print_sprint(sprint)


async def _schedule_command(args) -> None:
    _, controller = _controller(args)
    try:
        writes = await controller.schedule_epics(args.epic_ids, args.sprint_id, args.start, args.end)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    for write in writes:
        print(f"{write.epic_id} -> {write.sprint_label} rank {write.rank}")


async def _normalize_command(args) -> None:
    _, controller = _controller(args)
    try:
        writes = await controller.normalize_sprint(args.sprint_id)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if not writes:
        print(f"{sprint_label(args.sprint_id)}: ranks already dense")
    for write in writes:
        print(f"{write.epic_id} -> rank {write.rank}")


async def _add_sprint_command(args) -> None:
    store, _ = _controller(args)
    try:
        sprint = await store.create_sprint(args.sprint_id, args.start, args.end)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Created {sprint.label}")


async def _add_epic_command(args) -> None:
    from sprintrank.ranking.normalizer import highest_rank

    store, _ = _controller(args)
    rank = None
    if args.sprint is not None:
        rank = highest_rank(
            sprint_label(args.sprint), await store.fetch_epics_by_sprint(args.sprint)
        ) + 1
    try:
        epic = await store.create_epic(args.name, sprint_id=args.sprint, rank=rank)
    except KeyError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Created {epic.id}: {epic.name}")


if __name__ == "__main__":
    main()
