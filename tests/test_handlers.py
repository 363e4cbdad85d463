"""Tests for sprint board tool handler functions using InMemoryStore."""

import json
from typing import Any

import pytest

from sprintrank.tools.handlers import (
    get_sprint_board_handler,
    get_sprint_handler,
    move_epic_handler,
    normalize_sprint_handler,
    schedule_epics_handler,
)


def _parse_result(result: dict) -> Any:
    """Extract and parse the text content from an MCP result."""
    text = result["content"][0]["text"]
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class TestGetSprintBoard:
    @pytest.mark.asyncio
    async def test_lists_sprints_and_ungrouped(self, seeded_store):
        data = _parse_result(await get_sprint_board_handler({}, seeded_store))
        assert [s["sprint_id"] for s in data["sprints"]] == ["007", "008"]
        assert [e["id"] for e in data["ungrouped"]] == ["e-6"]
        assert data["ungrouped"][0]["rank"] is None

    @pytest.mark.asyncio
    async def test_includes_points(self, seeded_store):
        data = _parse_result(await get_sprint_board_handler({}, seeded_store))
        s007 = data["sprints"][0]
        assert s007["story_points"] == {"total": 10.0, "completed": 3.0, "pct": 30.0}
        assert s007["epics"][0]["story_points"] == {"total": 8.0, "completed": 3.0}

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        data = _parse_result(await get_sprint_board_handler({}, store))
        assert data == {"sprints": [], "ungrouped": []}


class TestGetSprint:
    @pytest.mark.asyncio
    async def test_epics_in_rank_order(self, seeded_store):
        await seeded_store.write_epic_rank("e-1", "Sprint 007", 3)
        await seeded_store.write_epic_rank("e-3", "Sprint 007", 1)
        data = _parse_result(await get_sprint_handler({"sprint_id": "007"}, seeded_store))
        assert data["label"] == "Sprint 007"
        assert data["scheduled"] is True
        assert [(e["id"], e["rank"]) for e in data["epics"]] == [("e-3", 1), ("e-2", 2), ("e-1", 3)]

    @pytest.mark.asyncio
    async def test_missing(self, seeded_store):
        text = _parse_result(await get_sprint_handler({"sprint_id": "404"}, seeded_store))
        assert text == "Error: Sprint not found: 404"


class TestMoveEpic:
    @pytest.mark.asyncio
    async def test_reorder(self, seeded_store):
        data = _parse_result(
            await move_epic_handler({"epic_id": "e-3", "target_id": "e-1"}, seeded_store)
        )
        assert data["outcome"] == "committed"
        assert data["kind"] == "reorder"
        assert data["rank"] == 1
        assert data["writes"] == 3

    @pytest.mark.asyncio
    async def test_onto_sprint(self, seeded_store):
        data = _parse_result(
            await move_epic_handler(
                {"epic_id": "e-1", "target_id": "008", "target_kind": "sprint"}, seeded_store
            )
        )
        assert data["kind"] == "append"
        assert data["destination_sprint_id"] == "008"
        assert data["rank"] == 3

    @pytest.mark.asyncio
    async def test_noop(self, seeded_store):
        data = _parse_result(
            await move_epic_handler({"epic_id": "e-1", "target_id": "e-1"}, seeded_store)
        )
        assert data["outcome"] == "noop"
        assert data["writes"] == 0

    @pytest.mark.asyncio
    async def test_bad_kind(self, seeded_store):
        text = _parse_result(
            await move_epic_handler(
                {"epic_id": "e-1", "target_id": "008", "target_kind": "column"}, seeded_store
            )
        )
        assert text.startswith("Error: target_kind")

    @pytest.mark.asyncio
    async def test_not_found(self, seeded_store):
        text = _parse_result(
            await move_epic_handler({"epic_id": "e-404", "target_id": "e-1"}, seeded_store)
        )
        assert text == "Error: Epic not found: e-404"


class TestScheduleEpics:
    @pytest.mark.asyncio
    async def test_json_list(self, seeded_store):
        data = _parse_result(
            await schedule_epics_handler(
                {"sprint_id": "008", "epic_ids": '["e-6"]'}, seeded_store
            )
        )
        assert data["scheduled"] == [{"epic_id": "e-6", "rank": 3}]

    @pytest.mark.asyncio
    async def test_plain_id(self, seeded_store):
        data = _parse_result(
            await schedule_epics_handler({"sprint_id": "008", "epic_ids": "e-6"}, seeded_store)
        )
        assert data["scheduled"][0]["epic_id"] == "e-6"

    @pytest.mark.asyncio
    async def test_bad_date(self, seeded_store):
        text = _parse_result(
            await schedule_epics_handler(
                {"sprint_id": "009", "epic_ids": '["e-6"]', "start_date": "soon"}, seeded_store
            )
        )
        assert text.startswith("Error: Invalid date")

    @pytest.mark.asyncio
    async def test_grouped_epic_rejected(self, seeded_store):
        text = _parse_result(
            await schedule_epics_handler({"sprint_id": "008", "epic_ids": '["e-1"]'}, seeded_store)
        )
        assert text == "Error: Ungrouped epic not found: e-1"


class TestNormalizeSprint:
    @pytest.mark.asyncio
    async def test_rewrites(self, seeded_store):
        await seeded_store.write_epic_rank("e-3", "Sprint 007", 8)
        data = _parse_result(await normalize_sprint_handler({"sprint_id": "007"}, seeded_store))
        assert data["rewritten"] == [{"epic_id": "e-3", "rank": 3}]

    @pytest.mark.asyncio
    async def test_blank_sprint(self, seeded_store):
        text = _parse_result(await normalize_sprint_handler({"sprint_id": " "}, seeded_store))
        assert text.startswith("Error:")


class TestGetSprintBlankId:
    @pytest.mark.asyncio
    async def test_blank_id(self, seeded_store):
        text = _parse_result(await get_sprint_handler({"sprint_id": "  "}, seeded_store))
        assert text.startswith("Error: Sprint not found")
