"""Tests for YamlFileStore persistence."""

from datetime import date, datetime

import pytest
import yaml

from sprintrank.adapters.yaml_file import YamlFileStore
from sprintrank.board.controller import MoveOutcome, SprintBoardController


@pytest.fixture
def board_file(tmp_path):
    return tmp_path / "board.yaml"


class TestYamlFileStore:
    @pytest.mark.asyncio
    async def test_missing_file_is_empty_board(self, board_file):
        store = YamlFileStore(board_file)
        assert await store.list_sprints() == []
        assert await store.list_ungrouped_epics() == []
        assert not board_file.exists()

    @pytest.mark.asyncio
    async def test_survives_reopen(self, board_file):
        store = YamlFileStore(board_file)
        await store.create_sprint("007", date(2026, 1, 5), date(2026, 1, 16))
        epic = await store.create_epic("Billing", sprint_id="007", rank=1)
        await store.add_task(epic.id, "Invoices", status="done", story_points=3)

        reopened = YamlFileStore(board_file)
        sprint = await reopened.get_sprint("007")
        assert sprint.start_date == date(2026, 1, 5)
        (loaded,) = sprint.epics
        assert loaded.name == "Billing"
        assert loaded.rank == {"Sprint 007": 1}
        assert loaded.tasks[0].story_points == 3
        assert isinstance(loaded.created_at, datetime)

    @pytest.mark.asyncio
    async def test_ids_continue_after_reopen(self, board_file):
        await YamlFileStore(board_file).create_epic("First")
        second = await YamlFileStore(board_file).create_epic("Second")
        assert second.id == "e-2"

    @pytest.mark.asyncio
    async def test_file_is_readable_yaml(self, board_file):
        store = YamlFileStore(board_file)
        await store.create_sprint("007")
        await store.create_epic("Billing", sprint_id="007", rank=1)
        data = yaml.safe_load(board_file.read_text())
        assert data["sprints"][0]["sprint_id"] == "007"
        assert data["epics"][0]["rank"] == {"Sprint 007": 1}

    @pytest.mark.asyncio
    async def test_hand_written_file(self, board_file):
        board_file.write_text(
            "sprints:\n"
            "  - {sprint_id: '007', start_date: 2026-01-05, end_date: 2026-01-16}\n"
            "epics:\n"
            "  - {id: e-1, name: A, current_sprint_id: '007', rank: {Sprint 007: 2}}\n"
            "  - {id: e-2, name: B, current_sprint_id: '007'}\n"
        )
        store = YamlFileStore(board_file)
        epics = await store.fetch_epics_by_sprint("007")
        assert [e.rank for e in epics] == [{"Sprint 007": 2}, {}]
        assert (await store.get_sprint("007")).is_scheduled

    @pytest.mark.asyncio
    async def test_move_through_controller(self, board_file):
        store = YamlFileStore(board_file)
        await store.create_sprint("007")
        for i, name in enumerate(["A", "B", "C"], start=1):
            await store.create_epic(name, sprint_id="007", rank=i)

        result = await SprintBoardController(store).move_epic("e-3", "e-1", "epic")
        assert result.outcome is MoveOutcome.COMMITTED

        reopened = YamlFileStore(board_file)
        epics = await reopened.fetch_epics_by_sprint("007")
        assert {e.id: e.rank["Sprint 007"] for e in epics} == {"e-1": 2, "e-2": 3, "e-3": 1}

    @pytest.mark.asyncio
    async def test_padded_ids_in_file_are_canonical(self, board_file):
        board_file.write_text(
            "sprints:\n"
            "  - {sprint_id: ' 007 '}\n"
            "epics:\n"
            "  - {id: e-1, name: A, current_sprint_id: '007', rank: {Sprint 007: 1}}\n"
        )
        sprint = await YamlFileStore(board_file).get_sprint("007")
        assert [e.id for e in sprint.epics] == ["e-1"]
