"""Shared test configuration."""

from __future__ import annotations

from datetime import date, datetime

import pytest
import pytest_asyncio

from sprintrank.adapters.memory import InMemoryStore
from sprintrank.ranking.labels import sprint_label
from sprintrank.ranking.models import Epic, Sprint


def make_epic(epic_id: str, sprint_id: str | None = None, rank=None, created: int = 0, **kwargs) -> Epic:
    """Build an epic ranked in *sprint_id* (rank None leaves it unranked)."""
    epic = Epic(
        id=epic_id,
        name=kwargs.pop("name", epic_id),
        current_sprint_id=sprint_id,
        created_at=datetime(2026, 1, 1, 9, created),
        **kwargs,
    )
    if sprint_id is not None and rank is not None:
        epic.rank[sprint_label(sprint_id)] = rank
    return epic


def make_sprint(sprint_id: str, *epics: tuple, scheduled: bool = True) -> Sprint:
    """Build a sprint from (epic_id, rank) pairs, created in the given order."""
    return Sprint(
        sprint_id=sprint_id,
        start_date=date(2026, 1, 5) if scheduled else None,
        end_date=date(2026, 1, 16) if scheduled else None,
        epics=[
            make_epic(epic_id, sprint_id, rank, created=i)
            for i, (epic_id, rank) in enumerate(epics)
        ],
    )


def ranks(sprint: Sprint) -> dict[str, int | None]:
    return {e.id: e.rank.get(sprint.label) for e in sprint.epics}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest_asyncio.fixture
async def seeded_store(store):
    """Two scheduled sprints, 007 holding e-1..e-3 and 008 holding e-4..e-5, plus one ungrouped epic."""
    await store.create_sprint("007", date(2026, 1, 5), date(2026, 1, 16))
    await store.create_sprint("008", date(2026, 1, 19), date(2026, 1, 30))
    for i, name in enumerate(["Billing", "Search", "Reports"], start=1):
        await store.create_epic(name, sprint_id="007", rank=i, created_at=datetime(2026, 1, 1, 9, i))
    for i, name in enumerate(["Onboarding Sprint 8", "Exports"], start=1):
        await store.create_epic(name, sprint_id="008", rank=i, created_at=datetime(2026, 1, 1, 10, i))
    await store.create_epic("Audit log", created_at=datetime(2026, 1, 1, 11, 0))
    await store.add_task("e-1", "Invoices", status="done", story_points=3)
    await store.add_task("e-1", "Refunds", status="todo", story_points=5)
    await store.add_task("e-2", "Indexing", status="in-progress", story_points=2)
    store.write_log.clear()
    return store
