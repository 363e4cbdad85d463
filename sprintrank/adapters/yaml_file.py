"""YAML file sprint membership store.

The whole board lives in one YAML document, re-read on every call so edits
from other processes are picked up; survives process restarts, unlike
InMemoryStore.

Layout:
    next_epic_id: 4
    sprints:
      - {sprint_id: "007", start_date: 2026-01-05, end_date: 2026-01-16}
    epics:
      - id: e-1
        name: Billing
        current_sprint_id: "007"
        rank: {Sprint 007: 1}
        tasks: [{id: t-1, name: Invoices, status: done, story_points: 3}]
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path

import yaml

from ..ranking.labels import canonical_sprint_id
from ..ranking.models import Epic, Sprint, WorkItem
from .memory import InMemoryStore


def _as_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _as_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _epic_from_dict(data: dict) -> Epic:
    sprint_id = data.get("current_sprint_id")
    return Epic(
        id=str(data["id"]),
        name=data.get("name", ""),
        current_sprint_id=canonical_sprint_id(sprint_id) if sprint_id is not None else None,
        start_date=_as_date(data.get("start_date")),
        end_date=_as_date(data.get("end_date")),
        rank={str(k): v for k, v in (data.get("rank") or {}).items()},
        tasks=[
            WorkItem(
                id=str(t["id"]),
                name=t.get("name", ""),
                status=t.get("status", "todo"),
                story_points=float(t.get("story_points") or 0),
            )
            for t in data.get("tasks") or []
        ],
        created_at=_as_datetime(data.get("created_at")),
    )


def _sprint_from_dict(data: dict) -> Sprint:
    return Sprint(
        sprint_id=canonical_sprint_id(data["sprint_id"]),
        start_date=_as_date(data.get("start_date")),
        end_date=_as_date(data.get("end_date")),
    )


class YamlFileStore(InMemoryStore):
    """SprintMembershipStore persisted to a single YAML file."""

    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def _load(self) -> None:
        def _read() -> dict:
            if not self.path.exists():
                return {}
            return yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}

        data = await asyncio.to_thread(_read)
        self._sprints = {
            s.sprint_id: s for s in (_sprint_from_dict(d) for d in data.get("sprints") or [])
        }
        self._epics = {e.id: e for e in (_epic_from_dict(d) for d in data.get("epics") or [])}
        self._next_epic_id = int(data.get("next_epic_id", len(self._epics) + 1))
        self._next_task_id = int(data.get("next_task_id", 1))

    async def _save(self) -> None:
        data = {
            "next_epic_id": self._next_epic_id,
            "next_task_id": self._next_task_id,
            "sprints": [
                {"sprint_id": s.sprint_id, "start_date": s.start_date, "end_date": s.end_date}
                for s in self._sprints.values()
            ],
            "epics": [asdict(e) for e in self._epics.values()],
        }

        def _write() -> None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8"
            )

        await asyncio.to_thread(_write)

    async def _read(self, operation, *args, **kwargs):
        async with self._lock:
            await self._load()
            return await operation(*args, **kwargs)

    async def _mutate(self, operation, *args, **kwargs):
        async with self._lock:
            await self._load()
            result = await operation(*args, **kwargs)
            await self._save()
            return result

    # -- seeding --

    async def create_sprint(self, sprint_id, start_date=None, end_date=None) -> Sprint:
        return await self._mutate(super().create_sprint, sprint_id, start_date, end_date)

    async def create_epic(self, name, sprint_id=None, rank=None, created_at=None) -> Epic:
        return await self._mutate(super().create_epic, name, sprint_id, rank, created_at)

    async def add_task(self, epic_id, name, status="todo", story_points=0.0) -> WorkItem:
        return await self._mutate(super().add_task, epic_id, name, status, story_points)

    # -- reads --

    async def get_epic(self, epic_id: str) -> Epic:
        return await self._read(super().get_epic, epic_id)

    async def get_sprint(self, sprint_id: str) -> Sprint:
        return await self._read(super().get_sprint, sprint_id)

    async def list_sprints(self) -> list[Sprint]:
        return await self._read(super().list_sprints)

    async def fetch_epics_by_sprint(self, sprint_id: str) -> list[Epic]:
        return await self._read(super().fetch_epics_by_sprint, sprint_id)

    async def list_ungrouped_epics(self) -> list[Epic]:
        return await self._read(super().list_ungrouped_epics)

    # -- writes --

    async def write_epic_rank(self, epic_id: str, sprint_label: str, rank: int) -> None:
        await self._mutate(super().write_epic_rank, epic_id, sprint_label, rank)

    async def write_epic_sprint_assignment(
        self, epic_id, sprint_id, start_date, end_date, rank, name=None
    ) -> None:
        await self._mutate(
            super().write_epic_sprint_assignment,
            epic_id, sprint_id, start_date, end_date, rank, name,
        )
