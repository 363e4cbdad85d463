"""In-memory sprint membership store for testing."""

import copy
import logging
from collections import deque
from datetime import date, datetime

from ..ranking.labels import canonical_sprint_id, sprint_label
from ..ranking.models import Epic, Sprint, WorkItem

logger = logging.getLogger(__name__)

# Most recent writes kept in write_log
WRITE_LOG_LIMIT = 1000


class InMemoryStore:
    """SprintMembershipStore backed by dicts. For tests and demos.

    Reads hand out copies so callers never hold live records.
    """

    def __init__(self):
        self._epics: dict[str, Epic] = {}
        self._sprints: dict[str, Sprint] = {}
        self._next_epic_id = 1
        self._next_task_id = 1
        self.write_log: deque[tuple] = deque(maxlen=WRITE_LOG_LIMIT)

    # -- internal lookups (no copies) --

    def _epic(self, epic_id: str) -> Epic:
        if epic_id not in self._epics:
            raise KeyError(f"Epic not found: {epic_id}")
        return self._epics[epic_id]

    def _sprint(self, sprint_id: str) -> Sprint:
        sprint_id = canonical_sprint_id(sprint_id)
        if sprint_id not in self._sprints:
            raise KeyError(f"Sprint not found: {sprint_id}")
        return self._sprints[sprint_id]

    def _members(self, sprint_id: str) -> list[Epic]:
        sprint_id = canonical_sprint_id(sprint_id)
        return [e for e in self._epics.values() if e.current_sprint_id == sprint_id]

    def _with_members(self, sprint: Sprint) -> Sprint:
        return Sprint(
            sprint_id=sprint.sprint_id,
            start_date=sprint.start_date,
            end_date=sprint.end_date,
            epics=copy.deepcopy(self._members(sprint.sprint_id)),
        )

    # -- seeding --

    async def create_sprint(
        self,
        sprint_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Sprint:
        sprint_id = canonical_sprint_id(sprint_id)
        if sprint_id in self._sprints:
            raise ValueError(f"Sprint already exists: {sprint_id}")
        sprint = Sprint(sprint_id=sprint_id, start_date=start_date, end_date=end_date)
        self._sprints[sprint_id] = sprint
        return self._with_members(sprint)

    async def create_epic(
        self,
        name: str,
        sprint_id: str | None = None,
        rank: int | None = None,
        created_at: datetime | None = None,
    ) -> Epic:
        epic_id = f"e-{self._next_epic_id}"
        self._next_epic_id += 1
        epic = Epic(id=epic_id, name=name, created_at=created_at or datetime.now())
        if sprint_id is not None:
            sprint = self._sprint(sprint_id)
            epic.current_sprint_id = sprint.sprint_id
            epic.start_date = sprint.start_date
            epic.end_date = sprint.end_date
            if rank is not None:
                epic.rank[sprint_label(sprint_id)] = rank
        self._epics[epic_id] = epic
        return copy.deepcopy(epic)

    async def add_task(
        self,
        epic_id: str,
        name: str,
        status: str = "todo",
        story_points: float = 0.0,
    ) -> WorkItem:
        epic = self._epic(epic_id)
        task = WorkItem(
            id=f"t-{self._next_task_id}", name=name, status=status, story_points=story_points
        )
        self._next_task_id += 1
        epic.tasks.append(task)
        return copy.deepcopy(task)

    # -- reads --

    async def get_epic(self, epic_id: str) -> Epic:
        return copy.deepcopy(self._epic(epic_id))

    async def get_sprint(self, sprint_id: str) -> Sprint:
        return self._with_members(self._sprint(sprint_id))

    async def list_sprints(self) -> list[Sprint]:
        return [self._with_members(s) for s in self._sprints.values()]

    async def fetch_epics_by_sprint(self, sprint_id: str) -> list[Epic]:
        return copy.deepcopy(self._members(sprint_id))

    async def list_ungrouped_epics(self) -> list[Epic]:
        return copy.deepcopy([e for e in self._epics.values() if e.current_sprint_id is None])

    # -- writes --

    async def write_epic_rank(self, epic_id: str, sprint_label: str, rank: int) -> None:
        epic = self._epic(epic_id)
        epic.rank[sprint_label] = rank
        self.write_log.append(("rank", epic_id, sprint_label, rank))
        logger.debug(f"rank {epic_id} {sprint_label} = {rank}")

    async def write_epic_sprint_assignment(
        self,
        epic_id: str,
        sprint_id: str,
        start_date: date | None,
        end_date: date | None,
        rank: int,
        name: str | None = None,
    ) -> None:
        epic = self._epic(epic_id)
        sprint_id = canonical_sprint_id(sprint_id)
        if sprint_id not in self._sprints:
            self._sprints[sprint_id] = Sprint(
                sprint_id=sprint_id, start_date=start_date, end_date=end_date
            )
        epic.current_sprint_id = sprint_id
        epic.start_date = start_date
        epic.end_date = end_date
        epic.rank[sprint_label(sprint_id)] = rank
        if name is not None:
            epic.name = name
        self.write_log.append(("assign", epic_id, sprint_id, rank))
        logger.debug(f"assign {epic_id} -> {sprint_label(sprint_id)} rank {rank}")
