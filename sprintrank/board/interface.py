"""Sprint membership store protocol."""

from datetime import date
from typing import Protocol

from ..ranking.models import Epic, Sprint


class SprintMembershipStore(Protocol):
    """Interface that any sprint membership store must implement.

    The board reads whole sprints and writes one epic at a time; writes are
    idempotent so repeating a gesture's batch is harmless.
    """

    async def list_sprints(self) -> list[Sprint]: ...

    async def get_sprint(self, sprint_id: str) -> Sprint: ...

    async def fetch_epics_by_sprint(self, sprint_id: str) -> list[Epic]: ...

    async def list_ungrouped_epics(self) -> list[Epic]: ...

    async def write_epic_rank(self, epic_id: str, sprint_label: str, rank: int) -> None: ...

    async def write_epic_sprint_assignment(
        self,
        epic_id: str,
        sprint_id: str,
        start_date: date | None,
        end_date: date | None,
        rank: int,
        name: str | None = None,
    ) -> None: ...
