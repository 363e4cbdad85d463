"""Rank normalizer: restores the dense 1..N rank sequence within a sprint."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from .models import Epic, RankWrite


def rank_of(epic: Epic, label: str) -> int | None:
    """Return the epic's rank for *label*, or None if it has no usable entry.

    Only positive integers count; zero, negatives and non-integers are
    treated as missing.
    """
    value = epic.rank.get(label)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return None
    return value


def highest_rank(label: str, epics: list[Epic]) -> int:
    """Highest rank present for *label*, ignoring unranked epics. 0 if none."""
    ranks = [r for r in (rank_of(e, label) for e in epics) if r is not None]
    return max(ranks) if ranks else 0


def _creation_key(epic: Epic) -> tuple[bool, datetime]:
    # Epics without a creation time sort after those with one.
    return (epic.created_at is None, epic.created_at or datetime.min)


def ordered_epics(label: str, epics: list[Epic]) -> list[Epic]:
    """Epics ordered by rank for *label*; unranked epics last, by creation."""
    indexed = list(enumerate(epics))

    def _key(item: tuple[int, Epic]):
        index, epic = item
        rank = rank_of(epic, label)
        return (rank is None, rank or 0, _creation_key(epic), index)

    return [epic for _, epic in sorted(indexed, key=_key)]


def is_dense(label: str, epics: list[Epic]) -> bool:
    ranks = [rank_of(e, label) for e in epics]
    if any(r is None for r in ranks):
        return False
    return sorted(ranks) == list(range(1, len(epics) + 1))


def ensure_dense_ranks(label: str, epics: list[Epic]) -> list[RankWrite]:
    """Return the writes needed for *epics* to hold ranks exactly 1..N.

    Epics lacking a rank are appended after the current maximum in creation
    order; present ranks are left alone. If the present ranks are themselves
    broken (gaps or duplicates), the whole sprint is renumbered in its current
    order instead.
    """
    if not epics:
        return []

    ranked = [e for e in epics if rank_of(e, label) is not None]
    present = sorted(rank_of(e, label) for e in ranked)

    if present == list(range(1, len(present) + 1)):
        unranked = [e for e in ordered_epics(label, epics) if rank_of(e, label) is None]
        next_rank = len(present) + 1
        writes = []
        for epic in unranked:
            writes.append(RankWrite(epic.id, label, next_rank))
            next_rank += 1
        return writes

    writes = []
    for position, epic in enumerate(ordered_epics(label, epics), start=1):
        if rank_of(epic, label) != position:
            writes.append(RankWrite(epic.id, label, position))
    return writes


def apply_rank_writes(label: str, epics: list[Epic], writes: list[RankWrite]) -> list[Epic]:
    """Return copies of *epics* with *writes* for *label* applied."""
    by_epic = {w.epic_id: w.rank for w in writes if w.sprint_label == label}
    result = []
    for epic in epics:
        if epic.id in by_epic:
            epic = replace(epic, rank={**epic.rank, label: by_epic[epic.id]})
        result.append(epic)
    return result
