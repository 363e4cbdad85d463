"""Board configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class BoardConfig:
    """Configuration for committing board gestures."""

    max_parallel_writes: int = 0
    relabel_epic_names: bool = True
