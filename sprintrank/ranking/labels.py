"""Sprint label formatting.

Rank maps are keyed by the human-readable label, not the sprint id. Every
label is built here so the key format cannot drift between callers.
"""

from __future__ import annotations

import re

from .exceptions import InvalidSprintLabelError

LABEL_PREFIX = "Sprint "

_NAME_SPRINT_RE = re.compile(r"Sprint \d+")


def canonical_sprint_id(sprint_id: str) -> str:
    """Return *sprint_id* as stores key it: a string with surrounding whitespace removed.

    Two ids that would share a label must also share a store key.
    """
    if sprint_id is None:
        raise InvalidSprintLabelError("Sprint id is required to build a label")
    cleaned = str(sprint_id).strip()
    if not cleaned:
        raise InvalidSprintLabelError("Sprint id must not be blank")
    return cleaned


def sprint_label(sprint_id: str) -> str:
    """Return the rank-map key for a sprint, e.g. ``"007"`` -> ``"Sprint 007"``."""
    return f"{LABEL_PREFIX}{canonical_sprint_id(sprint_id)}"


def parse_sprint_label(label: str) -> str:
    """Return the sprint id encoded in a label."""
    if not isinstance(label, str) or not label.startswith(LABEL_PREFIX):
        raise InvalidSprintLabelError(f"Not a sprint label: {label!r}")
    sprint_id = label[len(LABEL_PREFIX):].strip()
    if not sprint_id:
        raise InvalidSprintLabelError(f"Sprint label has no id: {label!r}")
    return sprint_id


def relabel_epic_name(name: str, sprint_id: str) -> str:
    """Rewrite a ``Sprint <n>`` fragment in an epic name to point at *sprint_id*."""
    return _NAME_SPRINT_RE.sub(lambda _: sprint_label(sprint_id), name, count=1)
