"""
todos/models.py -- Domain dataclasses for tasks.

These are pure data containers with zero logic beyond TaskPatch.is_empty().
Ownership enforcement and timestamps live in todos/store.py.

id is None before the record is written to the database.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Task:
    """A single todo item owned by exactly one user.

    owner_id is set at creation from the authenticated principal and no
    exposed operation can change it.
    """

    title: str
    owner_id: int
    completed: bool = False
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed on every mutation


@dataclass
class TaskPatch:
    """A partial update. None means "leave this field alone"."""

    title: Optional[str] = None
    completed: Optional[bool] = None

    def is_empty(self) -> bool:
        return self.title is None and self.completed is None
