from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Task:
    """A trackable task; ``external_task_id`` links it to the reporting system."""

    id: int
    name: str
    external_task_id: Optional[str] = None
