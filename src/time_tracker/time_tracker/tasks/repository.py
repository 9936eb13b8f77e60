from __future__ import annotations

from typing import Optional, Protocol

from .model import Task


class TaskRepository(Protocol):
    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def exists(self, task_id: int) -> bool:
        raise NotImplementedError
