from __future__ import annotations

from typing import Protocol

from .model import ActivityEntry


class ActivityRepository(Protocol):
    def add(self, entry: ActivityEntry) -> int:
        raise NotImplementedError
