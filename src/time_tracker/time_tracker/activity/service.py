from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from ..core.enums import ActivityAction
from .model import ActivityEntry
from .repository import ActivityRepository

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Best-effort audit trail.

    Called after the time-entry transaction has committed; a failing insert is
    logged and dropped so it can never undo or fail the user's command.
    """

    def __init__(self, repo: ActivityRepository):
        self._repo = repo

    def log(
        self,
        user_id: int,
        action: Union[ActivityAction, str],
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        action_name = action.value if isinstance(action, ActivityAction) else str(action)
        entry = ActivityEntry(
            user_id=int(user_id),
            action=action_name,
            description=description,
            metadata=dict(metadata or {}),
        )
        try:
            self._repo.add(entry)
        except Exception as exc:
            logger.warning(
                "activity_log_failed",
                extra={"user_id": user_id, "action": action_name, "code": type(exc).__name__},
            )
