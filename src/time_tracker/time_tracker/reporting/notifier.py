from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from ..core.constants import DEFAULT_REPORTING_TIMEOUT_SECONDS
from .model import ReportRow, TaskComment, TaskHours

logger = logging.getLogger(__name__)


class ReportingError(RuntimeError):
    pass


class ReportingNotifier(Protocol):
    """Outbound, best-effort reporting. Callers never wait on or depend on it."""

    def notify_report_row(self, row: ReportRow) -> None:
        raise NotImplementedError

    def update_task_hours(self, hours: TaskHours) -> None:
        raise NotImplementedError

    def add_task_comment(self, comment: TaskComment) -> None:
        raise NotImplementedError


class NullReportingNotifier(ReportingNotifier):
    """Used when no reporting endpoint is configured."""

    def notify_report_row(self, row: ReportRow) -> None:
        logger.debug("reporting_disabled", extra={"event": row.event_name})

    def update_task_hours(self, hours: TaskHours) -> None:
        return None

    def add_task_comment(self, comment: TaskComment) -> None:
        return None


class HttpReportingNotifier(ReportingNotifier):
    """Project-management API client.

    ``custom_fields`` maps logical names to the remote field ids:
    ``task_id``, ``user``, ``time_in``, ``time_out``, ``total_mins``, ``notes``
    for report rows and ``total_hours``, ``today_hours``, ``week_hours`` for
    task aggregates. Unmapped fields are skipped.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str,
        list_id: Optional[str] = None,
        custom_fields: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_REPORTING_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self._list_id = list_id
        self._fields = {k: v for k, v in dict(custom_fields or {}).items() if v}
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self._headers = {
            "Authorization": api_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Dict[str, Any],
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            resp = self._client.request(method, path, json=payload, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise ReportingError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise ReportingError(f"{method} {path} error: {resp.status_code} {resp.text}")
        if not resp.content:
            return {}
        return resp.json()

    def notify_report_row(self, row: ReportRow) -> None:
        if not self._list_id:
            return

        description = "\n".join(row.description_lines())
        values = {
            "task_id": row.related_task_id or "",
            "user": row.user_name,
            "time_in": row.time_in_text,
            "time_out": row.time_out_text,
            "total_mins": str(row.total_minutes),
            "notes": row.notes,
        }
        custom_fields = [
            {"id": self._fields[name], "value": str(value)}
            for name, value in values.items()
            if name in self._fields
        ]
        payload = {"name": row.event_name, "description": description, "custom_fields": custom_fields}
        path = f"/list/{self._list_id}/task"

        try:
            self._request("POST", path, payload=payload)
        except ReportingError as exc:
            # Some workspaces reject custom_fields at creation; retry with the bare row.
            logger.warning("report_row_retry", extra={"event": row.event_name, "code": str(exc)[:200]})
            self._request("POST", path, payload={"name": row.event_name, "description": description})

    def update_task_hours(self, hours: TaskHours) -> None:
        values = {
            "total_hours": hours.total,
            "today_hours": hours.today,
            "week_hours": hours.week,
        }
        for name, value in values.items():
            field_id = self._fields.get(name)
            if not field_id:
                continue
            self._request(
                "POST",
                f"/task/{hours.external_task_id}/field/{field_id}",
                payload={"value": float(value)},
                params={"custom_task_ids": "true"},
            )

    def add_task_comment(self, comment: TaskComment) -> None:
        self._request(
            "POST",
            f"/task/{comment.external_task_id}/comment",
            payload={"comment_text": comment.text},
            params={"custom_task_ids": "true"},
        )
