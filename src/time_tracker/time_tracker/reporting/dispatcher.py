from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Protocol

from ..core.constants import DEFAULT_REPORTING_WORKERS

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def submit(self, job: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError

    def shutdown(self, wait: bool = True) -> None:
        raise NotImplementedError


def _run_guarded(job: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    name = getattr(job, "__name__", repr(job))
    try:
        job(*args, **kwargs)
    except Exception:
        logger.warning("side_effect_failed", extra={"event": name}, exc_info=True)


class BackgroundDispatcher(Dispatcher):
    """Fire-and-forget runner for post-commit side effects."""

    def __init__(self, max_workers: int = DEFAULT_REPORTING_WORKERS):
        self._executor = ThreadPoolExecutor(max_workers=max(1, int(max_workers)), thread_name_prefix="reporting")

    def submit(self, job: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._executor.submit(_run_guarded, job, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class InlineDispatcher(Dispatcher):
    """Runs jobs immediately in the caller's thread (tests, CLI scripts)."""

    def submit(self, job: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        _run_guarded(job, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        return None
