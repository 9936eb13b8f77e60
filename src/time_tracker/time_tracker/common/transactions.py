from __future__ import annotations

import logging
from typing import Callable, ContextManager, Protocol, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from ..core.constants import DEFAULT_TRANSACTION_RETRIES
from ..core.exceptions import PersistenceError, TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Tx = TypeVar("Tx")


class SupportsTransaction(Protocol[Tx]):
    def transaction(self) -> ContextManager[Tx]:
        raise NotImplementedError


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "transaction_retry attempt=%s error=%s",
        retry_state.attempt_number,
        retry_state.outcome.exception() if retry_state.outcome else None,
    )


def _run_once(store: SupportsTransaction[Tx], work: Callable[[Tx], T]) -> T:
    with store.transaction() as tx:
        return work(tx)


def run_atomic(
    store: SupportsTransaction[Tx],
    work: Callable[[Tx], T],
    *,
    retries: int = DEFAULT_TRANSACTION_RETRIES,
) -> T:
    """Run ``work`` inside one storage transaction.

    A TransientStorageError (e.g. the unique open-session index rejecting a
    concurrent insert) rolls back and re-runs ``work`` from scratch, so the
    second attempt re-reads committed state and raises the proper domain
    error. Domain errors are never retried.
    """

    attempts = max(int(retries), 0) + 1
    retrying = Retrying(
        retry=retry_if_exception_type(TransientStorageError),
        stop=stop_after_attempt(attempts),
        reraise=True,
        before_sleep=_log_retry,
    )
    try:
        return retrying(_run_once, store, work)
    except TransientStorageError as exc:
        logger.error("transaction_failed attempts=%s error=%s", attempts, exc)
        raise PersistenceError("Storage failure") from exc
