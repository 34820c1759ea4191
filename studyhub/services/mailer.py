"""
Mail Dispatcher

Fire-and-forget delivery of account emails. Each message is handed to a
Celery task from a background asyncio task so the request never waits on
the broker; a failed hand-off is logged and reported to Sentry but never
raised to the caller.
"""

import asyncio
from functools import partial
from typing import Set

from studyhub.core.logging import capture_error
from studyhub.logging import get_logger
from studyhub.mycelery.worker import send_password_reset_code, send_welcome_email

logger = get_logger(__name__)


class MailDispatcher:
    """
    Usage:
        mailer = MailDispatcher()
        mailer.send_password_reset_code("a@b.c", "123456")
        await mailer.wait_idle()  # at shutdown
    """

    def __init__(self, reset_task=send_password_reset_code, welcome_task=send_welcome_email):
        self._reset_task = reset_task
        self._welcome_task = welcome_task
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def send_password_reset_code(self, email: str, code: str) -> None:
        self._dispatch(self._reset_task, email, code, kind="password_reset")

    def send_welcome(self, email: str, username: str) -> None:
        self._dispatch(self._welcome_task, email, username, kind="welcome")

    def _dispatch(self, task, *args, kind: str) -> None:
        job = asyncio.create_task(asyncio.to_thread(task.delay, *args))
        self._pending.add(job)
        job.add_done_callback(partial(self._on_done, kind=kind))

    def _on_done(self, job: asyncio.Task, kind: str) -> None:
        self._pending.discard(job)
        if job.cancelled():
            logger.warning("Mail dispatch cancelled", kind=kind)
            return
        error = job.exception()
        if error is not None:
            logger.error("Mail dispatch failed", exc_info=False, kind=kind, error=str(error))
            capture_error(error, tags={"component": "mailer", "kind": kind})
            return
        logger.info("Mail dispatched", kind=kind)

    async def wait_idle(self) -> None:
        """Wait for every in-flight dispatch to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
