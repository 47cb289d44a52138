"""
Notification email outbox and background worker.

Services never send email inline. ``stage_email`` parks a job on the database
session; the job reaches the in-memory outbox only when that session commits
and is discarded if it rolls back. ``EmailWorker`` drains the outbox and posts
each job to the email relay. Delivery is best-effort: a full outbox drops the
job and a failed send is logged, never retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.services.email import EmailService

logger = logging.getLogger(__name__)
settings = get_settings()

_STAGED_KEY = "staged_email_jobs"


@dataclass(frozen=True)
class EmailJob:
    to_email: str
    title: str
    message: str


class EmailOutbox:
    """Bounded FIFO of email jobs waiting for the worker."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[EmailJob] = asyncio.Queue(maxsize=maxsize)

    def put(self, job: EmailJob) -> bool:
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            logger.warning("Email outbox full, dropping notification email", extra={"recipient": job.to_email})
            return False
        return True

    async def get(self) -> EmailJob:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    def qsize(self) -> int:
        return self._queue.qsize()

    def drain(self) -> List[EmailJob]:
        jobs = []
        while not self._queue.empty():
            jobs.append(self._queue.get_nowait())
            self._queue.task_done()
        return jobs


_outbox = EmailOutbox(maxsize=settings.email_queue_maxsize)


def get_outbox() -> EmailOutbox:
    return _outbox


def set_outbox(outbox: EmailOutbox) -> EmailOutbox:
    """Swap the process-wide outbox (used at startup and in tests)."""
    global _outbox
    _outbox = outbox
    return outbox


def stage_email(db: AsyncSession, job: EmailJob) -> None:
    db.info.setdefault(_STAGED_KEY, []).append(job)


@event.listens_for(Session, "after_commit")
def _release_staged_emails(session: Session) -> None:
    jobs = session.info.pop(_STAGED_KEY, None)
    if not jobs:
        return
    outbox = get_outbox()
    for job in jobs:
        outbox.put(job)


@event.listens_for(Session, "after_rollback")
def _discard_staged_emails(session: Session) -> None:
    jobs = session.info.pop(_STAGED_KEY, None)
    if jobs:
        logger.debug("Discarded %d staged emails after rollback", len(jobs))


class EmailWorker:
    """Background task that drains the outbox."""

    def __init__(self, outbox: Optional[EmailOutbox] = None, email_service: Optional[EmailService] = None):
        self.outbox = outbox or get_outbox()
        self.email_service = email_service or EmailService()
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="email-worker")
            logger.info("Email worker started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Email worker stopped")

    async def run(self) -> None:
        while True:
            job = await self.outbox.get()
            try:
                await self.process(job)
            finally:
                self.outbox.task_done()

    async def process(self, job: EmailJob) -> bool:
        try:
            return await self.email_service.send_notification_email(job.to_email, job.title, job.message)
        except Exception:
            logger.exception("Error sending notification email", extra={"recipient": job.to_email})
            return False
