"""Fleet-wide cache refresh with an in-flight job registry.

The registry only reports whether a refresh is running; it does not stop a
second caller from starting another. It lives in one process and does not
coordinate across multiple server instances.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from enum import Enum

import structlog
from pydantic import BaseModel

logger = structlog.get_logger()


class JobState(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobStatus(BaseModel):
    state: JobState
    started_at: datetime
    finished_at: datetime | None = None
    error: str | None = None


class RefreshJobRegistry:
    """Per-user refresh status guarded by an asyncio lock."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._jobs: dict[str, JobStatus] = {}

    async def is_running(self) -> bool:
        async with self._lock:
            return any(job.state is JobState.RUNNING for job in self._jobs.values())

    async def start(self, user_id: str) -> None:
        async with self._lock:
            self._jobs[user_id] = JobStatus(state=JobState.RUNNING, started_at=datetime.now(timezone.utc))

    async def finish(self, user_id: str, error: BaseException | None = None) -> None:
        async with self._lock:
            job = self._jobs.get(user_id)
            started_at = job.started_at if job else datetime.now(timezone.utc)
            self._jobs[user_id] = JobStatus(
                state=JobState.FAILED if error else JobState.COMPLETED,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
                error=str(error) if error else None,
            )

    async def running_count(self) -> int:
        async with self._lock:
            return sum(1 for job in self._jobs.values() if job.state is JobState.RUNNING)

    async def snapshot(self) -> dict[str, JobStatus]:
        async with self._lock:
            return {user_id: job.model_copy() for user_id, job in self._jobs.items()}


async def refresh_all_users(
    user_ids: Iterable[str],
    refresh: Callable[[str], Awaitable[None]],
    registry: RefreshJobRegistry,
) -> list[asyncio.Task[None]] | None:
    """Start one background refresh task per user.

    Returns:
        None when a refresh is already running, otherwise the started tasks.
        A failing task is logged and recorded in the registry; it never
        affects the other users' tasks.
    """
    if await registry.is_running():
        logger.info("cache_refresh_already_running")
        return None

    user_ids = list(user_ids)
    logger.info("cache_refresh_started", user_count=len(user_ids))
    for user_id in user_ids:
        await registry.start(user_id)

    async def run(user_id: str) -> None:
        try:
            await refresh(user_id)
        except Exception as exc:
            await registry.finish(user_id, exc)
            logger.exception(
                "cache_refresh_failed", user_id=user_id, remaining=await registry.running_count()
            )
            return
        await registry.finish(user_id)
        logger.info("cache_refresh_completed", user_id=user_id, remaining=await registry.running_count())

    return [asyncio.create_task(run(user_id)) for user_id in user_ids]
