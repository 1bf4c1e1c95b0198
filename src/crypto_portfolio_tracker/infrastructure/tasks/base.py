import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)


class AbstractTaskService(ABC):
    def __init__(self, scheduler: AsyncIOScheduler) -> None:
        self._scheduler = scheduler
        self._job: Job | None = None

    async def start(self) -> None:
        if not self._job:
            self._job = self._create_job()
        else:  # pragma: no cover
            self._job.resume()

    async def stop(self) -> None:
        if self._job:
            self._job.remove()
            self._job = None

    async def run(self) -> Any | None:
        """
        Runs the task body, any exception is logged and never reaches the scheduler
        """
        try:
            return await self._run()
        except Exception as e:
            logger.error(f"[{self.__class__.__name__}] Unexpected error: {str(e)}", exc_info=True)
            return None

    @abstractmethod
    async def _run(self) -> Any | None:
        """
        Run the task
        """

    @abstractmethod
    def _get_job_trigger(self) -> BaseTrigger:
        """
        Get the job trigger
        """

    def _get_job_func(self) -> Callable[[], Awaitable[Any]]:
        return self.run

    def _create_job(self) -> Job:
        trigger = self._get_job_trigger()
        job = self._scheduler.add_job(
            id=self.__class__.__name__,
            func=self._get_job_func(),
            trigger=trigger,
            max_instances=1,  # Prevent overlapping
            coalesce=True,  # Skip intermediate runs if one was missed
            replace_existing=True,
        )
        return job
