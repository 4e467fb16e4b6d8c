"""
Live job list for a submitted batch.

The board is the only writer of job state. Each change replaces the whole
job snapshot in a fresh list and is pushed to every subscriber queue, so
readers (a progress display, the CLI) never observe a half-applied update.
"""
import asyncio
from typing import Iterable, List, Optional, Tuple

import structlog

from storeassets.models.job import ExtractionJob, JobStatus

logger = structlog.get_logger()


def prepare_urls(urls: Iterable[str]) -> List[str]:
    """Trim URLs, drop blank lines and add ``https://`` to bare domains."""
    prepared = []
    for url in urls:
        url = (url or "").strip()
        if not url:
            continue
        if not url.lower().startswith(("http://", "https://")):
            url = f"https://{url}"
        prepared.append(url)
    return prepared


class JobBoard:
    """Ordered, observable list of extraction jobs."""

    def __init__(self, urls: Iterable[str]):
        self._jobs: Tuple[ExtractionJob, ...] = tuple(
            ExtractionJob(source_url=url) for url in prepare_urls(urls)
        )
        self._subscribers: List[asyncio.Queue] = []
        self.finished = asyncio.Event()

    @property
    def jobs(self) -> Tuple[ExtractionJob, ...]:
        """Current snapshot of every job, in submission order."""
        return self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def get(self, job_id: str) -> ExtractionJob:
        for job in self._jobs:
            if job.id == job_id:
                return job
        raise KeyError(job_id)

    def subscribe(self) -> asyncio.Queue:
        """
        Receive every published job snapshot.

        ``None`` is put on the queue once the batch has finished.
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def publish(self, job: ExtractionJob) -> None:
        """Replace the stored snapshot for ``job.id`` and notify subscribers."""
        self._jobs = tuple(job if j.id == job.id else j for j in self._jobs)
        for queue in self._subscribers:
            queue.put_nowait(job)

    def update(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        **changes,
    ) -> ExtractionJob:
        """Advance a job and publish the new snapshot."""
        job = self.get(job_id).advance(status, **changes)
        self.publish(job)
        logger.debug(
            "Job updated",
            job_id=job_id,
            status=job.status.value,
            status_message=job.status_message,
        )
        return job

    def close(self) -> None:
        """Mark the batch finished and release subscribers."""
        self.finished.set()
        for queue in self._subscribers:
            queue.put_nowait(None)

    async def wait(self) -> Tuple[ExtractionJob, ...]:
        """Wait for the batch to finish and return the final snapshots."""
        await self.finished.wait()
        return self._jobs
