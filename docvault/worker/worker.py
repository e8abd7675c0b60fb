import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from docvault.config.settings import Settings
from docvault.logging.logger import Log
from docvault.worker.job_runner import JobRunner
from docvault.worker.models import InboxJob


class Worker:
    """Poll loop: sleep -> claim -> dispatch.

    Watches ``{inbox_dir}/{owner_id}/`` and hands each new file to the
    JobRunner on a pool of ``max_concurrent_ingestions`` threads. A file
    stays claimed until its job finishes.
    """

    def __init__(self, job_runner: JobRunner, settings: Settings) -> None:
        self._job_runner = job_runner
        self._settings = settings
        self._inbox = Path(settings.inbox_dir)
        self._max_workers = max(1, settings.max_concurrent_ingestions)
        self._claimed: set[Path] = set()
        self._lock = threading.Lock()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_jobs is set, stop after dispatching that many jobs and wait for
        them to finish (for testing).
        """
        Log.info(f"Worker started, polling {self._inbox} with {self._max_workers} threads")
        jobs_done = 0
        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="ingest"
        ) as executor:
            try:
                while max_jobs is None or jobs_done < max_jobs:
                    limit = self._free_slots()
                    if max_jobs is not None:
                        limit = min(limit, max_jobs - jobs_done)
                    jobs = self._try_claim_jobs(limit)
                    if jobs:
                        for job in jobs:
                            executor.submit(self._run_job, job)
                        jobs_done += len(jobs)
                    else:
                        Log.debug("No inbox files available, sleeping")
                        time.sleep(self._settings.inbox_poll_interval_seconds)
            except KeyboardInterrupt:
                Log.info("Worker shutting down gracefully")

    def _free_slots(self) -> int:
        with self._lock:
            return self._max_workers - len(self._claimed)

    def _try_claim_jobs(self, limit: int) -> list[InboxJob]:
        """Claim up to ``limit`` unclaimed inbox files. Gracefully handle I/O errors."""
        if limit <= 0:
            return []
        try:
            candidates = list(self._scan())
        except OSError as exc:
            Log.warning(f"Inbox scan failed, will retry: {exc}")
            return []

        jobs: list[InboxJob] = []
        with self._lock:
            for job in candidates:
                if len(jobs) >= limit:
                    break
                if job.path in self._claimed:
                    continue
                self._claimed.add(job.path)
                jobs.append(job)
        return jobs

    def _scan(self) -> list[InboxJob]:
        if not self._inbox.is_dir():
            return []
        jobs: list[InboxJob] = []
        for owner_dir in sorted(self._inbox.iterdir()):
            if not owner_dir.is_dir() or owner_dir.name.startswith("."):
                continue
            for path in sorted(owner_dir.iterdir()):
                if path.is_file() and not path.name.startswith("."):
                    jobs.append(InboxJob(path=path, owner_id=owner_dir.name))
        return jobs

    def _run_job(self, job: InboxJob) -> None:
        try:
            self._job_runner.run(job)
        except Exception as exc:
            Log.exception(f"Unexpected error in job for {job.path}: {exc}")
        finally:
            with self._lock:
                self._claimed.discard(job.path)
