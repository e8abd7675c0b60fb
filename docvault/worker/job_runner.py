from docvault.classifier.format_classifier import mime_from_name
from docvault.database.models import DocumentRecord
from docvault.logging.logger import Log
from docvault.service.document_service import DocumentService
from docvault.worker.models import InboxJob

FAILED_DIR_NAME = ".failed"


class JobRunner:
    """Ingest one inbox file, catch exceptions, and set failed files aside."""

    def __init__(self, service: DocumentService) -> None:
        self._service = service

    def run(self, job: InboxJob) -> DocumentRecord | None:
        """Ingest the file and remove it from the inbox.

        Files that cannot be read or stored are moved to ``.failed/`` next to
        them so the poll loop does not pick them up again.
        """
        Log.info(f"Running job for {job.path.name}", owner=job.owner_id)
        try:
            record = self._service.ingest(
                job.path.read_bytes(),
                mime_from_name(job.path.name),
                job.path.name,
                job.owner_id,
            )
        except Exception as exc:
            self._handle_failure(job, exc)
            return None
        self._remove_from_inbox(job, record)
        Log.info(
            f"Job for {job.path.name} completed as document {record.id}",
            method=record.extraction_method.value,
        )
        return record

    def _remove_from_inbox(self, job: InboxJob, record: DocumentRecord) -> None:
        try:
            job.path.unlink(missing_ok=True)
        except OSError as exc:
            Log.error(
                f"Stored {job.path.name} as document {record.id} but could not remove it: {exc}",
                owner=job.owner_id,
            )

    def _handle_failure(self, job: InboxJob, exc: Exception) -> None:
        Log.error(f"Job for {job.path} failed: {exc}", owner=job.owner_id)
        failed_dir = job.path.parent / FAILED_DIR_NAME
        try:
            failed_dir.mkdir(exist_ok=True)
            job.path.replace(failed_dir / job.path.name)
        except OSError as move_exc:
            Log.error(f"Could not move {job.path} aside: {move_exc}")
