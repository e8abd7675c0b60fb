from docvault.config.settings import Settings
from docvault.logging.logger import Log
from docvault.service.document_service import build_document_service
from docvault.worker.job_runner import JobRunner
from docvault.worker.worker import Worker


def main() -> None:
    """Entry point: build the service -> start the inbox worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    service = build_document_service(settings)

    try:
        job_runner = JobRunner(service)
        worker = Worker(job_runner, settings)
        worker.run()
    finally:
        service.close()


if __name__ == "__main__":
    main()
