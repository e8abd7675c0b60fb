from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

from docvault.database.exceptions import StorageWriteError
from docvault.database.models import DocumentRecord
from docvault.service.document_service import DocumentService
from docvault.worker.job_runner import JobRunner
from docvault.worker.models import InboxJob


def _make_runner() -> tuple[JobRunner, MagicMock]:
    mock_service = MagicMock(spec=DocumentService)
    mock_service.ingest.return_value = DocumentRecord(
        id="doc-1",
        owner_id="alice",
        name="a.txt",
        mime_type="text/plain",
        size_bytes=5,
        raw_content=b"hello",
        uploaded_at=datetime.now(timezone.utc),
    )
    return JobRunner(mock_service), mock_service


def _make_job(tmp_path: Path, name: str = "a.txt", content: bytes = b"hello") -> InboxJob:
    owner_dir = tmp_path / "alice"
    owner_dir.mkdir(exist_ok=True)
    path = owner_dir / name
    path.write_bytes(content)
    return InboxJob(path=path, owner_id="alice")


class TestJobRunnerSuccess:
    def test_ingests_file_and_removes_it(self, tmp_path: Path) -> None:
        runner, mock_service = _make_runner()
        job = _make_job(tmp_path)

        record = runner.run(job)

        mock_service.ingest.assert_called_once_with(b"hello", "text/plain", "a.txt", "alice")
        assert record is not None
        assert not job.path.exists()

    def test_unlink_failure_keeps_success_and_file_in_place(self, tmp_path: Path) -> None:
        runner, _mock_service = _make_runner()
        job = _make_job(tmp_path)

        with patch.object(Path, "unlink", side_effect=PermissionError("read-only inbox")):
            record = runner.run(job)

        assert record is not None
        assert record.id == "doc-1"
        assert job.path.exists()
        assert not (tmp_path / "alice" / ".failed").exists()

    def test_unknown_extension_passes_empty_mime(self, tmp_path: Path) -> None:
        runner, mock_service = _make_runner()
        job = _make_job(tmp_path, name="blob.xyz")

        runner.run(job)

        assert mock_service.ingest.call_args.args[1] == ""


class TestJobRunnerFailure:
    def test_storage_failure_moves_file_aside(self, tmp_path: Path) -> None:
        runner, mock_service = _make_runner()
        mock_service.ingest.side_effect = StorageWriteError("disk full")
        job = _make_job(tmp_path)

        result = runner.run(job)

        assert result is None
        assert not job.path.exists()
        assert (tmp_path / "alice" / ".failed" / "a.txt").read_bytes() == b"hello"

    def test_vanished_file_is_logged_not_raised(self, tmp_path: Path) -> None:
        runner, mock_service = _make_runner()
        job = InboxJob(path=tmp_path / "alice" / "gone.txt", owner_id="alice")

        assert runner.run(job) is None
        mock_service.ingest.assert_not_called()
